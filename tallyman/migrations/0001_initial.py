# Generated migration for the tallyman ledger

import django.db.models.deletion
import django.utils.timezone
from django.db import migrations, models

import tallyman.models.customer
import tallyman.models.reward


class Migration(migrations.Migration):

    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name="Tenant",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("code", models.SlugField(unique=True, verbose_name="code")),
                ("name", models.CharField(max_length=200, verbose_name="name")),
                ("is_active", models.BooleanField(default=True, verbose_name="active")),
                ("created_at", models.DateTimeField(auto_now_add=True, verbose_name="created at")),
                ("updated_at", models.DateTimeField(auto_now=True, verbose_name="updated at")),
            ],
            options={
                "verbose_name": "tenant",
                "verbose_name_plural": "tenants",
                "ordering": ["name"],
            },
        ),
        migrations.CreateModel(
            name="Customer",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                (
                    "code",
                    models.CharField(
                        default=tallyman.models.customer.generate_customer_code,
                        help_text="Opaque public identifier (ex: CUST-1A2B3C4D)",
                        max_length=50,
                        unique=True,
                        verbose_name="code",
                    ),
                ),
                ("first_name", models.CharField(max_length=50, verbose_name="first name")),
                ("last_name", models.CharField(blank=True, max_length=50, verbose_name="last name")),
                ("email", models.EmailField(max_length=254, verbose_name="email")),
                ("phone", models.CharField(blank=True, max_length=30, verbose_name="phone")),
                ("address", models.CharField(blank=True, max_length=255, verbose_name="address")),
                (
                    "status",
                    models.CharField(
                        choices=[("active", "Active"), ("inactive", "Inactive")],
                        db_index=True,
                        default="active",
                        max_length=10,
                        verbose_name="status",
                    ),
                ),
                (
                    "points_balance",
                    models.BigIntegerField(
                        default=0,
                        help_text="Spendable points under this tenant",
                        verbose_name="points balance",
                    ),
                ),
                ("created_at", models.DateTimeField(auto_now_add=True, db_index=True, verbose_name="created at")),
                ("updated_at", models.DateTimeField(auto_now=True, verbose_name="updated at")),
                (
                    "tenant",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="customers",
                        to="tallyman.tenant",
                        verbose_name="tenant",
                    ),
                ),
            ],
            options={
                "verbose_name": "customer",
                "verbose_name_plural": "customers",
                "ordering": ["-created_at"],
                "indexes": [
                    models.Index(fields=["tenant", "phone"], name="tallyman_cust_tenant_phone_idx"),
                    models.Index(fields=["tenant", "-points_balance"], name="tallyman_cust_tenant_pts_idx"),
                ],
                "constraints": [
                    models.UniqueConstraint(
                        fields=("tenant", "email"),
                        name="tallyman_customer_unique_tenant_email",
                    ),
                    models.CheckConstraint(
                        condition=models.Q(points_balance__gte=0),
                        name="tallyman_customer_points_non_negative",
                    ),
                ],
            },
        ),
        migrations.CreateModel(
            name="Reward",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                (
                    "code",
                    models.CharField(
                        default=tallyman.models.reward.generate_reward_code,
                        max_length=50,
                        unique=True,
                        verbose_name="code",
                    ),
                ),
                ("name", models.CharField(max_length=200, verbose_name="name")),
                ("description", models.TextField(verbose_name="description")),
                ("points_required", models.PositiveBigIntegerField(verbose_name="points required")),
                (
                    "status",
                    models.CharField(
                        choices=[("active", "Active"), ("inactive", "Inactive")],
                        db_index=True,
                        default="active",
                        max_length=10,
                        verbose_name="status",
                    ),
                ),
                ("redemption_count", models.PositiveIntegerField(default=0, verbose_name="redemptions")),
                ("created_at", models.DateTimeField(auto_now_add=True, verbose_name="created at")),
                ("updated_at", models.DateTimeField(auto_now=True, verbose_name="updated at")),
                (
                    "tenant",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="rewards",
                        to="tallyman.tenant",
                        verbose_name="tenant",
                    ),
                ),
            ],
            options={
                "verbose_name": "reward",
                "verbose_name_plural": "rewards",
                "ordering": ["points_required", "name"],
                "indexes": [
                    models.Index(fields=["tenant", "name"], name="tallyman_rwd_tenant_name_idx"),
                ],
            },
        ),
        migrations.CreateModel(
            name="Visit",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("amount", models.DecimalField(decimal_places=2, max_digits=12, verbose_name="amount")),
                ("points", models.PositiveBigIntegerField(verbose_name="points")),
                ("visit_date", models.DateTimeField(default=django.utils.timezone.now, verbose_name="visit date")),
                ("notes", models.TextField(blank=True, verbose_name="notes")),
                ("created_at", models.DateTimeField(auto_now_add=True, verbose_name="created at")),
                ("created_by", models.CharField(blank=True, max_length=100, verbose_name="created by")),
                (
                    "customer",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="visits",
                        to="tallyman.customer",
                        verbose_name="customer",
                    ),
                ),
                (
                    "tenant",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="visits",
                        to="tallyman.tenant",
                        verbose_name="tenant",
                    ),
                ),
            ],
            options={
                "verbose_name": "visit",
                "verbose_name_plural": "visits",
                "ordering": ["-visit_date"],
                "indexes": [
                    models.Index(fields=["tenant", "customer", "-visit_date"], name="tallyman_visit_cust_date_idx"),
                    models.Index(fields=["tenant", "-visit_date"], name="tallyman_visit_tenant_date_idx"),
                ],
            },
        ),
        migrations.CreateModel(
            name="Transaction",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                (
                    "transaction_type",
                    models.CharField(
                        choices=[
                            ("POINTS_EARNED", "Points earned"),
                            ("REWARD_REDEEMED", "Reward redeemed"),
                        ],
                        max_length=20,
                        verbose_name="type",
                    ),
                ),
                (
                    "points",
                    models.BigIntegerField(
                        help_text="Positive for accrual, negative for redemption",
                        verbose_name="points",
                    ),
                ),
                (
                    "balance",
                    models.BigIntegerField(
                        help_text="Points balance after this transaction",
                        verbose_name="balance",
                    ),
                ),
                ("description", models.CharField(max_length=255, verbose_name="description")),
                ("created_at", models.DateTimeField(auto_now_add=True, db_index=True, verbose_name="created at")),
                ("created_by", models.CharField(blank=True, max_length=100, verbose_name="created by")),
                (
                    "customer",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="transactions",
                        to="tallyman.customer",
                        verbose_name="customer",
                    ),
                ),
                (
                    "reward",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="transactions",
                        to="tallyman.reward",
                        verbose_name="reward",
                    ),
                ),
                (
                    "tenant",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="transactions",
                        to="tallyman.tenant",
                        verbose_name="tenant",
                    ),
                ),
                (
                    "visit",
                    models.OneToOneField(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="transaction",
                        to="tallyman.visit",
                        verbose_name="visit",
                    ),
                ),
            ],
            options={
                "verbose_name": "transaction",
                "verbose_name_plural": "transactions",
                "ordering": ["-created_at", "-id"],
                "indexes": [
                    models.Index(fields=["tenant", "customer", "-created_at"], name="tallyman_tx_cust_created_idx"),
                    models.Index(fields=["tenant", "transaction_type"], name="tallyman_tx_tenant_type_idx"),
                ],
            },
        ),
        migrations.CreateModel(
            name="Employee",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                (
                    "code",
                    models.CharField(
                        help_text="Tenant-assigned employee identifier",
                        max_length=50,
                        verbose_name="employee id",
                    ),
                ),
                ("username", models.CharField(max_length=50, unique=True, verbose_name="username")),
                ("email", models.EmailField(max_length=254, unique=True, verbose_name="email")),
                ("position", models.CharField(blank=True, max_length=100, verbose_name="position")),
                ("department", models.CharField(blank=True, max_length=100, verbose_name="department")),
                ("is_active", models.BooleanField(default=True, verbose_name="active")),
                ("created_at", models.DateTimeField(auto_now_add=True, verbose_name="created at")),
                ("updated_at", models.DateTimeField(auto_now=True, verbose_name="updated at")),
                (
                    "tenant",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="employees",
                        to="tallyman.tenant",
                        verbose_name="tenant",
                    ),
                ),
            ],
            options={
                "verbose_name": "employee",
                "verbose_name_plural": "employees",
                "ordering": ["username"],
                "constraints": [
                    models.UniqueConstraint(
                        fields=("tenant", "code"),
                        name="tallyman_employee_unique_tenant_code",
                    ),
                ],
            },
        ),
    ]
