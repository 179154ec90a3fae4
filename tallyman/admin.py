"""Tallyman admin.

Balances and ledger rows are read-only here: they change only through
LedgerService so every mutation keeps its Transaction.
"""

from django.contrib import admin
from django.utils.html import format_html

from tallyman.models import Customer, Employee, Reward, Tenant, Transaction, Visit


# ===========================================
# Tenant Admin
# ===========================================


@admin.register(Tenant)
class TenantAdmin(admin.ModelAdmin):
    list_display = ["code", "name", "is_active", "customer_count", "created_at"]
    list_filter = ["is_active"]
    search_fields = ["code", "name"]
    prepopulated_fields = {"code": ("name",)}

    def customer_count(self, obj):
        return obj.customers.count()

    customer_count.short_description = "Customers"


# ===========================================
# Inline Classes (must be defined before CustomerAdmin)
# ===========================================


class TransactionInline(admin.TabularInline):
    model = Transaction
    extra = 0
    fields = ["created_at", "transaction_type", "points", "balance", "description", "reward"]
    readonly_fields = fields
    ordering = ["-created_at", "-id"]

    def has_add_permission(self, request, obj=None):
        return False

    def has_delete_permission(self, request, obj=None):
        return False


# ===========================================
# Customer Admin
# ===========================================


@admin.register(Customer)
class CustomerAdmin(admin.ModelAdmin):
    list_display = ["code", "name", "email", "tenant", "points_balance", "status", "created_at"]
    list_filter = ["status", "tenant"]
    search_fields = ["code", "first_name", "last_name", "email", "phone"]
    readonly_fields = ["code", "points_balance", "created_at", "updated_at"]
    raw_id_fields = ["tenant"]
    inlines = [TransactionInline]


# ===========================================
# Reward Admin
# ===========================================


@admin.register(Reward)
class RewardAdmin(admin.ModelAdmin):
    list_display = ["code", "name", "tenant", "points_required", "status", "redemption_count"]
    list_filter = ["status", "tenant"]
    search_fields = ["code", "name"]
    readonly_fields = ["code", "redemption_count", "created_at", "updated_at"]


# ===========================================
# Ledger Admin (read-only)
# ===========================================


@admin.register(Visit)
class VisitAdmin(admin.ModelAdmin):
    list_display = ["visit_date", "customer", "tenant", "amount", "points", "created_by"]
    list_filter = ["tenant"]
    search_fields = ["customer__code", "customer__email", "notes"]
    date_hierarchy = "visit_date"

    def has_add_permission(self, request):
        return False

    def has_change_permission(self, request, obj=None):
        return False

    def has_delete_permission(self, request, obj=None):
        return False


@admin.register(Transaction)
class TransactionAdmin(admin.ModelAdmin):
    list_display = [
        "created_at",
        "customer_code",
        "tenant",
        "transaction_type",
        "points_display",
        "balance",
        "description",
    ]
    list_filter = ["transaction_type", "tenant"]
    search_fields = ["customer__code", "description"]
    date_hierarchy = "created_at"

    def has_add_permission(self, request):
        return False

    def has_change_permission(self, request, obj=None):
        return False

    def has_delete_permission(self, request, obj=None):
        return False

    def customer_code(self, obj):
        return obj.customer.code

    customer_code.short_description = "Customer"

    def points_display(self, obj):
        if obj.points > 0:
            return format_html('<span style="color:green">+{}</span>', obj.points)
        return format_html('<span style="color:red">{}</span>', obj.points)

    points_display.short_description = "Points"


# ===========================================
# Employee Admin
# ===========================================


@admin.register(Employee)
class EmployeeAdmin(admin.ModelAdmin):
    list_display = ["code", "username", "email", "tenant", "position", "is_active"]
    list_filter = ["is_active", "tenant"]
    search_fields = ["code", "username", "email"]
