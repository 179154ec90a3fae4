"""Tests for LedgerService: accrual, redemption and their guarantees."""

import threading
from decimal import Decimal
from unittest.mock import patch

import pytest
from django.db import OperationalError, connection

from tallyman.db import is_retryable_error, retry_on_conflict
from tallyman.exceptions import TallymanError
from tallyman.models import Customer, CustomerStatus, Reward, RewardStatus, Transaction, TransactionType, Visit
from tallyman.services.history import HistoryService
from tallyman.services.ledger import MAX_POINTS, LedgerService
from tallyman.signals import reward_redeemed, visit_recorded


pytestmark = pytest.mark.django_db


class TestRecordVisit:
    """Tests for LedgerService.record_visit."""

    def test_points_default_to_amount(self, customer):
        visit = LedgerService.record_visit("acme", "CUST-001", amount="42.90")

        customer.refresh_from_db()
        assert visit.amount == Decimal("42.90")
        assert visit.points == 42
        assert customer.points_balance == 42

    def test_points_floor_unrounded_amount(self, customer):
        """Default points come from the amount as given, before cent rounding."""
        visit = LedgerService.record_visit("acme", "CUST-001", amount="19.999")

        assert visit.points == 19
        assert visit.amount == Decimal("20.00")
        assert LedgerService.get_balance("acme", "CUST-001") == 19

    def test_largest_amount(self, customer):
        visit = LedgerService.record_visit("acme", "CUST-001", amount="9999999999.99")
        assert visit.points == 9999999999

    def test_explicit_points(self, customer):
        visit = LedgerService.record_visit("acme", "CUST-001", amount=10, points=25)
        assert visit.points == 25
        assert LedgerService.get_balance("acme", "CUST-001") == 25

    def test_explicit_zero_points(self, customer):
        LedgerService.record_visit("acme", "CUST-001", amount=80, points=0)
        assert LedgerService.get_balance("acme", "CUST-001") == 0
        assert Transaction.objects.get().points == 0

    def test_zero_amount(self, customer):
        visit = LedgerService.record_visit("acme", "CUST-001", amount=0)
        assert visit.points == 0

    def test_writes_earned_transaction(self, customer):
        visit = LedgerService.record_visit("acme", "CUST-001", amount=50, created_by="alice")

        tx = Transaction.objects.get(customer=customer)
        assert tx.transaction_type == TransactionType.POINTS_EARNED
        assert tx.points == 50
        assert tx.balance == 50
        assert tx.visit == visit
        assert tx.created_by == "alice"
        assert tx.description == "Earned points from visit - $50.00 spent"

    def test_accumulates(self, customer):
        LedgerService.record_visit("acme", "CUST-001", amount=20)
        LedgerService.record_visit("acme", "CUST-001", amount=15)

        assert LedgerService.get_balance("acme", "CUST-001") == 35
        balances = list(Transaction.objects.order_by("id").values_list("balance", flat=True))
        assert balances == [20, 35]

    @pytest.mark.parametrize(
        "amount",
        [None, "", "abc", -1, "-0.01", True, "NaN", "Infinity", "9999999999.995", "1e30"],
    )
    def test_invalid_amount(self, customer, amount):
        with pytest.raises(TallymanError) as exc:
            LedgerService.record_visit("acme", "CUST-001", amount=amount)
        assert exc.value.code == "INVALID_ARGUMENT"
        assert Visit.objects.count() == 0

    @pytest.mark.parametrize("points", [-5, "1.5", "x", False, 10**20, MAX_POINTS + 1])
    def test_invalid_points(self, customer, points):
        with pytest.raises(TallymanError) as exc:
            LedgerService.record_visit("acme", "CUST-001", amount=10, points=points)
        assert exc.value.code == "INVALID_ARGUMENT"
        assert LedgerService.get_balance("acme", "CUST-001") == 0

    def test_max_points(self, customer):
        LedgerService.record_visit("acme", "CUST-001", amount=1, points=MAX_POINTS)
        LedgerService.record_visit("acme", "CUST-001", amount=1, points=MAX_POINTS)
        assert LedgerService.get_balance("acme", "CUST-001") == 2 * MAX_POINTS

    def test_missing_customer_code(self, customer):
        with pytest.raises(TallymanError) as exc:
            LedgerService.record_visit("acme", "", amount=10)
        assert exc.value.code == "INVALID_ARGUMENT"

    def test_unknown_customer(self, tenant):
        with pytest.raises(TallymanError) as exc:
            LedgerService.record_visit("acme", "CUST-404", amount=10)
        assert exc.value.code == "CUSTOMER_NOT_FOUND"

    def test_unknown_tenant(self, customer):
        with pytest.raises(TallymanError) as exc:
            LedgerService.record_visit("nowhere", "CUST-001", amount=10)
        assert exc.value.code == "TENANT_NOT_FOUND"

    def test_customer_of_other_tenant(self, customer, other_tenant):
        """A tenant cannot credit another tenant's customer."""
        with pytest.raises(TallymanError) as exc:
            LedgerService.record_visit("globex", "CUST-001", amount=10)
        assert exc.value.code == "CUSTOMER_NOT_FOUND"
        customer.refresh_from_db()
        assert customer.points_balance == 0

    def test_inactive_customer(self, customer):
        Customer.objects.filter(pk=customer.pk).update(status=CustomerStatus.INACTIVE)

        with pytest.raises(TallymanError) as exc:
            LedgerService.record_visit("acme", "CUST-001", amount=10)
        assert exc.value.code == "CUSTOMER_INACTIVE"

    def test_failure_leaves_nothing_behind(self, customer):
        """Visit, balance and ledger row are written together or not at all."""
        with patch.object(HistoryService, "append", side_effect=RuntimeError("boom")):
            with pytest.raises(RuntimeError):
                LedgerService.record_visit("acme", "CUST-001", amount=50)

        customer.refresh_from_db()
        assert customer.points_balance == 0
        assert Visit.objects.count() == 0
        assert Transaction.objects.count() == 0

    def test_sends_signal_on_commit(self, customer, django_capture_on_commit_callbacks):
        received = []

        def handler(sender, visit, balance, **kwargs):
            received.append((visit.pk, balance))

        visit_recorded.connect(handler)
        try:
            with django_capture_on_commit_callbacks(execute=True):
                visit = LedgerService.record_visit("acme", "CUST-001", amount=12)
        finally:
            visit_recorded.disconnect(handler)

        assert received == [(visit.pk, 12)]


class TestRedeemReward:
    """Tests for LedgerService.redeem_reward."""

    def test_redeem(self, funded_customer, reward):
        result = LedgerService.redeem_reward("acme", "CUST-001", "RWD-COFFEE", created_by="alice")

        funded_customer.refresh_from_db()
        reward.refresh_from_db()
        assert result.remaining_points == 20
        assert result.reward_code == "RWD-COFFEE"
        assert result.customer_code == "CUST-001"
        assert funded_customer.points_balance == 20
        assert reward.redemption_count == 1

        tx = Transaction.objects.get(pk=result.transaction_id)
        assert tx.transaction_type == TransactionType.REWARD_REDEEMED
        assert tx.points == -30
        assert tx.balance == 20
        assert tx.reward == reward
        assert tx.description == "Redeemed reward: Free Coffee"
        assert tx.created_by == "alice"

    def test_spend_whole_balance(self, customer, reward):
        LedgerService.record_visit("acme", "CUST-001", amount=30)
        result = LedgerService.redeem_reward("acme", "CUST-001", "RWD-COFFEE")
        assert result.remaining_points == 0

    def test_insufficient_points(self, customer, reward):
        LedgerService.record_visit("acme", "CUST-001", amount=20)

        with pytest.raises(TallymanError) as exc:
            LedgerService.redeem_reward("acme", "CUST-001", "RWD-COFFEE")

        assert exc.value.code == "INSUFFICIENT_POINTS"
        assert exc.value.message == "Insufficient points"
        assert exc.value.data == {"available": 20, "requested": 30}
        reward.refresh_from_db()
        assert reward.redemption_count == 0
        assert LedgerService.get_balance("acme", "CUST-001") == 20
        assert not Transaction.objects.filter(transaction_type=TransactionType.REWARD_REDEEMED).exists()

    def test_second_redemption_fails(self, funded_customer, reward):
        """50 points buy one 30-point reward, not two."""
        LedgerService.redeem_reward("acme", "CUST-001", "RWD-COFFEE")

        with pytest.raises(TallymanError) as exc:
            LedgerService.redeem_reward("acme", "CUST-001", "RWD-COFFEE")

        assert exc.value.code == "INSUFFICIENT_POINTS"
        reward.refresh_from_db()
        assert reward.redemption_count == 1
        assert LedgerService.get_balance("acme", "CUST-001") == 20

    def test_stale_read_cannot_overspend(self, funded_customer, reward):
        """
        A redemption working from an outdated balance loses the guarded write.

        Simulates the second of two concurrent redemptions: it read 50 points
        before the first one committed its debit.
        """
        stale = Customer.objects.get(pk=funded_customer.pk)
        LedgerService.redeem_reward("acme", "CUST-001", "RWD-COFFEE")

        with patch.object(LedgerService, "_get_active_customer_for_update", return_value=stale):
            with pytest.raises(TallymanError) as exc:
                LedgerService.redeem_reward("acme", "CUST-001", "RWD-COFFEE")

        assert exc.value.code == "INSUFFICIENT_POINTS"
        assert exc.value.data["available"] == 20
        reward.refresh_from_db()
        assert reward.redemption_count == 1
        assert LedgerService.get_balance("acme", "CUST-001") == 20
        assert Transaction.objects.filter(transaction_type=TransactionType.REWARD_REDEEMED).count() == 1

    def test_reward_of_other_tenant(self, funded_customer, foreign_reward):
        """Rewards are only looked up in the caller's catalog."""
        with pytest.raises(TallymanError) as exc:
            LedgerService.redeem_reward("acme", "CUST-001", "RWD-WASH")

        assert exc.value.code == "REWARD_NOT_FOUND"
        foreign_reward.refresh_from_db()
        assert foreign_reward.redemption_count == 0
        assert LedgerService.get_balance("acme", "CUST-001") == 50

    def test_unknown_reward(self, funded_customer):
        with pytest.raises(TallymanError) as exc:
            LedgerService.redeem_reward("acme", "CUST-001", "RWD-NOPE")
        assert exc.value.code == "REWARD_NOT_FOUND"

    def test_unknown_customer(self, reward):
        with pytest.raises(TallymanError) as exc:
            LedgerService.redeem_reward("acme", "CUST-404", "RWD-COFFEE")
        assert exc.value.code == "CUSTOMER_NOT_FOUND"

    def test_missing_ids(self, tenant):
        with pytest.raises(TallymanError) as exc:
            LedgerService.redeem_reward("acme", "CUST-001", None)
        assert exc.value.code == "INVALID_ARGUMENT"

    def test_inactive_reward(self, funded_customer, reward):
        Reward.objects.filter(pk=reward.pk).update(status=RewardStatus.INACTIVE)

        with pytest.raises(TallymanError) as exc:
            LedgerService.redeem_reward("acme", "CUST-001", "RWD-COFFEE")
        assert exc.value.code == "REWARD_INACTIVE"

    def test_inactive_reward_allowed_when_not_enforced(self, funded_customer, reward, settings):
        settings.TALLYMAN = {**settings.TALLYMAN, "ENFORCE_REWARD_STATUS": False}
        Reward.objects.filter(pk=reward.pk).update(status=RewardStatus.INACTIVE)

        result = LedgerService.redeem_reward("acme", "CUST-001", "RWD-COFFEE")
        assert result.remaining_points == 20

    def test_failure_leaves_nothing_behind(self, funded_customer, reward):
        with patch.object(HistoryService, "append", side_effect=RuntimeError("boom")):
            with pytest.raises(RuntimeError):
                LedgerService.redeem_reward("acme", "CUST-001", "RWD-COFFEE")

        reward.refresh_from_db()
        assert reward.redemption_count == 0
        assert LedgerService.get_balance("acme", "CUST-001") == 50

    def test_sends_signal_on_commit(self, funded_customer, reward, django_capture_on_commit_callbacks):
        received = []

        def handler(sender, reward, customer, transaction, **kwargs):
            received.append((reward.code, customer.code, transaction.points))

        reward_redeemed.connect(handler)
        try:
            with django_capture_on_commit_callbacks(execute=True):
                LedgerService.redeem_reward("acme", "CUST-001", "RWD-COFFEE")
        finally:
            reward_redeemed.disconnect(handler)

        assert received == [("RWD-COFFEE", "CUST-001", -30)]


@pytest.mark.django_db(transaction=True)
def test_concurrent_redemptions_single_success(customer, reward, settings):
    """Four simultaneous redemptions of the last 30 points: exactly one wins."""
    settings.TALLYMAN = {**settings.TALLYMAN, "CONFLICT_RETRIES": 10, "CONFLICT_RETRY_DELAY": 0.01}
    LedgerService.record_visit("acme", "CUST-001", amount=30)

    barrier = threading.Barrier(4)
    outcomes = []

    def redeem():
        try:
            barrier.wait()
            LedgerService.redeem_reward("acme", "CUST-001", "RWD-COFFEE")
            outcomes.append("ok")
        except TallymanError as exc:
            outcomes.append(exc.code)
        finally:
            connection.close()

    threads = [threading.Thread(target=redeem) for _ in range(4)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    assert sorted(outcomes) == ["INSUFFICIENT_POINTS"] * 3 + ["ok"]
    reward.refresh_from_db()
    assert reward.redemption_count == 1
    assert LedgerService.get_balance("acme", "CUST-001") == 0
    assert Transaction.objects.filter(transaction_type=TransactionType.REWARD_REDEEMED).count() == 1


class TestConservation:
    """Balance always equals the sum of the customer's ledger entries."""

    def test_balance_matches_ledger(self, customer, reward):
        LedgerService.record_visit("acme", "CUST-001", amount=25)
        LedgerService.record_visit("acme", "CUST-001", amount=40)
        LedgerService.redeem_reward("acme", "CUST-001", "RWD-COFFEE")
        LedgerService.record_visit("acme", "CUST-001", amount=3, points=7)
        with pytest.raises(TallymanError):
            LedgerService.redeem_reward("acme", "CUST-001", "RWD-NOPE")

        balance = LedgerService.get_balance("acme", "CUST-001")
        assert balance == 25 + 40 - 30 + 7
        assert HistoryService.replay_balance("acme", "CUST-001") == balance
        assert HistoryService.audit() == []

    def test_tenants_are_independent(self, customer, other_tenant):
        twin = Customer.objects.create(
            tenant=other_tenant,
            code="CUST-002",
            first_name="John",
            last_name="Doe",
            email="john@example.com",
        )
        LedgerService.record_visit("acme", "CUST-001", amount=10)
        LedgerService.record_visit("globex", "CUST-002", amount=99)

        from tallyman.services import customer as customer_service

        assert customer_service.points_by_tenant("john@example.com") == {"acme": 10, "globex": 99}
        twin.refresh_from_db()
        assert twin.points_balance == 99


class TestRetryOnConflict:
    """Tests for the retry_on_conflict decorator."""

    def test_retries_then_succeeds(self):
        calls = []

        @retry_on_conflict
        def flaky():
            calls.append(1)
            if len(calls) < 3:
                raise OperationalError("database is locked")
            return "ok"

        with patch("tallyman.db.time.sleep") as sleep:
            assert flaky() == "ok"

        assert len(calls) == 3
        assert sleep.call_count == 2

    def test_exhausted_raises_ledger_conflict(self, settings):
        settings.TALLYMAN = {**settings.TALLYMAN, "CONFLICT_RETRIES": 1}

        @retry_on_conflict
        def always_locked():
            raise OperationalError("deadlock detected")

        with patch("tallyman.db.time.sleep"):
            with pytest.raises(TallymanError) as exc:
                always_locked()

        assert exc.value.code == "LEDGER_CONFLICT"
        assert isinstance(exc.value.__cause__, OperationalError)

    def test_other_errors_not_retried(self):
        calls = []

        @retry_on_conflict
        def broken():
            calls.append(1)
            raise OperationalError("no such table: tallyman_customer")

        with pytest.raises(OperationalError):
            broken()
        assert len(calls) == 1

    def test_is_retryable_error(self):
        assert is_retryable_error(OperationalError("database is locked"))
        assert is_retryable_error(OperationalError(1213, "Deadlock found"))
        assert not is_retryable_error(OperationalError("syntax error"))
        assert not is_retryable_error(ValueError("database is locked"))
