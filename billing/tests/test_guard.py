from datetime import datetime, timedelta, timezone as dt_timezone
from unittest import mock

from django.core.exceptions import ImproperlyConfigured
from django.db import connection
from django.db.models import QuerySet
from django.test import TestCase

from accounts.models import User
from apikeys.models import ApiKey
from billing.models import BillingState, Tier
from billing.services.guard import (
    AccessGuard, DenialReason, needs_daily_reset,
    RESET_CALENDAR_DAY, RESET_DAY_OF_MONTH, RESET_ROLLING_24H,
)
from billing.services.ledger import BillingLedger
from usage.models import UsageLog

NOW = datetime(2026, 3, 15, 12, 0, tzinfo=dt_timezone.utc)


class AccessGuardTest(TestCase):
    def setUp(self):
        self.user = User.objects.create_user(username="alice", id="user1", wallet_address="0xalice")
        self.guard = AccessGuard(clock=lambda: NOW, reset_policy=RESET_DAY_OF_MONTH)

    def _state(self, **fields):
        defaults = {"tier": Tier.FREE, "credits": 20, "daily_usage_count": 0, "last_reset_at": NOW}
        defaults.update(fields)
        return BillingState.objects.create(user=self.user, **defaults)

    def _reload(self):
        return BillingState.objects.get(user=self.user)

    def test_free_user_is_charged_one_credit(self):
        self._state(credits=5, daily_usage_count=3)
        res = self.guard.guard_with_user(self.user.id)
        self.assertTrue(res.allowed)
        self.assertIsNone(res.reason)
        st = self._reload()
        self.assertEqual(st.credits, 4)
        self.assertEqual(st.daily_usage_count, 4)
        logs = UsageLog.objects.filter(user=self.user)
        self.assertEqual(logs.count(), 1)
        self.assertEqual(logs.get().action, "API_RESOURCE")
        self.assertEqual(logs.get().cost, 1)

    def test_usage_log_carries_calling_action(self):
        self._state()
        self.guard.guard_with_user(self.user.id, action="NFT_GENERATE")
        self.assertEqual(UsageLog.objects.get(user=self.user).action, "NFT_GENERATE")

    def test_billing_state_created_lazily(self):
        self.assertFalse(BillingState.objects.filter(user=self.user).exists())
        res = self.guard.guard_with_user(self.user.id)
        self.assertTrue(res.allowed)
        st = self._reload()
        self.assertEqual(st.tier, Tier.FREE)
        self.assertEqual(st.credits, 19)
        self.assertEqual(st.daily_usage_count, 1)
        self.assertEqual(st.last_reset_at, NOW)

    def test_free_daily_limit_exceeded(self):
        self._state(credits=15, daily_usage_count=10)
        res = self.guard.guard_with_user(self.user.id)
        self.assertFalse(res.allowed)
        self.assertEqual(res.reason, DenialReason.DAILY_LIMIT_EXCEEDED)
        self.assertTrue(res.payment_required)
        self.assertEqual(res.payment_info.reference_id, "user1")
        st = self._reload()
        self.assertEqual(st.credits, 15)
        self.assertEqual(st.daily_usage_count, 10)
        self.assertFalse(UsageLog.objects.exists())

    def test_free_without_credits(self):
        self._state(credits=0, daily_usage_count=2)
        res = self.guard.guard_with_user(self.user.id)
        self.assertFalse(res.allowed)
        self.assertEqual(res.reason, DenialReason.INSUFFICIENT_CREDITS)
        self.assertIsNotNone(res.payment_info)
        self.assertEqual(self._reload().daily_usage_count, 2)

    def test_limit_checked_before_credits(self):
        self._state(credits=0, daily_usage_count=10)
        res = self.guard.guard_with_user(self.user.id)
        self.assertEqual(res.reason, DenialReason.DAILY_LIMIT_EXCEEDED)

    def test_paid_user_keeps_credits(self):
        self._state(tier=Tier.PAID, credits=0, daily_usage_count=0)
        for _ in range(3):
            self.assertTrue(self.guard.guard_with_user(self.user.id).allowed)
        st = self._reload()
        self.assertEqual(st.credits, 0)
        self.assertEqual(st.daily_usage_count, 3)
        self.assertEqual(list(UsageLog.objects.values_list("cost", flat=True)), [0, 0, 0])

    def test_paid_user_capped_at_daily_limit(self):
        self._state(tier=Tier.PAID, credits=50, daily_usage_count=997)
        for _ in range(3):
            self.assertTrue(self.guard.guard_with_user(self.user.id).allowed)
        res = self.guard.guard_with_user(self.user.id)
        self.assertFalse(res.allowed)
        self.assertEqual(res.reason, DenialReason.DAILY_LIMIT_EXCEEDED)
        st = self._reload()
        self.assertEqual(st.daily_usage_count, 1000)
        self.assertEqual(st.credits, 50)

    def test_same_day_calls_do_not_reset(self):
        morning = NOW.replace(hour=1)
        self._state(daily_usage_count=4, last_reset_at=morning)
        self.guard.guard_with_user(self.user.id)
        self.guard.guard_with_user(self.user.id)
        st = self._reload()
        self.assertEqual(st.daily_usage_count, 6)
        self.assertEqual(st.last_reset_at, morning)

    def test_new_day_resets_counter(self):
        self._state(credits=8, daily_usage_count=10, last_reset_at=NOW - timedelta(days=1))
        res = self.guard.guard_with_user(self.user.id)
        self.assertTrue(res.allowed)
        st = self._reload()
        self.assertEqual(st.daily_usage_count, 1)
        self.assertEqual(st.credits, 7)
        self.assertEqual(st.last_reset_at, NOW)

    def test_reset_persisted_even_when_denied(self):
        self._state(credits=0, daily_usage_count=10, last_reset_at=NOW - timedelta(days=1))
        res = self.guard.guard_with_user(self.user.id)
        self.assertEqual(res.reason, DenialReason.INSUFFICIENT_CREDITS)
        st = self._reload()
        self.assertEqual(st.daily_usage_count, 0)
        self.assertEqual(st.last_reset_at, NOW)

    def test_missing_user_id_requires_authentication(self):
        res = self.guard.guard_with_user(None)
        self.assertEqual(res.reason, DenialReason.AUTHENTICATION_REQUIRED)
        self.assertEqual(res.payment_info.reference_id, "anonymous")


class CredentialGuardTest(TestCase):
    def setUp(self):
        self.user = User.objects.create_user(username="bob", wallet_address="0xbob")
        self.key = ApiKey.objects.create(user=self.user, name="ci")
        self.guard = AccessGuard(clock=lambda: NOW)

    def test_anonymous_caller(self):
        res = self.guard.access_guard()
        self.assertFalse(res.allowed)
        self.assertEqual(res.reason, DenialReason.AUTHENTICATION_REQUIRED)
        self.assertTrue(res.payment_required)
        self.assertIsNotNone(res.payment_info)
        self.assertEqual(res.payment_info.reference_id, "anonymous")

    def test_unknown_wallet_is_anonymous(self):
        res = self.guard.access_guard(wallet_address="0xnobody")
        self.assertEqual(res.reason, DenialReason.AUTHENTICATION_REQUIRED)
        self.assertIsNotNone(res.payment_info)

    def test_wallet_resolves_user(self):
        res = self.guard.access_guard(wallet_address="0xbob")
        self.assertTrue(res.allowed)
        self.assertEqual(UsageLog.objects.get().user_id, self.user.id)

    def test_api_key_resolves_user_and_is_tracked(self):
        res = self.guard.access_guard(api_key=self.key.key)
        self.assertTrue(res.allowed)
        self.key.refresh_from_db()
        self.assertEqual(self.key.usage_count, 1)
        self.assertIsNotNone(self.key.last_used_at)

    def test_api_key_wins_over_wallet(self):
        other = User.objects.create_user(username="carol", wallet_address="0xcarol")
        self.guard.access_guard(api_key=self.key.key, wallet_address="0xcarol")
        self.assertEqual(UsageLog.objects.get().user_id, self.user.id)
        self.assertFalse(BillingState.objects.filter(user=other).exists())

    def test_unknown_api_key(self):
        res = self.guard.access_guard(api_key="bk_does_not_exist", wallet_address="0xbob")
        self.assertFalse(res.allowed)
        self.assertEqual(res.reason, DenialReason.INVALID_CREDENTIAL)
        self.assertIsNone(res.payment_info)
        self.assertFalse(UsageLog.objects.exists())
        self.assertFalse(BillingState.objects.exists())

    def test_inactive_api_key(self):
        self.key.active = False
        self.key.save(update_fields=["active"])
        res = self.guard.access_guard(api_key=self.key.key)
        self.assertEqual(res.reason, DenialReason.INVALID_CREDENTIAL)
        self.assertFalse(UsageLog.objects.exists())
        self.key.refresh_from_db()
        self.assertEqual(self.key.usage_count, 0)

    def test_as_dict_shapes(self):
        self.assertEqual(self.guard.access_guard(api_key=self.key.key).as_dict(), {"allowed": True})
        denied = self.guard.access_guard().as_dict()
        self.assertEqual(denied["reason"], "AuthenticationRequired")
        self.assertTrue(denied["paymentRequired"])
        self.assertEqual(denied["paymentInfo"]["referenceId"], "anonymous")
        invalid = self.guard.access_guard(api_key="nope").as_dict()
        self.assertEqual(invalid, {"allowed": False, "reason": "InvalidCredential"})


class DailyResetPolicyTest(TestCase):
    def test_day_of_month_crosses_midnight(self):
        late = datetime(2026, 3, 14, 23, 59, tzinfo=dt_timezone.utc)
        early = datetime(2026, 3, 15, 0, 1, tzinfo=dt_timezone.utc)
        self.assertTrue(needs_daily_reset(late, early, RESET_DAY_OF_MONTH))

    def test_day_of_month_ignores_month_change_on_same_day_number(self):
        last = datetime(2026, 1, 5, 12, 0, tzinfo=dt_timezone.utc)
        now = datetime(2026, 2, 5, 12, 0, tzinfo=dt_timezone.utc)
        self.assertFalse(needs_daily_reset(last, now, RESET_DAY_OF_MONTH))
        self.assertTrue(needs_daily_reset(last, now, RESET_CALENDAR_DAY))

    def test_rolling_window(self):
        last = datetime(2026, 3, 14, 23, 59, tzinfo=dt_timezone.utc)
        self.assertFalse(needs_daily_reset(last, last + timedelta(hours=23), RESET_ROLLING_24H))
        self.assertTrue(needs_daily_reset(last, last + timedelta(hours=24), RESET_ROLLING_24H))

    def test_unknown_policy(self):
        with self.assertRaises(ImproperlyConfigured):
            needs_daily_reset(NOW, NOW, "weekly")


class RowLockTest(TestCase):
    def setUp(self):
        self.user = User.objects.create_user(username="dave")
        self.guard = AccessGuard(clock=lambda: NOW)

    def test_state_read_with_select_for_update_inside_transaction(self):
        baseline = len(connection.savepoint_ids)
        seen = []
        original = QuerySet.select_for_update

        def spy(qs, *args, **kwargs):
            seen.append((qs.model, len(connection.savepoint_ids)))
            return original(qs, *args, **kwargs)

        with mock.patch.object(QuerySet, "select_for_update", autospec=True, side_effect=spy):
            self.assertTrue(self.guard.guard_with_user(self.user.id).allowed)

        self.assertEqual(len(seen), 1)
        model, depth = seen[0]
        self.assertIs(model, BillingState)
        # verrou pris dans l'atomic du garde, pas seulement celui du test
        self.assertGreater(depth, baseline)

    def test_unlocked_read_never_used(self):
        with mock.patch.object(BillingLedger, "get", autospec=True) as unlocked, \
                mock.patch.object(BillingLedger, "get_for_update", autospec=True,
                                  side_effect=BillingLedger.get_for_update) as locked:
            self.guard.guard_with_user(self.user.id)
            BillingState.objects.filter(user=self.user).update(daily_usage_count=10)
            self.guard.guard_with_user(self.user.id)
        unlocked.assert_not_called()
        self.assertEqual(locked.call_count, 2)
