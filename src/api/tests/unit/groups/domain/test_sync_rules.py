"""Unit tests for the sync window rules."""

from datetime import UTC, datetime, timedelta

import pytest

from groups.domain.sync import (
    ClaimDecision,
    SyncConfig,
    SyncTimes,
    check_claim,
    resolve_sync_timeouts,
)
from groups.domain.value_objects import TenantId

NOW = datetime(2026, 3, 2, 12, 0, tzinfo=UTC)
HOUR = timedelta(minutes=60)


class TestCheckClaim:
    """Tests for check_claim."""

    def test_proceeds_without_previous_run(self):
        assert check_claim(None, None, NOW, HOUR) == ClaimDecision.PROCEED

    def test_unfinished_run_within_timeout_is_running(self):
        decision = check_claim(NOW - timedelta(minutes=10), None, NOW, HOUR)

        assert decision == ClaimDecision.ALREADY_RUNNING
        assert not decision.may_proceed

    def test_unfinished_run_at_exact_timeout_is_still_running(self):
        assert (
            check_claim(NOW - HOUR, None, NOW, HOUR) == ClaimDecision.ALREADY_RUNNING
        )

    def test_unfinished_run_past_timeout_is_presumed_dead(self):
        decision = check_claim(NOW - HOUR - timedelta(seconds=1), None, NOW, HOUR)

        assert decision == ClaimDecision.PROCEED_AFTER_TIMEOUT
        assert decision.may_proceed

    def test_finished_run_within_threshold_is_already_synced(self):
        decision = check_claim(
            NOW - timedelta(minutes=20),
            NOW - timedelta(minutes=15),
            NOW,
            HOUR,
            threshold=timedelta(minutes=30),
        )

        assert decision == ClaimDecision.ALREADY_SYNCED

    def test_finished_run_past_threshold_proceeds(self):
        decision = check_claim(
            NOW - timedelta(minutes=45),
            NOW - timedelta(minutes=40),
            NOW,
            HOUR,
            threshold=timedelta(minutes=30),
        )

        assert decision == ClaimDecision.PROCEED

    def test_threshold_ignored_when_not_enforced(self):
        decision = check_claim(
            NOW - timedelta(minutes=1), NOW - timedelta(seconds=30), NOW, HOUR
        )

        assert decision == ClaimDecision.PROCEED

    def test_zero_threshold_only_blocks_same_instant(self):
        start = NOW - timedelta(seconds=1)
        assert (
            check_claim(start, start, NOW, HOUR, threshold=timedelta(0))
            == ClaimDecision.PROCEED
        )


class TestResolveSyncTimeouts:
    """Tests for resolve_sync_timeouts."""

    def test_defaults_without_config(self):
        timeouts = resolve_sync_timeouts(None, default_timeout_minutes=45)

        assert timeouts.timeout == timedelta(minutes=45)
        assert timeouts.group_timeout == timedelta(minutes=45)
        assert timeouts.time_threshold is None

    def test_positive_config_values_win(self):
        config = SyncConfig(
            tenant_id=TenantId(value="t"),
            timeout=10,
            group_timeout=5,
            time_threshold=30,
        )

        timeouts = resolve_sync_timeouts(config, default_timeout_minutes=60)

        assert timeouts.timeout == timedelta(minutes=10)
        assert timeouts.group_timeout == timedelta(minutes=5)
        assert timeouts.time_threshold == timedelta(minutes=30)

    @pytest.mark.parametrize("value", [0, -5])
    def test_non_positive_timeouts_fall_back_to_default(self, value):
        config = SyncConfig(tenant_id=TenantId(value="t"), timeout=value, group_timeout=value)

        timeouts = resolve_sync_timeouts(config, default_timeout_minutes=60)

        assert timeouts.timeout == HOUR
        assert timeouts.group_timeout == HOUR
        assert timeouts.time_threshold == timedelta(0)


class TestSyncTimes:
    """Tests for SyncTimes transitions."""

    def test_started_clears_end_time(self):
        times = SyncTimes(
            tenant_id=TenantId(value="t"),
            key="authman",
            start_time=NOW - HOUR,
            end_time=NOW - timedelta(minutes=30),
        )

        started = times.started(NOW)

        assert started.start_time == NOW
        assert started.end_time is None
        assert started.is_running

    def test_finished_keeps_start_time(self):
        times = SyncTimes(tenant_id=TenantId(value="t"), key="authman").started(NOW)

        finished = times.finished(NOW + timedelta(minutes=5))

        assert finished.start_time == NOW
        assert finished.end_time == NOW + timedelta(minutes=5)
        assert not finished.is_running
