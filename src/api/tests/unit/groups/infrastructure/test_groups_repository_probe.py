"""Unit tests for Groups repository domain probes."""

from unittest.mock import Mock

from groups.infrastructure.observability import (
    DefaultGroupRepositoryProbe,
    DefaultMembershipRepositoryProbe,
)


class TestGroupSaved:
    """Tests for group_saved probe method."""

    def test_logs_with_correct_parameters(self):
        """Test that group saved event is logged correctly."""
        mock_logger = Mock()
        probe = DefaultGroupRepositoryProbe(logger=mock_logger)

        probe.group_saved(group_id="01ABC123", tenant_id="illinois", created=True)

        mock_logger.info.assert_called_once()
        call_args = mock_logger.info.call_args
        assert call_args[0][0] == "group_saved"
        assert call_args[1]["group_id"] == "01ABC123"
        assert call_args[1]["created"] is True


class TestUnsyncedMembershipsDeleted:
    """Tests for unsynced_memberships_deleted probe method."""

    def test_logs_count(self):
        mock_logger = Mock()
        probe = DefaultMembershipRepositoryProbe(logger=mock_logger)

        probe.unsynced_memberships_deleted(group_id="01ABC123", count=7)

        call_args = mock_logger.info.call_args
        assert call_args[1]["count"] == 7
