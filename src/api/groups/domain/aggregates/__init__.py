"""Aggregates and entities for the Groups context."""

from groups.domain.aggregates.group import DIRECTORY_GROUP_CATEGORY, Group
from groups.domain.aggregates.membership import GroupMembership

__all__ = ["DIRECTORY_GROUP_CATEGORY", "Group", "GroupMembership"]
