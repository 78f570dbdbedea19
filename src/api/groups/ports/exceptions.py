"""Domain exceptions for the Groups bounded context.

These exceptions represent errors raised by the directory sync engine and
its collaborators. Guard rejections are expected and recoverable; the
presentation layer maps each of them to an HTTP status.
"""


class SyncError(Exception):
    """Base class for directory synchronization errors."""

    pass


class SyncAlreadyRunningError(SyncError):
    """Raised when another run holds the sync window for the same scope.

    The previous run has not closed its window and has not yet exceeded the
    configured timeout, so it is presumed to still be in flight.
    """

    pass


class AlreadySyncedError(SyncError):
    """Raised when a tenant-wide pass ran too recently.

    Only scheduled passes enforce the time threshold; manual triggers
    bypass it.
    """

    pass


class MissingSyncConfigError(SyncError):
    """Raised when the time threshold is enforced but the tenant has no sync config."""

    pass


class SyncSetupError(SyncError):
    """Raised when a pass cannot load the configuration it needs to run."""

    pass


class GroupNotFoundError(SyncError):
    """Raised when a sync is requested for a group that does not exist in the tenant."""

    pass


class GroupNotSyncEligibleError(SyncError):
    """Raised when a sync is requested for a group not mirrored from the directory.

    A group is eligible only when directory sync is enabled on it and it
    carries a non-empty directory key.
    """

    pass


class DirectoryError(Exception):
    """Raised when the external directory cannot be queried."""

    pass


class IdentityResolutionError(Exception):
    """Raised when the identity service cannot resolve external ids."""

    pass
