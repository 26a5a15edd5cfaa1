class TrackerError(Exception):
    """Base class for synchronization and scheduling failures."""


class LocalNotFound(TrackerError):
    """The requested student profile does not exist in the local store."""


class RemoteError(TrackerError):
    """The judge API answered with an error we cannot recover from in this run."""


class TransientRemoteError(RemoteError):
    """Timeout, connection failure, rate limiting or a 5xx answer."""


class RemoteNotFound(RemoteError):
    """The handle does not exist on the judge."""


class SyncAlreadyRunning(TrackerError):
    """Another synchronization currently holds the lock for this student."""


class ScheduleValidationError(TrackerError, ValueError):
    """A schedule expression or timezone could not be parsed."""
