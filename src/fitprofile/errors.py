"""Exceptions raised by the settings workflow."""


class BackendError(RuntimeError):
    """A table backend call failed. ``message`` is the backend's error text."""

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class SnapshotFetchError(RuntimeError):
    """The profile read failed, so no snapshot can be assembled."""


class ProfileNotFoundError(SnapshotFetchError):
    pass


class WriteError(RuntimeError):
    """One or both sub-writes of an update failed.

    ``failed`` names the failing sub-writes ("profile", "stats"). Sub-writes
    that succeeded stay persisted.
    """

    def __init__(self, message: str, failed: list[str] | None = None) -> None:
        super().__init__(message)
        self.failed = failed or []


class SettingsStateError(RuntimeError):
    """The requested operation is not valid in the controller's current state."""


class SubmitInProgressError(SettingsStateError):
    pass
