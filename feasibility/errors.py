"""Exceptions raised by the feasibility engine."""


class FeasibilityError(Exception):
    """Base class for engine errors."""


class PersistenceError(FeasibilityError):
    """A record or snapshot store failed to read or write.

    The engine never retries; the caller decides whether to re-issue the write.
    """


class SnapshotImportError(FeasibilityError, ValueError):
    """Serialized snapshot state could not be imported."""
