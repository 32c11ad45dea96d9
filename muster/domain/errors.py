# muster/domain/errors.py
"""
Error taxonomy shared by the domain, services and API layers.

Business rule violations subclass ValueError / LookupError so callers that
only know the builtin types still catch them.
"""


class MusterError(Exception):
    """Base class for all muster errors."""


class ValidationError(MusterError, ValueError):
    """Input rejected before any mutation (empty name, duplicate name, empty rename...)."""


class CapacityExceeded(MusterError, ValueError):
    """Target group already holds max_size members."""


class AlreadyIsolated(MusterError, ValueError):
    """Participant is already alone in their group."""


class UnknownParticipant(MusterError, LookupError):
    """Participant name absent from the snapshot (or used twice in a swap)."""


class UnknownGroup(MusterError, LookupError):
    """Group index outside the current group view."""


class MalformedCapacityTag(MusterError, ValueError):
    """Canonical capacity tag is not an integer inside the configured range.

    This is a caller contract violation (corrupted upstream data), the engine
    aborts instead of guessing.
    """


class StoreUnavailable(MusterError):
    """Any failure coming from the record store boundary."""
