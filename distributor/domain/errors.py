"""Domain error taxonomy shared by the core and its adapters."""


class DistributorError(Exception):
    """Base class for every error raised by the distribution core."""


class ValidationError(DistributorError):
    """Malformed submission or registration. Raised before any mutation."""


class NotFoundError(DistributorError):
    """Unknown attendance or agent id."""


class InvalidStateError(DistributorError):
    """Illegal state-machine transition (e.g. completing a WAITING attendance)."""


class CapacityInvariantViolation(DistributorError):
    """The capacity ledger refused a charge/release the distributor expected to succeed."""
