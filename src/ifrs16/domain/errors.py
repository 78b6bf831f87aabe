"""Shared domain error messages and error types."""


class DomainError(ValueError):
    """Base class for domain-level errors.

    Subclasses provide semantic categories while preserving ValueError
    compatibility for existing error handling.
    """


class ValidationError(DomainError):
    """Malformed lease terms or other invalid input rejected before calculation."""


class NotFoundError(DomainError):
    """Requested lease or calculation does not exist."""


class ConflictError(DomainError):
    """Uniqueness or concurrent-update conflict, such as a double post."""


class PersistenceError(DomainError):
    """The lease or calculation store failed to read or write."""


class IntegrationError(Exception):
    """The ERP system was unreachable, timed out or returned garbage."""


def lease_not_found(lease_id: int) -> str:
    """Return message for missing lease by ID."""
    return f"Lease {lease_id} not found"


def lease_number_not_found(lease_number: str) -> str:
    """Return message for missing lease by lease number."""
    return f"Lease '{lease_number}' not found"


def duplicate_lease_number(lease_number: str) -> str:
    """Return message for a lease number that is already taken."""
    return f"Lease number '{lease_number}' already exists"


def duplicate_calculation(lease_id: int, period_date) -> str:
    """Return message for a second calculation of the same lease period."""
    return f"Lease {lease_id} already has a calculation for {period_date.isoformat()}"


def already_posted(calculation_ids: list[int]) -> str:
    """Return message when some calculations were posted by someone else."""
    ids = ", ".join(str(i) for i in calculation_ids)
    return f"Calculations already posted to ERP: {ids}"


def not_claimed(batch_reference: str, calculation_ids: list[int]) -> str:
    """Return message when a batch tries to post calculations it does not hold."""
    ids = ", ".join(str(i) for i in calculation_ids)
    return f"Calculations not held by batch {batch_reference}: {ids}"


def lease_has_postings(lease_number: str, count: int) -> str:
    """Return message for deleting a lease whose calculations reached the ERP."""
    return f"Lease '{lease_number}' has {count} calculations posted to the ERP and cannot be deleted"


def in_flight(calculation_ids: list[int]) -> str:
    """Return message when every calculation asked for is held by another batch."""
    ids = ", ".join(str(i) for i in calculation_ids)
    return f"Calculations already being posted to ERP: {ids}"
