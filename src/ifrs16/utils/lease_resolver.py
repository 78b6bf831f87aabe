"""Utility for resolving lease numbers to IDs."""

from ifrs16.domain.lease import LeaseService


def resolve_lease(lease_service: LeaseService, lease: str | int) -> int:
    """Resolve lease number or ID to lease ID.

    A string is looked up as a lease number first, so numeric lease numbers
    win over IDs.

    Args:
        lease_service: LeaseService instance
        lease: Lease number (str) or ID (int or string representation of int)

    Returns:
        Lease ID

    Raises:
        ValueError: If lease is not found
    """
    if isinstance(lease, int):
        if lease_service.get_lease(lease) is None:
            raise ValueError(f"Lease ID {lease} not found")
        return lease

    by_number = lease_service.get_lease_by_number(lease)
    if by_number is not None:
        return by_number.id

    try:
        lease_id = int(lease)
    except ValueError:
        raise ValueError(f"Lease '{lease}' not found")

    if lease_service.get_lease(lease_id) is None:
        raise ValueError(f"Lease '{lease}' not found")
    return lease_id
