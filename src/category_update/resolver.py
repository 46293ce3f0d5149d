"""
Ticket status to category mapping.
"""

from .exceptions import UnsupportedStatusError
from .models import TicketStatus


def resolve_category(
    status: TicketStatus | str,
    target_category: int,
    pending_category: int | None,
) -> int:
    """
    Resolve the category a ticket channel should be moved to

    Open tickets go back to the panel's target category, pending tickets go
    to the panel's pending category.

    Args:
        status: Status the ticket is transitioning to
        target_category: Panel's default category
        pending_category: Panel's pending category

    Returns:
        Category ID to move the channel to

    Raises:
        UnsupportedStatusError: If the status has no mapping
        ValueError: If a pending ticket's panel has no pending category
    """
    if status == TicketStatus.OPEN:
        return target_category

    if status == TicketStatus.PENDING:
        if pending_category is None:
            raise ValueError("Pending category is required for pending tickets")
        return pending_category

    raise UnsupportedStatusError(status)
