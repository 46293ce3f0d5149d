"""
Data model for category updates.

QueueEntry and Panel are read from PostgreSQL and never mutated here.
TicketStatusUpdate is the transient event handed to Kafka.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Sequence


class TicketStatus(str, Enum):
    """Lifecycle status a ticket is transitioning to."""

    OPEN = "OPEN"
    PENDING = "PENDING"
    CLOSED = "CLOSED"


@dataclass(frozen=True)
class QueueEntry:
    """A queued request to move a ticket's channel to another category."""

    guild_id: int
    ticket_id: int
    channel_id: int | None
    panel_id: int | None
    new_status: TicketStatus | str

    @property
    def status_value(self) -> str:
        """Status text as stored, including statuses outside TicketStatus"""
        if isinstance(self.new_status, TicketStatus):
            return self.new_status.value
        return self.new_status

    @classmethod
    def from_row(cls, row: Sequence[Any]) -> "QueueEntry":
        """
        Build an entry from a queue query row

        Statuses outside TicketStatus are kept as text so the entry can be
        skipped on its own instead of failing the whole ready set.

        Args:
            row: (guild_id, ticket_id, channel_id, panel_id, new_status)

        Returns:
            QueueEntry instance

        Raises:
            ValueError: If an identifier is not an integer
        """
        guild_id, ticket_id, channel_id, panel_id, new_status = row
        try:
            status = TicketStatus(new_status)
        except ValueError:
            status = str(new_status)
        return cls(
            guild_id=int(guild_id),
            ticket_id=int(ticket_id),
            channel_id=int(channel_id) if channel_id is not None else None,
            panel_id=int(panel_id) if panel_id is not None else None,
            new_status=status,
        )


@dataclass(frozen=True)
class Panel:
    """Panel configuration holding the categories tickets are moved to."""

    panel_id: int
    target_category: int
    pending_category: int | None = None

    @classmethod
    def from_row(cls, row: Sequence[Any]) -> "Panel":
        panel_id, target_category, pending_category = row
        return cls(
            panel_id=int(panel_id),
            target_category=int(target_category),
            pending_category=int(pending_category) if pending_category is not None else None,
        )


@dataclass(frozen=True)
class TicketStatusUpdate:
    """Outbound event asking a consumer to move a ticket channel."""

    guild_id: int
    ticket_id: int
    channel_id: int
    new_category_id: int

    @property
    def key(self) -> str:
        """Message key grouping all updates for one ticket"""
        return f"{self.guild_id}:{self.ticket_id}"

    def to_dict(self) -> dict[str, Any]:
        """
        Convert the event to its wire shape

        Returns:
            Dictionary ready for JSON serialisation
        """
        return {
            "ticket": {
                "guild_id": self.guild_id,
                "id": self.ticket_id,
            },
            "channel_id": self.channel_id,
            "new_category_id": self.new_category_id,
        }
