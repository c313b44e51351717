"""Ticket protocol consumed by ticket retrieval."""
from typing import Protocol, runtime_checkable


@runtime_checkable
class TicketProtocol(Protocol):
    """Anything exposing a ticket subject and body."""

    subject: str
    body: str
