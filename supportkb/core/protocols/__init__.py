"""Protocol interfaces for dependency injection."""
from .loader import DocumentLoaderProtocol
from .ticket import TicketProtocol

__all__ = [
    "DocumentLoaderProtocol",
    "TicketProtocol",
]
