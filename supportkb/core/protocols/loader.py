"""Document loader protocol for dependency injection."""
from pathlib import Path
from typing import Protocol, runtime_checkable


@runtime_checkable
class DocumentLoaderProtocol(Protocol):
    """Protocol for turning a file into text."""

    def supports(self, file_path: Path) -> bool:
        """Check whether the loader handles this file type.

        Args:
            file_path: Path to the document.

        Returns:
            True if the loader can read it.
        """
        ...

    def load(self, file_path: Path) -> str:
        """Read the document as text.

        Args:
            file_path: Path to the document.

        Returns:
            Document text.

        Raises:
            DocumentLoadError: If the file cannot be read or decoded.
        """
        ...
