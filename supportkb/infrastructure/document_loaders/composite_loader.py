import logging
from pathlib import Path

from supportkb.core.exceptions import DocumentLoadError

from .pdf_loader import PDFLoader
from .docx_loader import DocxLoader
from .text_loader import TextLoader

logger = logging.getLogger(__name__)


class CompositeLoader:
    """Dispatches to the first loader supporting the file; text otherwise."""

    def __init__(self):
        self._fallback = TextLoader()
        self._loaders = [
            PDFLoader(),
            DocxLoader(),
            self._fallback,
        ]

    def supports(self, file_path: Path) -> bool:
        return any(loader.supports(file_path) for loader in self._loaders)

    def load(self, file_path: Path) -> str:
        loader = next(
            (loader for loader in self._loaders if loader.supports(file_path)),
            self._fallback,
        )
        logger.debug(f"Loading {file_path.name} with {type(loader).__name__}")
        try:
            return loader.load(file_path)
        except DocumentLoadError:
            raise
        except Exception as e:
            raise DocumentLoadError(file_path, f"{type(e).__name__}: {e}") from e
