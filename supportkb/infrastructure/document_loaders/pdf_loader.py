import logging
from pathlib import Path

from pypdf import PdfReader

from supportkb.core.exceptions import DocumentLoadError

logger = logging.getLogger(__name__)


class PDFLoader:
    """PDF text extraction; pages without a text layer are skipped."""

    def supports(self, file_path: Path) -> bool:
        return file_path.suffix.lower() == ".pdf"

    def load(self, file_path: Path) -> str:
        reader = PdfReader(file_path)
        if reader.is_encrypted:
            raise DocumentLoadError(file_path, "encrypted PDF")

        pages = [(page.extract_text() or "").strip() for page in reader.pages]
        extracted = [text for text in pages if text]
        if len(extracted) < len(pages):
            logger.debug(
                f"{file_path.name}: {len(pages) - len(extracted)}/{len(pages)} pages without text"
            )
        return "\n\n".join(extracted)
