from pathlib import Path

from supportkb.core.exceptions import DocumentLoadError


class TextLoader:
    """UTF-8 text documents; also the fallback for unknown extensions."""

    EXTENSIONS = {".md", ".mdx", ".markdown", ".html", ".htm", ".txt", ".json"}

    def supports(self, file_path: Path) -> bool:
        return file_path.suffix.lower() in self.EXTENSIONS

    def load(self, file_path: Path) -> str:
        try:
            return file_path.read_text(encoding="utf-8-sig")
        except UnicodeDecodeError as e:
            raise DocumentLoadError(file_path, f"not valid UTF-8 ({e.reason})") from e
