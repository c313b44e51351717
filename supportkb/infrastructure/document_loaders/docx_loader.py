from pathlib import Path

from docx import Document


class DocxLoader:
    """Word documents; heading styles become markdown headings."""

    def supports(self, file_path: Path) -> bool:
        return file_path.suffix.lower() == ".docx"

    def _heading_level(self, style_name: str) -> int:
        if style_name == "Title":
            return 1
        if style_name.startswith("Heading "):
            level = style_name.removeprefix("Heading ").strip()
            if level.isdigit():
                return min(int(level), 6)
        return 0

    def load(self, file_path: Path) -> str:
        doc = Document(file_path)
        paragraphs = []
        for p in doc.paragraphs:
            text = p.text.strip()
            if not text:
                continue
            level = self._heading_level(p.style.name if p.style is not None else "")
            paragraphs.append(f"{'#' * level} {text}" if level else text)
        return "\n\n".join(paragraphs)
