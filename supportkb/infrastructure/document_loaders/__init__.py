"""File loaders that turn knowledge-base documents into text."""
from .composite_loader import CompositeLoader
from .docx_loader import DocxLoader
from .pdf_loader import PDFLoader
from .text_loader import TextLoader

__all__ = ["CompositeLoader", "DocxLoader", "PDFLoader", "TextLoader"]
