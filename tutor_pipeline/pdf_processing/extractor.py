"""Raw text extraction from uploaded study documents."""

import asyncio
from dataclasses import dataclass
from pathlib import Path
from typing import List, Tuple
import PyPDF2
import pdfplumber
import structlog

from tutor_pipeline.core.exceptions import UnsupportedFileTypeError

logger = structlog.get_logger()

TEXT_SUFFIXES = {".txt", ".md"}


@dataclass
class ExtractedText:
    """Full document text plus the number of pages it came from."""
    text: str
    page_count: int


class TextExtractor:
    """Extract plain text and page count from a stored file."""

    async def extract(self, file_path: str) -> ExtractedText:
        path = Path(file_path)
        if not path.exists():
            raise FileNotFoundError(f"File not found: {file_path}")

        suffix = path.suffix.lower()

        if suffix == ".pdf":
            return await asyncio.to_thread(self._extract_pdf, path)

        if suffix in TEXT_SUFFIXES:
            return await asyncio.to_thread(self._extract_plain, path)

        raise UnsupportedFileTypeError(f"Unsupported file type: {suffix.lstrip('.') or 'unknown'}")

    def _extract_pdf(self, path: Path) -> ExtractedText:
        # Try pdfplumber first for better text extraction
        pages, page_count = self._extract_with_pdfplumber(path)
        if not any(pages):
            # Fallback to PyPDF2
            pages, page_count = self._extract_with_pypdf2(path)

        text = "\n".join(pages)
        logger.info("PDF extraction completed", file=path.name, pages=page_count, characters=len(text))
        return ExtractedText(text=text, page_count=page_count)

    def _extract_with_pdfplumber(self, path: Path) -> Tuple[List[str], int]:
        """Extract text using pdfplumber."""
        try:
            with pdfplumber.open(path) as pdf:
                pages = [page.extract_text() or "" for page in pdf.pages]
            return pages, len(pages)
        except Exception as e:
            logger.warning("pdfplumber extraction failed", file=path.name, error=str(e))
            return [], 0

    def _extract_with_pypdf2(self, path: Path) -> Tuple[List[str], int]:
        """Extract text using PyPDF2 as fallback."""
        try:
            reader = PyPDF2.PdfReader(str(path))
            pages = [page.extract_text() or "" for page in reader.pages]
            return pages, len(pages)
        except Exception as e:
            logger.error("PyPDF2 extraction failed", file=path.name, error=str(e))
            raise ValueError(f"Error reading PDF file: {e}") from e

    def _extract_plain(self, path: Path) -> ExtractedText:
        try:
            text = path.read_text(encoding="utf-8")
        except UnicodeDecodeError:
            text = path.read_text(encoding="latin-1")
        return ExtractedText(text=text, page_count=1)
