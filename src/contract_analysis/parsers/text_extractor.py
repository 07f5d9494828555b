"""Plain-text extraction from uploaded contract files.

Supports PDF (validated with PyPDF2, extracted with pdfplumber), Word
``.docx`` (python-docx) and UTF-8 text files.
"""

import io
import logging
from enum import Enum
from pathlib import Path
from typing import Optional
from zipfile import BadZipFile

import pdfplumber
from docx import Document as DocxDocument
from docx.opc.exceptions import PackageNotFoundError
from PyPDF2 import PdfReader
from PyPDF2.errors import PdfReadError

from ..exceptions import DocumentCorruptedError, UnsupportedFormatError, ValidationError


logger = logging.getLogger(__name__)


class UploadType(Enum):
    """Upload formats accepted by the text extractor."""
    PDF = "pdf"
    DOCX = "docx"
    TEXT = "txt"


MIME_TYPES = {
    "application/pdf": UploadType.PDF,
    "application/vnd.openxmlformats-officedocument.wordprocessingml.document": UploadType.DOCX,
    "text/plain": UploadType.TEXT,
}

SUFFIXES = {
    ".pdf": UploadType.PDF,
    ".docx": UploadType.DOCX,
    ".txt": UploadType.TEXT,
}


def detect_upload_type(filename: Optional[str], mime_type: Optional[str]) -> UploadType:
    """
    Determine the upload format from its MIME type, then its file extension.

    Raises:
        UnsupportedFormatError: If neither identifies a supported format.
    """
    if mime_type:
        upload_type = MIME_TYPES.get(mime_type.split(";")[0].strip().lower())
        if upload_type is not None:
            return upload_type

    suffix = Path(filename or "").suffix.lower()
    if suffix in SUFFIXES:
        return SUFFIXES[suffix]

    raise UnsupportedFormatError(
        message="Unsupported file type. Please upload PDF, DOCX or TXT files.",
        details={"filename": filename, "mime_type": mime_type},
    )


class TextExtractor:
    """Converts uploaded file bytes to plain text."""

    def extract(
        self,
        data: bytes,
        filename: Optional[str] = None,
        mime_type: Optional[str] = None,
    ) -> str:
        """
        Extract trimmed text from an uploaded file.

        Raises:
            UnsupportedFormatError: If the format is not supported.
            DocumentCorruptedError: If the file cannot be read.
            ValidationError: If the file contains no text.
        """
        upload_type = detect_upload_type(filename, mime_type)

        if upload_type is UploadType.PDF:
            text = self._extract_pdf(data, filename)
        elif upload_type is UploadType.DOCX:
            text = self._extract_docx(data, filename)
        else:
            text = self._extract_text(data, filename)

        text = text.strip()
        if not text:
            raise ValidationError(
                message="No text content found in the uploaded file",
                field_name="contract",
            )
        logger.info(f"Extracted {len(text)} characters from {filename or 'upload'}")
        return text

    def _extract_pdf(self, data: bytes, filename: Optional[str]) -> str:
        try:
            PdfReader(io.BytesIO(data))
        except PdfReadError as e:
            raise DocumentCorruptedError(
                message="PDF file is corrupted or encrypted",
                details={"filename": filename, "original_error": str(e)},
            ) from e
        except Exception as e:
            raise DocumentCorruptedError(
                message=f"Failed to open PDF: {e}",
                details={"filename": filename},
            ) from e

        try:
            with pdfplumber.open(io.BytesIO(data)) as pdf:
                pages = [page.extract_text() or "" for page in pdf.pages]
        except Exception as e:
            raise DocumentCorruptedError(
                message=f"Failed to read PDF content: {e}",
                details={"filename": filename},
            ) from e
        return "\n".join(page for page in pages if page)

    def _extract_docx(self, data: bytes, filename: Optional[str]) -> str:
        try:
            document = DocxDocument(io.BytesIO(data))
        except (BadZipFile, PackageNotFoundError, KeyError) as e:
            raise DocumentCorruptedError(
                message="Word document is corrupted or not a .docx file",
                details={"filename": filename, "original_error": str(e)},
            ) from e

        paragraphs = [p.text for p in document.paragraphs if p.text.strip()]
        for table in document.tables:
            for row in table.rows:
                cells = [cell.text.strip() for cell in row.cells if cell.text.strip()]
                if cells:
                    paragraphs.append(" | ".join(cells))
        return "\n".join(paragraphs)

    def _extract_text(self, data: bytes, filename: Optional[str]) -> str:
        try:
            return data.decode("utf-8-sig")
        except UnicodeDecodeError as e:
            raise DocumentCorruptedError(
                message="Text file is not valid UTF-8",
                details={"filename": filename, "position": e.start},
            ) from e
