"""Upload text extraction for the Contract Analysis Agent."""

from .text_extractor import TextExtractor, UploadType, detect_upload_type

__all__ = ["TextExtractor", "UploadType", "detect_upload_type"]
