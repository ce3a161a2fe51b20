"""
Exception taxonomy for the conversion pipeline.

Fatal errors (the whole conversion aborts):
- InvalidDocument: the PDF bytes cannot be parsed
- RecognitionUnavailable: the OCR engine cannot be initialized
- RendererUnavailable: the page renderer (poppler) is not installed
- SerializationError: the DOCX writer rejected the document

Page-local errors:
- PageProcessingError: one page failed to render, recognize or assemble;
  the pipeline turns it into an error line for that page
"""

from typing import Optional


class ConversionError(Exception):
    """Base exception for conversion failures surfaced to callers."""

    user_message = "The document could not be converted. Please try again."

    def __init__(self, message: str = "", user_message: Optional[str] = None):
        super().__init__(message or self.user_message)
        if user_message is not None:
            self.user_message = user_message


class InvalidDocument(ConversionError):
    """PDF bytes could not be parsed"""

    user_message = "The uploaded file is not a readable PDF document."


class RecognitionUnavailable(ConversionError):
    """OCR engine failed to initialize"""

    user_message = "Text recognition is not available on this server."


class RendererUnavailable(ConversionError):
    """Page renderer binaries are missing"""

    user_message = "Page rendering is not available on this server."


class SerializationError(ConversionError):
    """Output document could not be written"""

    user_message = "The converted document could not be generated."


class PageProcessingError(Exception):
    """A single page failed; never aborts the whole document."""

    def __init__(self, page_number: int, stage: str, reason: str = ""):
        self.page_number = page_number
        self.stage = stage
        self.reason = reason
        super().__init__(f"Page {page_number} failed during {stage}: {reason}")
