"""
PDF to DOCX Conversion with Formula Detection
=============================================

Converts PDF documents into editable DOCX files, keeping the page text and
re-rendering detected mathematical notation as LaTeX.

Main components:
- Page rendering (text runs and page bitmaps)
- Text OCR over page regions
- Formula detection and LaTeX conversion
- Page assembly and DOCX export
"""

__version__ = "1.0.0"

from .utils.assembler import DocumentAssembler, convert
from .utils.errors import (
    ConversionError, InvalidDocument, RecognitionUnavailable, RendererUnavailable,
    SerializationError,
)

__all__ = [
    "convert", "DocumentAssembler",
    "ConversionError", "InvalidDocument", "RecognitionUnavailable", "RendererUnavailable",
    "SerializationError",
]
