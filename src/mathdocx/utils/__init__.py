"""
Pipeline stages for PDF to DOCX conversion.
"""

from .errors import (
    ConversionError, InvalidDocument, RecognitionUnavailable,
    RendererUnavailable, SerializationError, PageProcessingError,
)
from .io import PageRenderer, PDFTextExtractor, RenderedPage, derive_output_name, read_pdf_bytes, write_bytes
from .layout import ImageRegion, FullPageSegmenter
from .ocr_text import TextOCR, TesseractEngine, OCRResult
from .ocr_math import classify_formula, contains_math, text_to_latex
from .export import DocxExporter
from .assembler import (
    DocumentAssembler, PageAssembler, Document, Page, PageResult,
    DocumentBlock, BlockKind, FormulaCandidate, ConversionState, convert,
)

__all__ = [
    # Errors
    "ConversionError", "InvalidDocument", "RecognitionUnavailable",
    "RendererUnavailable", "SerializationError", "PageProcessingError",
    # IO
    "PageRenderer", "PDFTextExtractor", "RenderedPage", "derive_output_name", "read_pdf_bytes", "write_bytes",
    # Layout
    "ImageRegion", "FullPageSegmenter",
    # OCR
    "TextOCR", "TesseractEngine", "OCRResult",
    "classify_formula", "contains_math", "text_to_latex",
    # Export
    "DocxExporter",
    # Assembly
    "DocumentAssembler", "PageAssembler", "Document", "Page", "PageResult",
    "DocumentBlock", "BlockKind", "FormulaCandidate", "ConversionState", "convert",
]
