"""
I/O utilities for the conversion pipeline.

Handles:
- PDF parsing and page count
- Per-page text extraction and rasterization
- Output file naming and writing
"""

import io
import logging
import os
import tempfile
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional, Union

import numpy as np
from pdfminer.converter import PDFPageAggregator
from pdfminer.layout import LTChar
from pdfminer.pdfdocument import PDFDocument
from pdfminer.pdfinterp import PDFPageInterpreter, PDFResourceManager
from pdfminer.pdfpage import PDFPage
from pdfminer.pdfparser import PDFParser
from pdfminer.psparser import PSException

from .errors import InvalidDocument, PageProcessingError, RendererUnavailable
from ..config import RenderConfig, OUTPUT_EXTENSION

logger = logging.getLogger(__name__)


# ============================================================================
# Data Classes
# ============================================================================

@dataclass
class RenderedPage:
    """Text and bitmap of a single rendered page."""
    page_number: int  # 1-indexed
    text: str
    bitmap: np.ndarray  # BGR

    @property
    def width(self) -> int:
        return self.bitmap.shape[1] if self.bitmap.ndim >= 2 else 0

    @property
    def height(self) -> int:
        return self.bitmap.shape[0] if self.bitmap.ndim >= 2 else 0


# ============================================================================
# Text Extraction
# ============================================================================

class TextRunCollector(PDFPageAggregator):
    """
    Layout device that records one string per text-showing operator.

    Runs are kept in the order the content stream draws them, including
    runs drawn inside Form XObjects. No layout analysis is applied.
    """

    def __init__(self, rsrcmgr: PDFResourceManager):
        super().__init__(rsrcmgr, laparams=None)
        self.runs: List[str] = []

    def begin_page(self, page, ctm):
        self.runs = []
        super().begin_page(page, ctm)

    def render_string(self, *args, **kwargs):
        start = len(self.cur_item)
        super().render_string(*args, **kwargs)
        drawn = self.cur_item._objs[start:]
        self.runs.append(''.join(
            item.get_text() for item in drawn if isinstance(item, LTChar)
        ))


class PDFTextExtractor:
    """
    Parses a PDF once and extracts page text in content-stream order.

    Every non-empty run on the page is stripped and the runs are joined
    with single spaces.
    """

    def __init__(self, pdf_bytes: bytes):
        if not pdf_bytes:
            raise InvalidDocument("Empty PDF byte stream")

        try:
            parser = PDFParser(io.BytesIO(pdf_bytes))
            self._document = PDFDocument(parser)
            if not self._document.catalog:
                raise InvalidDocument("No document catalog found")
            self._pages = list(PDFPage.create_pages(self._document))
        except InvalidDocument:
            raise
        except (PSException, KeyError, TypeError, ValueError) as e:
            raise InvalidDocument(f"Failed to parse PDF: {e}") from e

        self._rsrcmgr = PDFResourceManager(caching=True)

    @property
    def page_count(self) -> int:
        return len(self._pages)

    def text_runs(self, page_number: int) -> List[str]:
        """Raw text runs of a 1-indexed page, in drawing order."""
        if not 1 <= page_number <= len(self._pages):
            raise ValueError(
                f"Page {page_number} out of range (1-{len(self._pages)})"
            )

        device = TextRunCollector(self._rsrcmgr)
        try:
            interpreter = PDFPageInterpreter(self._rsrcmgr, device)
            interpreter.process_page(self._pages[page_number - 1])
            return list(device.runs)
        finally:
            device.close()

    def extract_text(self, page_number: int) -> str:
        """Concatenate every text run on the page, separated by single spaces."""
        runs = (run.strip() for run in self.text_runs(page_number))
        return ' '.join(run for run in runs if run)

    def close(self):
        self._pages = []
        self._document = None


# ============================================================================
# Page Renderer
# ============================================================================

class PageRenderer:
    """
    Opens a PDF byte stream and renders it page by page.

    The document is parsed once by pdfminer for text and spilled once to a
    temporary file that poppler rasterizes from. Pages are rendered one at
    a time so only a single page bitmap is alive at any point of the
    conversion. Call close() (or use the renderer as a context manager) to
    remove the temporary file.
    """

    def __init__(self, pdf_bytes: bytes, config: RenderConfig = None):
        self.config = config or RenderConfig()
        self._pdf_path: Optional[str] = None
        self._text: Optional[PDFTextExtractor] = None

        if not pdf_bytes:
            raise InvalidDocument("Empty PDF byte stream")

        try:
            from pdf2image import pdfinfo_from_path
            from pdf2image.exceptions import (
                PDFInfoNotInstalledError,
                PDFPageCountError,
                PDFSyntaxError,
            )
        except ImportError:
            raise ImportError(
                "pdf2image is required. Install with: pip install pdf2image\n"
                "Also ensure poppler is installed on your system."
            )

        try:
            self._text = PDFTextExtractor(pdf_bytes)
            self._pdf_path = self._spill(pdf_bytes)

            try:
                info = pdfinfo_from_path(self._pdf_path)
            except PDFInfoNotInstalledError as e:
                raise RendererUnavailable(
                    "Poppler is not installed. Install with:\n"
                    "  macOS: brew install poppler\n"
                    "  Linux: sudo apt-get install poppler-utils"
                ) from e
            except (PDFPageCountError, PDFSyntaxError) as e:
                raise InvalidDocument(f"Failed to parse PDF: {e}") from e

            try:
                self._page_count = int(info.get("Pages", 0))
            except (TypeError, ValueError) as e:
                raise InvalidDocument(f"Invalid page count in PDF: {e}") from e
        except BaseException:
            self.close()
            raise

        logger.info(f"Opened PDF with {self._page_count} page(s)")

    @staticmethod
    def _spill(pdf_bytes: bytes) -> str:
        fd, path = tempfile.mkstemp(prefix="mathdocx_", suffix=".pdf")
        with os.fdopen(fd, "wb") as f:
            f.write(pdf_bytes)
        return path

    @property
    def page_count(self) -> int:
        return self._page_count

    def render_page(self, page_number: int) -> RenderedPage:
        """
        Extract text and rasterize one page.

        Args:
            page_number: 1-indexed page number

        Returns:
            RenderedPage with the page text and a BGR bitmap

        Raises:
            ValueError: If page_number is out of range
            PageProcessingError: If the page cannot be read or rendered
        """
        if not 1 <= page_number <= self._page_count:
            raise ValueError(
                f"Page {page_number} out of range (1-{self._page_count})"
            )

        try:
            text = self.extract_text(page_number)
        except Exception as e:
            raise PageProcessingError(page_number, "text extraction", str(e)) from e

        try:
            bitmap = self.rasterize(page_number)
        except Exception as e:
            raise PageProcessingError(page_number, "render", str(e)) from e

        return RenderedPage(page_number=page_number, text=text, bitmap=bitmap)

    def extract_text(self, page_number: int) -> str:
        if self._text is None:
            raise RuntimeError("Renderer is closed")
        return self._text.extract_text(page_number)

    def rasterize(self, page_number: int) -> np.ndarray:
        """Render one page at the configured scale as a BGR array."""
        from pdf2image import convert_from_path

        if self._pdf_path is None:
            raise RuntimeError("Renderer is closed")

        pil_images = convert_from_path(
            self._pdf_path,
            dpi=self.config.dpi,
            first_page=page_number,
            last_page=page_number,
            fmt=self.config.fmt,
        )
        if not pil_images:
            raise RuntimeError("Renderer returned no image")

        pil_img = pil_images[0]
        try:
            img_array = np.array(pil_img.convert("RGB"))
        finally:
            for image in pil_images:
                image.close()

        # RGB -> BGR for OpenCV compatibility
        img_array = img_array[:, :, ::-1].copy()

        logger.debug(f"Rendered page {page_number}: {img_array.shape}")
        return img_array

    @property
    def closed(self) -> bool:
        return self._pdf_path is None and self._text is None

    def close(self):
        """Remove the temporary PDF file. Safe to call more than once."""
        if self._pdf_path is not None:
            try:
                os.remove(self._pdf_path)
            except FileNotFoundError:
                pass
            logger.debug(f"Removed temporary file {self._pdf_path}")
            self._pdf_path = None
        if self._text is not None:
            self._text.close()
            self._text = None

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
        return False


# ============================================================================
# File Helpers
# ============================================================================

def derive_output_name(filename: str) -> str:
    """
    Derive the output file name from an input PDF name.

    Example: "paper.pdf" -> "paper.docx"
    """
    name = Path(filename).name
    if name.lower().endswith(".pdf"):
        return name[:-4] + OUTPUT_EXTENSION
    return name + OUTPUT_EXTENSION


def read_pdf_bytes(pdf_path: Union[str, Path]) -> bytes:
    """Read a PDF file into memory."""
    pdf_path = Path(pdf_path)
    if not pdf_path.exists():
        raise FileNotFoundError(f"PDF file not found: {pdf_path}")
    return pdf_path.read_bytes()


def write_bytes(data: bytes, output_path: Union[str, Path]) -> Path:
    """Write bytes to a file, creating parent directories."""
    output_path = Path(output_path)
    ensure_dir(output_path.parent)
    output_path.write_bytes(data)
    logger.info(f"Saved: {output_path}")
    return output_path


def ensure_dir(path: Union[str, Path]) -> Path:
    """
    Ensure a directory exists, creating it if necessary.

    Args:
        path: Directory path

    Returns:
        Path object for the directory
    """
    path = Path(path)
    path.mkdir(parents=True, exist_ok=True)
    return path
