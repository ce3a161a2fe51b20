"""
Document assembler module for the conversion pipeline.

Provides:
- Document data model (Document, Page, DocumentBlock)
- Per-page block assembly with page-local error recovery
- Pipeline orchestration from PDF bytes to DOCX bytes
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, List, Optional

from .errors import PageProcessingError
from .export import DocxExporter
from .io import PageRenderer
from .layout import FullPageSegmenter, ImageRegion
from .ocr_math import FormulaClassifier, classify_formula
from .ocr_text import TextOCR
from ..config import ExportConfig, PipelineConfig

logger = logging.getLogger(__name__)


# ============================================================================
# Data Classes
# ============================================================================

class BlockKind(Enum):
    """Kinds of output blocks."""
    PAGE_HEADING = "page_heading"
    TEXT_LINE = "text_line"
    FORMULA_LINE = "formula_line"
    ERROR_LINE = "error_line"


class ConversionState(Enum):
    """Stages of a single conversion."""
    IDLE = "idle"
    RENDERING = "rendering"
    RECOGNIZING = "recognizing"
    ASSEMBLING = "assembling"
    SERIALIZING = "serializing"
    DONE = "done"
    FAILED = "failed"


@dataclass(frozen=True)
class DocumentBlock:
    """A unit of output content with its display attributes."""
    kind: BlockKind
    text: str
    page_number: int
    bold: bool = False
    italic: bool = False
    size_pt: float = 11
    color: Optional[str] = None  # hex RGB, e.g. "FF0000"
    space_after_pt: float = 0


@dataclass
class FormulaCandidate:
    """Recognized text classified as a formula, with its source region."""
    latex: str
    x: int
    y: int
    width: int
    height: int

    @classmethod
    def from_region(cls, latex: str, region: ImageRegion) -> 'FormulaCandidate':
        return cls(latex=latex, x=region.x, y=region.y,
                   width=region.width, height=region.height)


@dataclass
class Page:
    """Extracted content of one page."""
    page_number: int  # 1-indexed
    text: str
    regions: List[ImageRegion] = field(default_factory=list)
    formulas: List[FormulaCandidate] = field(default_factory=list)

    def add_formula(self, formula: FormulaCandidate):
        self.formulas.append(formula)


@dataclass
class PageResult:
    """Blocks for one page, or the error that replaced them."""
    page_number: int
    blocks: List[DocumentBlock]
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @classmethod
    def failed(
        cls,
        page_number: int,
        reason: str,
        export: Optional[ExportConfig] = None
    ) -> 'PageResult':
        blocks = PageBlocks(export).error_page(page_number)
        return cls(page_number=page_number, blocks=blocks, error=reason)


@dataclass
class Document:
    """All pages of one conversion, in order."""
    pages: List[PageResult] = field(default_factory=list)
    source_name: Optional[str] = None

    @property
    def page_count(self) -> int:
        return len(self.pages)

    @property
    def failed_pages(self) -> List[int]:
        return [p.page_number for p in self.pages if not p.ok]

    def blocks(self) -> List[DocumentBlock]:
        return [block for page in self.pages for block in page.blocks]


# ============================================================================
# Block Construction
# ============================================================================

class PageBlocks:
    """Builds blocks with the labels and styles from ExportConfig."""

    def __init__(self, export: Optional[ExportConfig] = None):
        self.export = export or ExportConfig()

    def heading(self, page_number: int) -> DocumentBlock:
        return DocumentBlock(
            kind=BlockKind.PAGE_HEADING,
            text=f"{self.export.page_heading_label} {page_number}",
            page_number=page_number,
            bold=True,
            size_pt=self.export.heading_size_pt,
            space_after_pt=self.export.heading_space_after_pt,
        )

    def text_line(self, page_number: int, text: str) -> DocumentBlock:
        return DocumentBlock(
            kind=BlockKind.TEXT_LINE,
            text=text,
            page_number=page_number,
            size_pt=self.export.text_size_pt,
            space_after_pt=self.export.text_space_after_pt,
        )

    def formula_line(self, page_number: int, latex: str) -> DocumentBlock:
        return DocumentBlock(
            kind=BlockKind.FORMULA_LINE,
            text=f"{self.export.formula_label}{latex}",
            page_number=page_number,
            italic=True,
            size_pt=self.export.formula_size_pt,
            space_after_pt=self.export.formula_space_after_pt,
        )

    def error_line(self, page_number: int) -> DocumentBlock:
        return DocumentBlock(
            kind=BlockKind.ERROR_LINE,
            text=f"{self.export.error_label} {page_number}",
            page_number=page_number,
            size_pt=self.export.error_size_pt,
            color=self.export.error_color,
        )

    def error_page(self, page_number: int) -> List[DocumentBlock]:
        # The heading stays so page numbering is intact for failed pages
        return [self.heading(page_number), self.error_line(page_number)]


# ============================================================================
# Page Assembler
# ============================================================================

class PageAssembler:
    """Turns a Page into its ordered output blocks."""

    def __init__(self, export: Optional[ExportConfig] = None):
        self.export = export or ExportConfig()
        self.blocks = PageBlocks(self.export)

    def assemble(self, page: Page) -> PageResult:
        """
        Assemble the blocks of one page.

        Order: page heading, one text line per non-blank line of the page
        text, then one formula line per detected formula.

        Never raises; on failure the partial output is dropped and the page
        gets an error line instead.
        """
        try:
            blocks = [self.blocks.heading(page.page_number)]

            for line in (page.text or "").split("\n"):
                line = line.strip()
                if line:
                    blocks.append(self.blocks.text_line(page.page_number, line))

            for formula in page.formulas:
                blocks.append(self.blocks.formula_line(page.page_number, formula.latex))

        except Exception as e:
            logger.error(f"Page {page.page_number}: assembly failed: {e}")
            return PageResult.failed(page.page_number, f"assembly: {e}", self.export)

        return PageResult(page_number=page.page_number, blocks=blocks)


# ============================================================================
# Document Assembler
# ============================================================================

class DocumentAssembler:
    """
    Runs the full conversion for one request.

    Pipeline: render page -> segment -> OCR each region -> classify
    formulas -> assemble blocks, page by page, then serialize to DOCX.
    Pages are processed strictly in order with a single OCR session that
    is opened once and closed once per conversion.

    Every stage can be replaced:
        renderer_factory: pdf_bytes, RenderConfig -> object with
            ``page_count`` and ``render_page(n)``
        engine_factory: OCRConfig -> OCR engine
        formula_classifier: text -> (is_formula, latex)
        segmenter: object with ``segment(bitmap)``
        exporter: object with ``build(pages) -> bytes``
    """

    def __init__(
        self,
        config: Optional[PipelineConfig] = None,
        renderer_factory: Optional[Callable[..., Any]] = None,
        engine_factory: Optional[Callable[..., Any]] = None,
        formula_classifier: Optional[FormulaClassifier] = None,
        segmenter: Optional[Any] = None,
        exporter: Optional[Any] = None
    ):
        self.config = config or PipelineConfig()
        self.renderer_factory = renderer_factory or PageRenderer
        self.engine_factory = engine_factory
        self.formula_classifier = formula_classifier or classify_formula
        self.segmenter = segmenter or FullPageSegmenter()
        self.exporter = exporter or DocxExporter(self.config.export)
        self.page_assembler = PageAssembler(self.config.export)
        self.state = ConversionState.IDLE

    def _set_state(self, state: ConversionState):
        if state != self.state:
            logger.debug(f"State: {self.state.value} -> {state.value}")
        self.state = state

    def convert(self, pdf_bytes: bytes, source_name: Optional[str] = None) -> bytes:
        """
        Convert a PDF to DOCX.

        Args:
            pdf_bytes: Raw PDF content
            source_name: Optional file name used in log messages

        Returns:
            DOCX file content

        Raises:
            InvalidDocument: If the PDF cannot be parsed
            RecognitionUnavailable: If the OCR engine cannot start
            SerializationError: If the DOCX cannot be written
        """
        document = self.process_document(pdf_bytes, source_name=source_name)

        self._set_state(ConversionState.SERIALIZING)
        try:
            output = self.exporter.build(document.pages)
        except Exception:
            self._set_state(ConversionState.FAILED)
            logger.error(f"Serialization failed for {source_name or 'document'}")
            raise

        self._set_state(ConversionState.DONE)
        logger.info(
            f"Conversion complete: {document.page_count} page(s), "
            f"{len(document.failed_pages)} failed, {len(output)} bytes"
        )
        return output

    def process_document(self, pdf_bytes: bytes, source_name: Optional[str] = None) -> Document:
        """Render, recognize and assemble every page without serializing."""
        self._set_state(ConversionState.RENDERING)
        try:
            renderer = self.renderer_factory(pdf_bytes, self.config.render)
        except Exception as e:
            self._set_state(ConversionState.FAILED)
            logger.error(f"Could not open {source_name or 'document'}: {e}")
            raise

        try:
            page_count = renderer.page_count
            if self.config.max_pages is not None:
                page_count = min(page_count, self.config.max_pages)

            document = Document(source_name=source_name)
            ocr = TextOCR(self.config.ocr, engine_factory=self.engine_factory)

            with ocr:
                for page_number in range(1, page_count + 1):
                    logger.info(f"Processing page {page_number}/{page_count}")
                    document.pages.append(self._process_page(renderer, ocr, page_number))
        except Exception:
            self._set_state(ConversionState.FAILED)
            raise
        finally:
            # Renderers may hold temporary files
            close = getattr(renderer, "close", None)
            if close is not None:
                close()

        return document

    def _process_page(self, renderer: Any, ocr: TextOCR, page_number: int) -> PageResult:
        """Process one page; failures are contained in the returned result."""
        self._set_state(ConversionState.RENDERING)
        try:
            rendered = renderer.render_page(page_number)
        except Exception as e:
            stage = e.stage if isinstance(e, PageProcessingError) else "render"
            logger.error(f"Page {page_number}: {stage} failed: {e}")
            return PageResult.failed(page_number, f"{stage}: {e}", self.config.export)

        self._set_state(ConversionState.RECOGNIZING)
        try:
            page = Page(page_number=page_number, text=rendered.text)
            page.regions = self.segmenter.segment(rendered.bitmap)

            for region in page.regions:
                result = ocr.recognize(region)
                if result.is_empty:
                    continue
                is_formula, latex = self.formula_classifier(result.text)
                if is_formula:
                    page.add_formula(FormulaCandidate.from_region(latex, region))
        except Exception as e:
            logger.error(f"Page {page_number}: recognition failed: {e}")
            return PageResult.failed(page_number, f"recognition: {e}", self.config.export)
        finally:
            del rendered

        self._set_state(ConversionState.ASSEMBLING)
        if page.formulas:
            logger.info(f"Page {page_number}: {len(page.formulas)} formula(s) detected")
        return self.page_assembler.assemble(page)


def convert(pdf_bytes: bytes, config: Optional[PipelineConfig] = None) -> bytes:
    """Convert PDF bytes to DOCX bytes with the default pipeline."""
    return DocumentAssembler(config).convert(pdf_bytes)
