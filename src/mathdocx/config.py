"""
Configuration and constants for the PDF to DOCX conversion pipeline.

This module provides:
- Logging setup
- Rendering, OCR and export settings
- Environment overrides
- Contract values shared with the upload service
"""

import os
from dataclasses import dataclass, field
from typing import Optional
import logging

# ============================================================================
# Logging Configuration
# ============================================================================

LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'

logger = logging.getLogger("mathdocx")


def setup_logging(level: int = logging.INFO) -> None:
    """Configure root logging for command-line use."""
    logging.basicConfig(level=level, format=LOG_FORMAT)


# ============================================================================
# Service Contract
# ============================================================================

# Enforced by the upload layer before the pipeline is invoked
MAX_UPLOAD_BYTES = 50 * 1024 * 1024
CONVERSION_TIMEOUT_S = 300

PDF_MIME_TYPE = "application/pdf"
DOCX_MIME_TYPE = (
    "application/vnd.openxmlformats-officedocument.wordprocessingml.document"
)
OUTPUT_EXTENSION = ".docx"


# ============================================================================
# Processing Configuration
# ============================================================================

@dataclass
class RenderConfig:
    """Page rasterization configuration."""
    scale: float = 2.0  # relative to 72 DPI, applied uniformly to every page
    fmt: str = "png"

    @property
    def dpi(self) -> int:
        return int(round(72 * self.scale))


@dataclass
class OCRConfig:
    """OCR configuration."""
    engine: str = "tesseract"
    tesseract_lang: str = "eng"
    tesseract_config: str = "--oem 3 --psm 6"
    tesseract_cmd: Optional[str] = None  # None = use tesseract from PATH
    # Regions shorter than this are upscaled before recognition
    min_height: int = 30


@dataclass
class ExportConfig:
    """DOCX output configuration."""
    docx_template: Optional[str] = None
    page_heading_label: str = "Page"
    formula_label: str = "Formula: "
    error_label: str = "Error processing page"
    heading_size_pt: float = 12
    text_size_pt: float = 11
    formula_size_pt: float = 10
    error_size_pt: float = 10
    error_color: str = "FF0000"
    heading_space_after_pt: float = 10
    text_space_after_pt: float = 5
    formula_space_after_pt: float = 7.5


@dataclass
class PipelineConfig:
    """Main pipeline configuration."""
    render: RenderConfig = field(default_factory=RenderConfig)
    ocr: OCRConfig = field(default_factory=OCRConfig)
    export: ExportConfig = field(default_factory=ExportConfig)

    debug_mode: bool = False
    max_pages: Optional[int] = None  # None = process all pages


# ============================================================================
# Default Configuration Instance
# ============================================================================

def get_config() -> PipelineConfig:
    """Get the default pipeline configuration with environment overrides."""
    config = PipelineConfig()

    if os.environ.get("MATHDOCX_DEBUG", "").lower() == "true":
        config.debug_mode = True

    lang = os.environ.get("MATHDOCX_OCR_LANG")
    if lang:
        config.ocr.tesseract_lang = lang

    config.ocr.tesseract_cmd = os.environ.get("TESSERACT_CMD")

    max_pages = os.environ.get("MATHDOCX_MAX_PAGES", "")
    if max_pages.isdigit() and int(max_pages) > 0:
        config.max_pages = int(max_pages)

    return config
