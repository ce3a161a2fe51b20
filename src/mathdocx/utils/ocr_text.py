"""
Text OCR module for the conversion pipeline.

Provides:
- Text recognition over page image regions
- An OCR session that owns the engine for one conversion
- Confidence scoring
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Callable, List, Optional, Tuple

import numpy as np

from .errors import RecognitionUnavailable
from .layout import ImageRegion
from ..config import OCRConfig

logger = logging.getLogger(__name__)


# ============================================================================
# Data Classes
# ============================================================================

@dataclass
class LineResult:
    """OCR result for a line of text."""
    text: str
    confidence: float
    bbox: Optional[Tuple[int, int, int, int]] = None  # (x1, y1, x2, y2)


@dataclass
class OCRResult:
    """Complete OCR result for a region."""
    text: str
    confidence: float
    lines: List[LineResult] = field(default_factory=list)
    engine_used: str = ""

    @property
    def is_empty(self) -> bool:
        return not self.text.strip()

    @classmethod
    def empty(cls, engine_used: str = "") -> 'OCRResult':
        return cls(text="", confidence=0.0, engine_used=engine_used)


# ============================================================================
# OCR Session
# ============================================================================

class TextOCR:
    """
    OCR session owning one engine instance for a whole conversion.

    The engine is created once by ``open()`` and released once by
    ``close()``. Use it as a context manager so release happens on every
    exit path::

        with TextOCR(config=config.ocr) as ocr:
            result = ocr.recognize(region)

    The engine is stateful and must not be shared between threads.
    """

    def __init__(
        self,
        config: Optional[OCRConfig] = None,
        engine_factory: Optional[Callable[[OCRConfig], Any]] = None
    ):
        self.config = config or OCRConfig()
        self.engine_factory = engine_factory or create_engine
        self._engine = None

    @property
    def is_open(self) -> bool:
        return self._engine is not None

    def open(self) -> 'TextOCR':
        """Acquire the OCR engine."""
        if self._engine is not None:
            raise RuntimeError("OCR session is already open")

        try:
            self._engine = self.engine_factory(self.config)
        except Exception as e:
            logger.error(f"Failed to initialize OCR engine {self.config.engine}: {e}")
            raise RecognitionUnavailable(
                f"OCR engine '{self.config.engine}' unavailable: {e}"
            ) from e

        logger.info(f"Initialized OCR engine: {self.config.engine}")
        return self

    def close(self):
        """Release the OCR engine. Safe to call more than once."""
        engine, self._engine = self._engine, None
        if engine is None:
            return

        close = getattr(engine, "close", None)
        if close is not None:
            try:
                close()
            except Exception as e:
                logger.warning(f"Error while releasing OCR engine: {e}")
        logger.debug("Released OCR engine")

    def __enter__(self) -> 'TextOCR':
        return self.open()

    def __exit__(self, exc_type, exc, tb):
        self.close()
        return False

    def recognize(self, region: ImageRegion) -> OCRResult:
        """
        Recognize text in an image region.

        A failing region yields an empty result instead of an exception so
        the remaining regions and pages are still processed.
        """
        if self._engine is None:
            raise RuntimeError("OCR session is not open")

        if region.image is None or region.image.size == 0:
            return OCRResult.empty(self.config.engine)

        try:
            return self._engine.recognize(region.image)
        except Exception as e:
            logger.warning(
                f"OCR failed for region at ({region.x}, {region.y}) "
                f"{region.width}x{region.height}: {e}"
            )
            return OCRResult.empty(self.config.engine)


def create_engine(config: OCRConfig):
    """Create an OCR engine instance."""
    if config.engine == "tesseract":
        return TesseractEngine(
            language=config.tesseract_lang,
            config=config.tesseract_config,
            tesseract_cmd=config.tesseract_cmd,
            min_height=config.min_height
        )
    raise ValueError(f"Unknown OCR engine: {config.engine}")


# ============================================================================
# Tesseract Engine
# ============================================================================

class TesseractEngine:
    """OCR using Tesseract."""

    def __init__(
        self,
        language: str = "eng",
        config: str = "--oem 3 --psm 6",
        tesseract_cmd: Optional[str] = None,
        min_height: int = 30
    ):
        try:
            import pytesseract
        except ImportError:
            raise ImportError(
                "pytesseract is required. Install with: pip install pytesseract"
            )

        if tesseract_cmd:
            pytesseract.pytesseract.tesseract_cmd = tesseract_cmd

        try:
            version = pytesseract.get_tesseract_version()
        except Exception as e:
            raise RuntimeError(
                f"Tesseract not available: {e}\n"
                "Install Tesseract: https://github.com/tesseract-ocr/tesseract"
            ) from e

        self.pytesseract = pytesseract
        self.language = language
        self.config = config
        self.min_height = min_height
        logger.debug(f"Tesseract version {version}")

    def _preprocess_for_ocr(self, image: np.ndarray) -> np.ndarray:
        """Convert to grayscale and upscale very small regions."""
        import cv2

        if len(image.shape) == 3:
            gray = cv2.cvtColor(image, cv2.COLOR_BGR2GRAY)
        else:
            gray = image.copy()

        h = gray.shape[0]
        if 0 < h < self.min_height:
            scale = float(self.min_height) / h
            gray = cv2.resize(gray, None, fx=scale, fy=scale, interpolation=cv2.INTER_CUBIC)

        return gray

    def recognize(self, image: np.ndarray) -> OCRResult:
        """Recognize text using Tesseract."""
        processed = self._preprocess_for_ocr(image)

        data = self.pytesseract.image_to_data(
            processed,
            lang=self.language,
            config=self.config,
            output_type=self.pytesseract.Output.DICT
        )

        # Group words by (block, paragraph, line)
        lines = {}
        confidences = []
        for i in range(len(data['text'])):
            word = data['text'][i].strip()
            conf = float(data['conf'][i])
            if conf < 0 or not word:  # -1 means no valid confidence
                continue

            key = (data['block_num'][i], data['par_num'][i], data['line_num'][i])
            x1, y1 = data['left'][i], data['top'][i]
            x2, y2 = x1 + data['width'][i], y1 + data['height'][i]

            entry = lines.setdefault(key, {"words": [], "confs": [], "bbox": [x1, y1, x2, y2]})
            entry["words"].append(word)
            entry["confs"].append(conf / 100.0)
            bbox = entry["bbox"]
            entry["bbox"] = [min(bbox[0], x1), min(bbox[1], y1), max(bbox[2], x2), max(bbox[3], y2)]
            confidences.append(conf / 100.0)

        line_results = [
            LineResult(
                text=' '.join(entry["words"]),
                confidence=float(np.mean(entry["confs"])),
                bbox=tuple(entry["bbox"])
            )
            for entry in lines.values()
        ]

        return OCRResult(
            text='\n'.join(line.text for line in line_results),
            confidence=float(np.mean(confidences)) if confidences else 0.0,
            lines=line_results,
            engine_used="tesseract"
        )

    def close(self):
        # pytesseract spawns one process per call; nothing is held open
        self.pytesseract = None
