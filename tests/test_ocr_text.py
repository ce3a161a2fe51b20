"""
Tests for the OCR session and Tesseract engine.
"""

import pytest
import numpy as np
import sys
from pathlib import Path

# Add src to path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))


class CountingEngine:
    """OCR engine double that records its lifecycle."""

    def __init__(self, text="x = 1", fail=False):
        self.text = text
        self.fail = fail
        self.closed = 0
        self.calls = 0

    def recognize(self, image):
        from mathdocx.utils.ocr_text import OCRResult

        self.calls += 1
        if self.fail:
            raise RuntimeError("engine crashed")
        return OCRResult(text=self.text, confidence=0.9, engine_used="fake")

    def close(self):
        self.closed += 1


@pytest.fixture
def region():
    from mathdocx.utils.layout import ImageRegion

    image = np.ones((40, 120, 3), dtype=np.uint8) * 255
    return ImageRegion(image=image, x=0, y=0, width=120, height=40)


class TestOCRResult:
    """Test OCRResult class."""

    def test_empty_result(self):
        """Test the empty result helper."""
        from mathdocx.utils.ocr_text import OCRResult

        result = OCRResult.empty("tesseract")
        assert result.text == ""
        assert result.confidence == 0.0
        assert result.is_empty is True

    def test_whitespace_is_empty(self):
        """Test whitespace-only text counts as empty."""
        from mathdocx.utils.ocr_text import OCRResult

        assert OCRResult(text="  \n ", confidence=0.5).is_empty is True
        assert OCRResult(text="a", confidence=0.5).is_empty is False


class TestTextOCRSession:
    """Test engine acquisition and release."""

    def test_context_manager_acquires_and_releases_once(self, region):
        """Test the with-block opens and closes the engine once."""
        from mathdocx.utils.ocr_text import TextOCR

        created = []

        def factory(config):
            engine = CountingEngine()
            created.append(engine)
            return engine

        with TextOCR(engine_factory=factory) as ocr:
            assert ocr.is_open
            ocr.recognize(region)
            ocr.recognize(region)

        assert len(created) == 1
        assert created[0].calls == 2
        assert created[0].closed == 1
        assert not ocr.is_open

    def test_release_on_exception(self):
        """Test the engine is released when the block raises."""
        from mathdocx.utils.ocr_text import TextOCR

        engine = CountingEngine()

        with pytest.raises(ValueError):
            with TextOCR(engine_factory=lambda config: engine):
                raise ValueError("boom")

        assert engine.closed == 1

    def test_close_is_idempotent(self):
        """Test closing twice releases once."""
        from mathdocx.utils.ocr_text import TextOCR

        engine = CountingEngine()
        ocr = TextOCR(engine_factory=lambda config: engine).open()
        ocr.close()
        ocr.close()

        assert engine.closed == 1

    def test_double_open_rejected(self):
        """Test opening an open session raises."""
        from mathdocx.utils.ocr_text import TextOCR

        ocr = TextOCR(engine_factory=lambda config: CountingEngine()).open()
        with pytest.raises(RuntimeError):
            ocr.open()
        ocr.close()

    def test_init_failure_raises_recognition_unavailable(self):
        """Test an engine factory failure raises RecognitionUnavailable."""
        from mathdocx.utils.ocr_text import TextOCR
        from mathdocx.utils.errors import RecognitionUnavailable

        def factory(config):
            raise RuntimeError("tesseract missing")

        ocr = TextOCR(engine_factory=factory)
        with pytest.raises(RecognitionUnavailable):
            ocr.open()
        assert not ocr.is_open

    def test_unknown_engine(self):
        """Test an unknown engine name is rejected."""
        from mathdocx.config import OCRConfig
        from mathdocx.utils.ocr_text import TextOCR
        from mathdocx.utils.errors import RecognitionUnavailable

        ocr = TextOCR(config=OCRConfig(engine="nonexistent"))
        with pytest.raises(RecognitionUnavailable):
            ocr.open()

    def test_recognize_requires_open_session(self, region):
        """Test recognize() on a closed session raises."""
        from mathdocx.utils.ocr_text import TextOCR

        ocr = TextOCR(engine_factory=lambda config: CountingEngine())
        with pytest.raises(RuntimeError):
            ocr.recognize(region)


class TestRecognize:
    """Test per-region recognition."""

    def test_returns_engine_text(self, region):
        """Test the engine's text is returned."""
        from mathdocx.utils.ocr_text import TextOCR

        with TextOCR(engine_factory=lambda config: CountingEngine("E = mc^2")) as ocr:
            result = ocr.recognize(region)

        assert result.text == "E = mc^2"

    def test_region_failure_degrades_to_empty(self, region):
        """An engine error on one region does not propagate."""
        from mathdocx.utils.ocr_text import TextOCR

        engine = CountingEngine(fail=True)
        with TextOCR(engine_factory=lambda config: engine) as ocr:
            first = ocr.recognize(region)
            second = ocr.recognize(region)

        assert first.is_empty and second.is_empty
        assert engine.calls == 2

    def test_empty_region_skips_engine(self):
        """Test an empty image is not sent to the engine."""
        from mathdocx.utils.layout import ImageRegion
        from mathdocx.utils.ocr_text import TextOCR

        engine = CountingEngine()
        empty = ImageRegion(image=np.zeros((0, 0), dtype=np.uint8), x=0, y=0, width=0, height=0)
        with TextOCR(engine_factory=lambda config: engine) as ocr:
            result = ocr.recognize(empty)

        assert result.is_empty
        assert engine.calls == 0


class TestTesseractEngine:
    """Test Tesseract engine (if available)."""

    @pytest.fixture
    def engine(self):
        from mathdocx.utils.ocr_text import TesseractEngine

        try:
            return TesseractEngine()
        except (ImportError, RuntimeError):
            pytest.skip("Tesseract not available")

    def test_preprocess_grayscale(self, engine):
        """Test preprocessing yields a single-channel image."""
        color = np.ones((100, 200, 3), dtype=np.uint8) * 255
        gray = engine._preprocess_for_ocr(color)
        assert gray.ndim == 2
        assert gray.shape == (100, 200)

    def test_preprocess_upscales_small_regions(self, engine):
        """Test regions below the minimum height are upscaled."""
        small = np.ones((15, 40), dtype=np.uint8) * 255
        processed = engine._preprocess_for_ocr(small)
        assert processed.shape[0] >= engine.min_height

    def test_recognize_blank_image(self, engine):
        """Test a blank image yields no text."""
        blank = np.ones((100, 300, 3), dtype=np.uint8) * 255
        result = engine.recognize(blank)
        assert result.engine_used == "tesseract"
        assert result.text.strip() == ""


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
