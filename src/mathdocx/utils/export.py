"""
Export module for the conversion pipeline.

Writes assembled page blocks to DOCX using python-docx, one paragraph per
block, with an explicit page break between consecutive pages.
"""

import io
import logging
from pathlib import Path
from typing import Any, Optional, Sequence, Union

from .errors import SerializationError
from ..config import ExportConfig

logger = logging.getLogger(__name__)


class DocxExporter:
    """Export page blocks to DOCX format using python-docx."""

    def __init__(self, config: Optional[ExportConfig] = None):
        self.config = config or ExportConfig()

    def build(self, pages: Sequence[Any]) -> bytes:
        """
        Serialize pages to DOCX bytes.

        Args:
            pages: PageResult objects in page order

        Returns:
            DOCX file content

        Raises:
            SerializationError: If python-docx rejects the content
        """
        try:
            from docx import Document as DocxDocument
        except ImportError:
            raise ImportError(
                "python-docx is required for DOCX export. "
                "Install with: pip install python-docx"
            )

        try:
            template = self.config.docx_template
            if template and Path(template).exists():
                doc = DocxDocument(template)
            else:
                doc = DocxDocument()

            for index, page in enumerate(pages):
                if index > 0:
                    doc.add_page_break()
                for block in page.blocks:
                    self._add_block_to_docx(doc, block)

            buffer = io.BytesIO()
            doc.save(buffer)
        except Exception as e:
            logger.error(f"DOCX serialization failed: {e}")
            raise SerializationError(f"DOCX serialization failed: {e}") from e

        data = buffer.getvalue()
        logger.debug(f"Built DOCX: {len(pages)} page(s), {len(data)} bytes")
        return data

    def export(self, pages: Sequence[Any], output_path: Union[str, Path]) -> Path:
        """Serialize pages and write the DOCX file."""
        output_path = Path(output_path)
        output_path.parent.mkdir(parents=True, exist_ok=True)
        output_path.write_bytes(self.build(pages))
        logger.info(f"Exported DOCX to: {output_path}")
        return output_path

    def _add_block_to_docx(self, doc: Any, block: Any):
        """Add a block as a single-run paragraph."""
        from docx.shared import Pt, RGBColor

        p = doc.add_paragraph()
        run = p.add_run(block.text)
        run.bold = block.bold
        run.italic = block.italic
        run.font.size = Pt(block.size_pt)
        if block.color:
            run.font.color.rgb = RGBColor.from_string(block.color)
        if block.space_after_pt:
            p.paragraph_format.space_after = Pt(block.space_after_pt)
