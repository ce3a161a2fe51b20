"""
Tests for DOCX export.
"""

import io
import pytest
import sys
from pathlib import Path

# Add src to path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))


def page_breaks(docx_bytes):
    """Count explicit page breaks in a DOCX."""
    from docx import Document
    from docx.oxml.ns import qn

    doc = Document(io.BytesIO(docx_bytes))
    return sum(
        1 for br in doc.element.body.iter(qn("w:br"))
        if br.get(qn("w:type")) == "page"
    )


def paragraphs(docx_bytes):
    from docx import Document

    doc = Document(io.BytesIO(docx_bytes))
    return [p for p in doc.paragraphs if p.text]


def make_pages(count):
    from mathdocx.utils.assembler import Page, PageAssembler

    assembler = PageAssembler()
    pages = []
    for n in range(1, count + 1):
        page = Page(page_number=n, text=f"text of page {n}")
        pages.append(assembler.assemble(page))
    return pages


class TestDocxExporter:
    """Test DocxExporter."""

    @pytest.mark.parametrize("count", [0, 1, 3])
    def test_page_breaks_between_pages(self, count):
        """Test N pages produce N-1 page breaks."""
        from mathdocx.utils.export import DocxExporter

        data = DocxExporter().build(make_pages(count))

        assert page_breaks(data) == max(count - 1, 0)

    def test_block_styles(self):
        """Test heading and error lines get their run styles."""
        from docx.shared import Pt, RGBColor
        from mathdocx.utils.assembler import PageResult
        from mathdocx.utils.export import DocxExporter

        data = DocxExporter().build([PageResult.failed(1, "boom")])
        heading, error = paragraphs(data)

        assert heading.text == "Page 1"
        assert heading.runs[0].bold is True
        assert heading.runs[0].font.size == Pt(12)
        assert error.text == "Error processing page 1"
        assert error.runs[0].font.color.rgb == RGBColor(0xFF, 0x00, 0x00)

    def test_formula_italic(self):
        """Test formula runs are italic."""
        from mathdocx.utils.assembler import Page, PageAssembler, FormulaCandidate
        from mathdocx.utils.export import DocxExporter

        page = Page(page_number=1, text="")
        page.add_formula(FormulaCandidate(latex="\\sqrt{4}", x=0, y=0, width=1, height=1))
        data = DocxExporter().build([PageAssembler().assemble(page)])

        formula = paragraphs(data)[-1]
        assert formula.text == "Formula: \\sqrt{4}"
        assert formula.runs[0].italic is True

    def test_invalid_block_raises_serialization_error(self):
        """Test a writer failure surfaces as SerializationError."""
        from mathdocx.utils.assembler import BlockKind, DocumentBlock, PageResult
        from mathdocx.utils.errors import SerializationError
        from mathdocx.utils.export import DocxExporter

        bad = DocumentBlock(kind=BlockKind.ERROR_LINE, text="x", page_number=1, color="not-a-color")
        with pytest.raises(SerializationError):
            DocxExporter().build([PageResult(page_number=1, blocks=[bad])])

    def test_export_writes_file(self, tmp_path):
        """Test export() writes the same DOCX to disk."""
        from mathdocx.utils.export import DocxExporter

        out = DocxExporter().export(make_pages(2), tmp_path / "nested" / "out.docx")

        assert out.exists()
        assert page_breaks(out.read_bytes()) == 1


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
