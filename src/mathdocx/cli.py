#!/usr/bin/env python
"""
Command-line interface for PDF to DOCX conversion.

Usage:
    mathdocx --input <pdf> [--output <docx_or_dir>] [options]

Examples:
    # Convert next to the input file (paper.pdf -> paper.docx)
    mathdocx --input paper.pdf

    # Convert into an output directory with German OCR
    mathdocx --input paper.pdf --output ./out --lang deu
"""

import argparse
import logging
import sys
import time
from pathlib import Path
from typing import Optional

from . import __version__
from .config import get_config, setup_logging

logger = logging.getLogger("mathdocx")


def setup_argparser() -> argparse.ArgumentParser:
    """Create argument parser."""
    parser = argparse.ArgumentParser(
        prog="mathdocx",
        description="Convert a PDF into an editable DOCX, re-rendering detected formulas as LaTeX",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  Convert a PDF next to the input file:
    mathdocx --input paper.pdf

  Convert into a directory, only the first 10 pages:
    mathdocx --input paper.pdf --output ./out --max-pages 10
        """
    )

    parser.add_argument(
        "--input", "-i",
        required=True,
        help="Input PDF file"
    )

    parser.add_argument(
        "--output", "-o",
        default=None,
        help="Output DOCX file or directory (default: next to the input)"
    )

    parser.add_argument(
        "--lang",
        default=None,
        help="Tesseract language code (default: eng)"
    )

    parser.add_argument(
        "--tesseract-cmd",
        default=None,
        help="Path to the tesseract executable"
    )

    parser.add_argument(
        "--max-pages",
        type=int,
        default=None,
        help="Convert at most this many pages (default: all)"
    )

    parser.add_argument(
        "--debug",
        action="store_true",
        help="Show tracebacks on failure"
    )

    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Enable verbose output"
    )

    parser.add_argument(
        "--quiet", "-q",
        action="store_true",
        help="Suppress non-error output"
    )

    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}"
    )

    return parser


def resolve_output_path(input_path: Path, output: Optional[str]) -> Path:
    """Pick the DOCX path for an input PDF and an optional --output value."""
    from .utils.io import derive_output_name

    name = derive_output_name(input_path.name)
    if output is None:
        return input_path.with_name(name)

    output_path = Path(output)
    if output_path.is_dir() or not output_path.suffix:
        return output_path / name
    return output_path


def check_dependencies(tesseract_cmd: Optional[str] = None) -> bool:
    """
    Check if required dependencies are available.

    Args:
        tesseract_cmd: Path to the tesseract binary; applied before the
            version check so a non-PATH install is found
    """
    missing = []

    try:
        import numpy
    except ImportError:
        missing.append("numpy")

    try:
        import cv2
    except ImportError:
        missing.append("opencv-python")

    try:
        import pytesseract
        if tesseract_cmd:
            pytesseract.pytesseract.tesseract_cmd = tesseract_cmd
        try:
            pytesseract.get_tesseract_version()
        except Exception:
            missing.append("tesseract-ocr (system package)")
    except ImportError:
        missing.append("pytesseract")

    try:
        import pdf2image
    except ImportError:
        missing.append("pdf2image")

    try:
        import pdfminer
    except ImportError:
        missing.append("pdfminer.six")

    try:
        import docx
    except ImportError:
        missing.append("python-docx")

    if missing:
        logger.error("Missing required dependencies:")
        for dep in missing:
            logger.error(f"  - {dep}")
        logger.error("Install with: pip install mathdocx")
        return False

    return True


def run_pipeline(args) -> int:
    """Run the conversion for the parsed arguments."""
    from .utils.assembler import DocumentAssembler
    from .utils.errors import ConversionError
    from .utils.io import read_pdf_bytes, write_bytes

    start_time = time.time()

    input_path = Path(args.input)
    if not input_path.is_file():
        logger.error(f"Input file not found: {input_path}")
        return 1

    config = get_config()
    if args.lang:
        config.ocr.tesseract_lang = args.lang
    if args.tesseract_cmd:
        config.ocr.tesseract_cmd = args.tesseract_cmd
    if args.max_pages is not None:
        config.max_pages = args.max_pages
    if args.debug:
        config.debug_mode = True

    output_path = resolve_output_path(input_path, args.output)

    assembler = DocumentAssembler(config)
    try:
        data = assembler.convert(read_pdf_bytes(input_path), source_name=input_path.name)
    except ConversionError as e:
        logger.error(f"Conversion failed: {e}")
        if config.debug_mode:
            raise
        if not args.quiet:
            print(e.user_message, file=sys.stderr)
        return 1

    write_bytes(data, output_path)

    elapsed = time.time() - start_time
    if not args.quiet:
        print(f"Converted {input_path} -> {output_path} in {elapsed:.2f}s")

    return 0


def main():
    """Main entry point."""
    parser = setup_argparser()
    args = parser.parse_args()

    if args.verbose:
        setup_logging(logging.DEBUG)
    elif args.quiet:
        setup_logging(logging.ERROR)
    else:
        setup_logging()

    tesseract_cmd = args.tesseract_cmd or get_config().ocr.tesseract_cmd
    if not check_dependencies(tesseract_cmd):
        sys.exit(1)

    try:
        exit_code = run_pipeline(args)
        sys.exit(exit_code)
    except KeyboardInterrupt:
        logger.info("Interrupted by user")
        sys.exit(130)
    except Exception as e:
        logger.error(f"Unexpected error: {e}")
        if args.debug:
            raise
        sys.exit(1)


if __name__ == "__main__":
    main()
