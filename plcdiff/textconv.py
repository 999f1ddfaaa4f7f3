"""
Textconv pipeline.

Converts one project file revision into diff-friendly text:
parse, normalize identifiers, drop diagram sections, pretty-print, annotate.
"""

import logging
from pathlib import Path
from typing import List, Union

from .context import AnnotatedLine, ContextAnnotator, render_lines
from .document import parse_document
from .identifiers import IdentifierNormalizer
from .pretty_printer import PrettyPrinter
from .section_filter import SectionFilter
from .symbols import SymbolTable

logger = logging.getLogger(__name__)


def annotate_bytes(data: bytes) -> List[AnnotatedLine]:
    """Run every pipeline stage and return the annotated output lines."""
    document = parse_document(data)

    section_filter = SectionFilter()
    normalizer = IdentifierNormalizer()
    # Identifiers inside diagram data must not shift the labels of the logic
    normalizer.normalize(document, skip=lambda index: section_filter.is_diagram(document, index))
    section_filter.apply(document)

    symbols = SymbolTable.from_document(document)
    sections = PrettyPrinter(symbols).render(document)
    return ContextAnnotator().annotate(sections)


def textconv_bytes(data: bytes, show_context: bool = False) -> str:
    """
    Convert project file bytes to diff-friendly text.

    Args:
        data: Raw project file content
        show_context: Prefix every line with its context label

    Returns:
        The complete output text; nothing is produced if any stage fails
    """
    return render_lines(annotate_bytes(data), show_context=show_context)


def textconv_file(path: Union[str, Path], show_context: bool = False) -> str:
    """Read a project file from disk and convert it."""
    file_path = Path(path)
    logger.info(f"Converting project file: {file_path}")
    return textconv_bytes(file_path.read_bytes(), show_context=show_context)
