"""
plcdiff: a git textconv filter for PLC project files.

Supports:
- EcoStruxure Machine Expert Basic / SoMachine Basic (.smbp) rung programs
- Grafcet charts and structured text program units
- Stable GUID normalization and ladder diagram elision
- Context markers for git diff hunk headers
"""

from .errors import PlcDiffError, MalformedInput, UnsupportedEncoding, InternalInvariantViolation
from .document import Document, parse_document
from .identifiers import IdentifierNormalizer
from .section_filter import SectionFilter, SectionClass
from .symbols import SymbolTable
from .pretty_printer import PrettyPrinter, Section
from .context import ContextAnnotator, AnnotatedLine, render_lines
from .textconv import textconv_bytes, textconv_file

__version__ = "0.1.0"
__all__ = [
    "PlcDiffError",
    "MalformedInput",
    "UnsupportedEncoding",
    "InternalInvariantViolation",
    "Document",
    "parse_document",
    "IdentifierNormalizer",
    "SectionFilter",
    "SectionClass",
    "SymbolTable",
    "PrettyPrinter",
    "Section",
    "ContextAnnotator",
    "AnnotatedLine",
    "render_lines",
    "textconv_bytes",
    "textconv_file",
]
