"""
Context markers for diff hunk headers.

Each section of output is introduced by a marker line ``### <label>``. Git
is configured with ``xfuncname = "^### (.*)$"`` for the project file diff
driver, so every hunk header names the program unit or rung it belongs to.
"""

import logging
import re
from dataclasses import dataclass
from typing import List, Optional, Tuple

from .constants import HUNK_HEADER_PATTERN, MARKER_PREFIX
from .pretty_printer import Section, collapse

logger = logging.getLogger(__name__)

_MARKER = re.compile(HUNK_HEADER_PATTERN)


@dataclass
class AnnotatedLine:
    """One output line with the label of the section it belongs to."""
    text: str
    context: str
    is_marker: bool = False


class ContextAnnotator:
    """Interleaves context marker lines with rendered sections."""

    def marker(self, label: str) -> str:
        return f"{MARKER_PREFIX}{collapse(label)}"

    def annotate(self, sections: List[Section]) -> List[AnnotatedLine]:
        """Emit a marker before every section followed by its body lines."""
        lines: List[AnnotatedLine] = []
        for section in sections:
            label = collapse(section.label)
            lines.append(AnnotatedLine(self.marker(label), label, is_marker=True))
            lines.extend(AnnotatedLine(text, label) for text in section.lines)

        logger.info(f"Annotated {len(lines)} lines in {len(sections)} sections")
        return lines

    @staticmethod
    def extract_contexts(text: str) -> List[Tuple[str, Optional[str]]]:
        """
        Read rendered output back the way git's hunk header lookup does.

        Returns:
            (line, label of the nearest preceding marker) for every body line
        """
        contexts: List[Tuple[str, Optional[str]]] = []
        current: Optional[str] = None
        for line in text.splitlines():
            match = _MARKER.match(line)
            if match:
                current = match.group(1)
            else:
                contexts.append((line, current))
        return contexts


def render_lines(lines: List[AnnotatedLine], show_context: bool = False) -> str:
    """Join annotated lines into the final output text."""
    if show_context:
        texts = [f"{line.context}\t{line.text}" for line in lines]
    else:
        texts = [line.text for line in lines]
    if not texts:
        return ""
    return "\n".join(texts) + "\n"
