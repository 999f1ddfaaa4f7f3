"""
Diagram section filter.

Ladder layout (grid positions, wire routing, element shapes) changes on every
save even when behaviour does not. Those subtrees are removed before printing.
Classification is a closed table lookup; anything not in the table is kept.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import List

from .constants import (
    DIAGRAM_LANGUAGES, DIAGRAM_TAGS, LANGUAGE_ATTRIBUTE, LOGIC_LANGUAGES, LOGIC_TAGS
)
from .document import Document

logger = logging.getLogger(__name__)


class SectionClass(Enum):
    """Classification of a subtree."""
    LOGIC = "logic"
    DIAGRAM = "diagram"
    UNKNOWN = "unknown"


@dataclass
class FilterReport:
    """Summary of what the filter removed."""
    removed_subtrees: int = 0
    removed_nodes: int = 0


def _language(document: Document, index: int) -> str:
    for name, value in document.attributes(index).items():
        if name.lower() == LANGUAGE_ATTRIBUTE:
            return value.strip().upper()
    return ""


class SectionFilter:
    """Classifies subtrees as diagram or logic and drops the diagram ones."""

    def classify(self, document: Document, index: int) -> SectionClass:
        """Classify one element by its language attribute, then by its tag."""
        language = _language(document, index)
        if language in DIAGRAM_LANGUAGES:
            return SectionClass.DIAGRAM
        if language in LOGIC_LANGUAGES:
            return SectionClass.LOGIC

        tag = document.tag(index)
        if tag in DIAGRAM_TAGS:
            return SectionClass.DIAGRAM
        if tag in LOGIC_TAGS:
            return SectionClass.LOGIC
        return SectionClass.UNKNOWN

    def is_diagram(self, document: Document, index: int) -> bool:
        return (index != document.root
                and self.classify(document, index) == SectionClass.DIAGRAM)

    def diagram_subtrees(self, document: Document) -> List[int]:
        """Outermost diagram subtrees, in document order."""
        found: List[int] = []

        def skip(index: int) -> bool:
            if self.is_diagram(document, index):
                found.append(index)
                return True
            return False

        for _ in document.iter_preorder(skip=skip):
            pass
        return found

    def apply(self, document: Document) -> FilterReport:
        """Detach every diagram subtree from the document."""
        report = FilterReport()
        for index in self.diagram_subtrees(document):
            logger.debug(f"Removing diagram subtree {document.path(index)}")
            report.removed_nodes += document.detach(index)
            report.removed_subtrees += 1

        logger.info(f"Removed {report.removed_subtrees} diagram subtrees "
                    f"({report.removed_nodes} nodes)")
        return report
