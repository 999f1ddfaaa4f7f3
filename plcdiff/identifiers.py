"""
Identifier normalization.

Project files cross-reference steps, rungs and variables through GUIDs that
are regenerated on every save. Each GUID is replaced with a short label
derived only from the order in which it first appears, so two revisions that
differ only in regenerated GUIDs normalize to identical text.
"""

import logging
from typing import Callable, Dict, Optional

from ordered_set import OrderedSet

from .constants import GUID_PATTERN, IDENTIFIER_LABEL_FORMAT
from .document import Document, NodeKind

logger = logging.getLogger(__name__)


class IdentifierNormalizer:
    """Rewrites GUID tokens to first-seen-order labels, scoped to one document."""

    def __init__(self):
        self._seen: OrderedSet = OrderedSet()
        self._originals: Dict[str, str] = {}

    def label_for(self, token: str) -> str:
        """Return the label for a token, assigning the next one on first sight."""
        key = token.lower()
        if key not in self._seen:
            self._originals[key] = token
        position = self._seen.add(key)
        return IDENTIFIER_LABEL_FORMAT.format(position + 1)

    def normalize_text(self, value: str) -> str:
        """Replace every GUID in a string with its label."""
        return GUID_PATTERN.sub(lambda match: self.label_for(match.group(0)), value)

    def normalize(self, document: Document,
                  skip: Optional[Callable[[int], bool]] = None) -> int:
        """
        Normalize all attribute values and text runs of a document in place.

        Args:
            document: Parsed project file
            skip: Predicate over element indices whose subtrees are left untouched

        Returns:
            Number of distinct identifiers seen so far
        """
        for index in document.iter_preorder(skip=skip):
            node = document.node(index)
            if node.kind == NodeKind.TEXT:
                node.text = self.normalize_text(node.text)
                continue
            for name, value in node.attributes.items():
                node.attributes[name] = self.normalize_text(value)

        logger.info(f"Normalized {len(self._seen)} distinct identifiers")
        return len(self._seen)

    @property
    def labels(self) -> Dict[str, str]:
        """Original identifier -> label, in first-seen order."""
        return {
            self._originals[key]: IDENTIFIER_LABEL_FORMAT.format(position + 1)
            for position, key in enumerate(self._seen)
        }
