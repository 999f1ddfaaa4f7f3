"""
Project file parser.

Parses raw project file bytes into an arena-backed element tree. Nodes are
kept in a single list and reference their parent and children by index, so
later stages can walk upwards for context without shared ownership.
"""

import codecs
import logging
import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Dict, Iterator, List, Optional
import xml.etree.ElementTree as ET

from .errors import MalformedInput, UnsupportedEncoding

logger = logging.getLogger(__name__)

_BOMS = (
    (codecs.BOM_UTF32_LE, 'utf-32'),
    (codecs.BOM_UTF32_BE, 'utf-32'),
    (codecs.BOM_UTF8, 'utf-8-sig'),
    (codecs.BOM_UTF16_LE, 'utf-16'),
    (codecs.BOM_UTF16_BE, 'utf-16'),
)
_XML_DECLARATION = re.compile(
    rb'^\s*<\?xml[^>]*?encoding\s*=\s*["\']([A-Za-z0-9._\-]+)["\']'
)


class NodeKind(Enum):
    """Kind of a node stored in the arena."""
    ELEMENT = "element"
    TEXT = "text"


@dataclass
class Node:
    """One element or text run of a parsed project file."""
    kind: NodeKind
    tag: str = ""
    attributes: Dict[str, str] = field(default_factory=dict)
    text: str = ""
    parent: Optional[int] = None
    children: List[int] = field(default_factory=list)


class Document:
    """Ordered element tree stored as an index-addressed arena."""

    def __init__(self):
        self.nodes: List[Node] = []
        self.root: Optional[int] = None

    def __len__(self) -> int:
        return len(self.nodes)

    def add_element(self, tag: str, attributes: Optional[Dict[str, str]] = None,
                    parent: Optional[int] = None) -> int:
        """Append an element and link it below ``parent`` (or make it the root)."""
        index = len(self.nodes)
        self.nodes.append(Node(NodeKind.ELEMENT, tag=tag,
                               attributes=dict(attributes or {}), parent=parent))
        if parent is None:
            if self.root is not None:
                raise MalformedInput(f"Second root element <{tag}>")
            self.root = index
        else:
            self.nodes[parent].children.append(index)
        return index

    def add_text(self, text: str, parent: int) -> int:
        """Append a text run below ``parent``, merging with a preceding run."""
        siblings = self.nodes[parent].children
        if siblings and self.nodes[siblings[-1]].kind == NodeKind.TEXT:
            self.nodes[siblings[-1]].text += text
            return siblings[-1]
        index = len(self.nodes)
        self.nodes.append(Node(NodeKind.TEXT, text=text, parent=parent))
        siblings.append(index)
        return index

    def node(self, index: int) -> Node:
        return self.nodes[index]

    def is_element(self, index: int) -> bool:
        return self.nodes[index].kind == NodeKind.ELEMENT

    def tag(self, index: int) -> str:
        return self.nodes[index].tag

    def attributes(self, index: int) -> Dict[str, str]:
        return self.nodes[index].attributes

    def children(self, index: int) -> List[int]:
        return list(self.nodes[index].children)

    def element_children(self, index: int) -> List[int]:
        return [child for child in self.nodes[index].children if self.is_element(child)]

    def find_child(self, index: int, tag: str) -> Optional[int]:
        """Return the first child element called ``tag``."""
        for child in self.nodes[index].children:
            if self.is_element(child) and self.nodes[child].tag == tag:
                return child
        return None

    def direct_text(self, index: int) -> str:
        """Concatenated text runs directly below an element, stripped."""
        return "".join(
            self.nodes[child].text
            for child in self.nodes[index].children
            if self.nodes[child].kind == NodeKind.TEXT
        ).strip()

    def child_text(self, index: int, tag: str) -> Optional[str]:
        """Stripped text of the first child element ``tag``, or None if absent."""
        child = self.find_child(index, tag)
        if child is None:
            return None
        return self.direct_text(child)

    def iter_preorder(self, start: Optional[int] = None,
                      skip: Optional[Callable[[int], bool]] = None) -> Iterator[int]:
        """
        Yield node indices in document order.

        Args:
            start: Subtree to walk (defaults to the root)
            skip: Predicate over element indices; matching subtrees are not entered
        """
        if start is None:
            start = self.root
        if start is None:
            return
        stack = [start]
        while stack:
            index = stack.pop()
            if skip is not None and self.is_element(index) and skip(index):
                continue
            yield index
            stack.extend(reversed(self.nodes[index].children))

    def ancestors(self, index: int) -> Iterator[int]:
        """Yield the parent chain of a node, nearest first."""
        parent = self.nodes[index].parent
        while parent is not None:
            yield parent
            parent = self.nodes[parent].parent

    def path(self, index: int) -> str:
        """Slash separated element path such as ``/Project/Pous/Pou[2]``."""
        parts = []
        current: Optional[int] = index
        while current is not None:
            node = self.nodes[current]
            part = node.tag if node.kind == NodeKind.ELEMENT else "text()"
            if node.parent is not None and node.kind == NodeKind.ELEMENT:
                same = [c for c in self.nodes[node.parent].children
                        if self.is_element(c) and self.nodes[c].tag == node.tag]
                if len(same) > 1:
                    part += f"[{same.index(current) + 1}]"
            parts.append(part)
            current = node.parent
        return "/" + "/".join(reversed(parts))

    def detach(self, index: int) -> int:
        """
        Unlink a subtree from its parent.

        The nodes stay in the arena but are no longer reachable from the root.
        Returns the number of nodes in the detached subtree.
        """
        node = self.nodes[index]
        if node.parent is None:
            raise ValueError("Cannot detach the document root")
        removed = sum(1 for _ in self.iter_preorder(index))
        self.nodes[node.parent].children.remove(index)
        node.parent = None
        return removed

    def is_attached(self, index: int) -> bool:
        """True if the node is still reachable from the root."""
        current = index
        while current != self.root:
            parent = self.nodes[current].parent
            if parent is None:
                return False
            current = parent
        return True


class _ArenaBuilder:
    """ElementTree parser target that fills a Document instead of Elements."""

    def __init__(self, document: Document):
        self.document = document
        self._stack: List[int] = []

    def start(self, tag, attrib):
        parent = self._stack[-1] if self._stack else None
        index = self.document.add_element(_local_name(tag), _local_attributes(attrib), parent)
        self._stack.append(index)

    def end(self, tag):
        self._stack.pop()

    def data(self, data):
        if self._stack:
            self.document.add_text(data, self._stack[-1])

    def close(self):
        return self.document


def _local_name(name: str) -> str:
    if name.startswith("{"):
        return name.rsplit("}", 1)[1]
    return name


def _local_attributes(attrib: Dict[str, str]) -> Dict[str, str]:
    attributes: Dict[str, str] = {}
    for key, value in attrib.items():
        local = _local_name(key)
        attributes[key if local in attributes else local] = value
    return attributes


def detect_encoding(data: bytes) -> str:
    """Pick the codec from a byte order mark or the XML declaration."""
    for bom, encoding in _BOMS:
        if data.startswith(bom):
            return encoding
    match = _XML_DECLARATION.match(data)
    if match:
        return match.group(1).decode('ascii')
    return 'utf-8'


def decode_input(data: bytes) -> str:
    """Decode raw project bytes, raising UnsupportedEncoding on failure."""
    encoding = detect_encoding(data)
    try:
        codecs.lookup(encoding)
    except LookupError:
        raise UnsupportedEncoding(f"Unknown encoding '{encoding}' declared")
    try:
        return data.decode(encoding)
    except UnicodeDecodeError as e:
        raise UnsupportedEncoding(
            f"Input is not valid {encoding}: byte {e.start} cannot be decoded"
        )


def parse_document(data: bytes) -> Document:
    """
    Parse project file bytes into a Document.

    Args:
        data: Raw file content

    Returns:
        The parsed Document with element and attribute order preserved

    Raises:
        UnsupportedEncoding: Content cannot be decoded
        MalformedInput: Content is not well-formed XML
    """
    text = decode_input(data)
    document = Document()
    parser = ET.XMLParser(target=_ArenaBuilder(document))
    try:
        # Text is fed as str, so expat ignores the encoding in the declaration
        parser.feed(text)
        parser.close()
    except ET.ParseError as e:
        raise MalformedInput(f"Not well-formed XML: {e}")
    if document.root is None:
        raise MalformedInput("No root element found")

    logger.info(f"Parsed {len(document)} nodes, root <{document.tag(document.root)}>")
    return document
