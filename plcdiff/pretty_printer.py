"""
Pretty-printer for filtered project documents.

Turns the element tree into a list of sections. Every program unit yields at
least one section; rung programs yield one further section per rung. Content
outside program units is kept as indented settings lines so that changes to
configuration still show up in diffs.
"""

import logging
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional, Set, Tuple

from .constants import (
    CODE_ATTRIBUTES, CONTEXT_SEPARATOR, GRAFCET_LINK_TAGS, GRAFCET_NODE_TAGS,
    INDENT, INSTRUCTION_ENTITY_TAG, INSTRUCTION_LINES_TAG, RUNG_HANDLED_CHILDREN,
    RUNG_TAG, UNIT_CHART, UNIT_RUNGS, UNIT_STRUCTURED_TEXT, UNIT_TAGS
)
from .document import Document, NodeKind
from .errors import MalformedInput
from .il_formatter import format_il, normalize_instruction
from .st_formatter import format_st
from .symbols import SymbolTable

logger = logging.getLogger(__name__)


@dataclass
class Section:
    """A labelled run of output lines."""
    label: str
    lines: List[str] = field(default_factory=list)
    is_unit: bool = False


ChildRenderer = Callable[[int, Optional[Section]], Tuple[bool, Optional[Section]]]


def collapse(text: str) -> str:
    """Collapse all whitespace runs to single spaces."""
    return " ".join(text.split())


class PrettyPrinter:
    """Renders a filtered Document into labelled sections of text lines."""

    def __init__(self, symbols: Optional[SymbolTable] = None):
        self.symbols = symbols if symbols is not None else SymbolTable()
        self._document: Optional[Document] = None
        self._sections: List[Section] = []
        self._has_value: Dict[int, bool] = {}

    def render(self, document: Document) -> List[Section]:
        """
        Render a document.

        Args:
            document: Normalized and filtered Document

        Returns:
            Sections in document order

        Raises:
            MalformedInput: A program unit lacks a required name or id
            InternalInvariantViolation: Embedded logic has unbalanced nesting
        """
        self._document = document
        self._sections = []
        self._has_value = {}
        root = document.root
        if root is None:
            return []

        root_tag = document.tag(root)
        if root_tag in UNIT_TAGS:
            self._render_unit(root, None)
        else:
            current: Optional[Section] = None
            root_line = self._value_line(root)
            if root_line is not None:
                current = self._append(root_tag, INDENT + root_line, None)
            for child in document.element_children(root):
                # Top level scalars are grouped under the root, sections get their own label
                label = root_tag if self._is_leaf_value(child) else document.tag(child)
                current = self._render_settings(child, label, 1, current)

        logger.info(f"Rendered {len(self._sections)} sections, "
                    f"{sum(1 for s in self._sections if s.is_unit)} program units")
        return self._sections

    # Settings

    @staticmethod
    def _attribute_line(tag: str, attributes: Dict[str, str]) -> str:
        line = tag
        for name, value in attributes.items():
            line += f' {name}="{collapse(value)}"'
        return line

    def _value_line(self, index: int) -> Optional[str]:
        """Text shown for an element: tag, attributes and text."""
        document = self._document
        attributes = document.attributes(index)
        text = collapse(document.direct_text(index))
        if not attributes and not text:
            return None
        line = self._attribute_line(document.tag(index), attributes)
        if text:
            line += f": {text}"
        return line

    def _is_leaf_value(self, index: int) -> bool:
        document = self._document
        return not document.element_children(index) and self._value_line(index) is not None

    def _settings_line(self, index: int) -> Optional[str]:
        document = self._document
        line = self._value_line(index)
        if line is not None:
            return line
        if any(self._is_leaf_value(child) for child in document.element_children(index)
               if document.tag(child) not in UNIT_TAGS):
            return document.tag(index)
        return None

    def _subtree_has_value(self, index: int) -> bool:
        """True if the subtree, ignoring program units, carries any value."""
        if index not in self._has_value:
            document = self._document
            self._has_value[index] = self._value_line(index) is not None or any(
                self._subtree_has_value(child)
                for child in document.element_children(index)
                if document.tag(child) not in UNIT_TAGS
            )
        return self._has_value[index]

    def _append(self, label: str, line: str, current: Optional[Section]) -> Section:
        if current is None or self._sections[-1] is not current or current.label != label:
            current = Section(label)
            self._sections.append(current)
        current.lines.append(line)
        return current

    def _render_settings(self, index: int, label: str, depth: int,
                         current: Optional[Section]) -> Optional[Section]:
        """
        Render a non-unit subtree as settings lines.

        Nested program units interrupt the section; lines after them reopen a
        new section with the same label.
        """
        document = self._document
        if document.tag(index) in UNIT_TAGS:
            self._render_unit(index, None)
            return None
        if not self._subtree_has_value(index) and not self._contains_unit(index):
            return current

        line = self._settings_line(index)
        child_depth = depth
        if line is not None:
            current = self._append(label, INDENT * depth + line, current)
            child_depth = depth + 1
        for child in document.element_children(index):
            current = self._render_settings(child, label, child_depth, current)
        return current

    def _contains_unit(self, index: int) -> bool:
        document = self._document
        return any(
            document.is_element(node) and document.tag(node) in UNIT_TAGS
            for node in document.iter_preorder(index)
            if node != index
        )

    # Program units

    def _unit_name(self, index: int, required: bool, default: str = "") -> str:
        document = self._document
        name = document.attributes(index).get('Name')
        if name is None:
            name = document.child_text(index, 'Name')
        if name:
            return collapse(name)
        if required:
            raise MalformedInput(f"<{document.tag(index)}> has no Name", document.path(index))
        return default

    def _render_unit(self, index: int, parent_label: Optional[str]):
        document = self._document
        kind = UNIT_TAGS[document.tag(index)]
        if kind == UNIT_CHART:
            name = self._unit_name(index, required=False, default=document.tag(index))
        else:
            name = self._unit_name(index, required=True)
        label = f"{parent_label}{CONTEXT_SEPARATOR}{name}" if parent_label else name
        logger.debug(f"Rendering {kind} unit '{label}' from {document.path(index)}")

        section = Section(label, is_unit=True)
        self._sections.append(section)
        code_attribute = self._code_attribute(index)
        extra = {key: value for key, value in document.attributes(index).items()
                 if key not in ('Name', code_attribute)}
        if extra:
            section.lines.append(INDENT + self._attribute_line(document.tag(index), extra))

        if kind == UNIT_STRUCTURED_TEXT:
            self._render_structured_text(index, label, section)
        elif kind == UNIT_RUNGS:
            self._render_rung_program(index, label, section)
        else:
            self._render_chart(index, label, section)

    def _unit_children(self, index: int, label: str, section: Section, handled: Set[str],
                       special: Optional[ChildRenderer] = None):
        """
        Render the children of a unit.

        ``special`` gets the first look at each child and returns whether it
        consumed it, along with the section later lines should continue in.
        Children nobody claims are rendered as settings lines.
        """
        document = self._document
        current: Optional[Section] = section
        for child in document.element_children(index):
            tag = document.tag(child)
            if tag in handled:
                continue
            if tag in UNIT_TAGS:
                self._render_unit(child, label)
                current = None
                continue
            if special is not None:
                consumed, current = special(child, current)
                if consumed:
                    continue
            current = self._render_settings(child, label, 1, current)

    def _code_attribute(self, index: int) -> Optional[str]:
        """Name of the attribute holding a structured text body, if any."""
        document = self._document
        if UNIT_TAGS[document.tag(index)] != UNIT_STRUCTURED_TEXT:
            return None
        attributes = document.attributes(index)
        for name in CODE_ATTRIBUTES:
            if name in attributes:
                return name
        return None

    def _render_structured_text(self, index: int, label: str, section: Section):
        document = self._document
        self._unit_children(index, label, section, {'Name'})
        code_attribute = self._code_attribute(index)
        if code_attribute is not None:
            source = document.attributes(index)[code_attribute]
            section.lines.extend(INDENT + line for line in format_st(source, document.path(index)))

    # Rungs

    def _render_rung_program(self, index: int, label: str, section: Section):
        document = self._document
        rung_number = 0

        def render_rungs(node: int, current: Optional[Section]):
            nonlocal rung_number
            if document.tag(node) == RUNG_TAG:
                rungs = [node]
            else:
                rungs = [c for c in document.element_children(node) if document.tag(c) == RUNG_TAG]
            if not rungs:
                return False, current
            for rung in rungs:
                rung_number += 1
                self._render_rung(rung, label, rung_number)
            return True, None

        self._unit_children(index, label, section, {'Name'}, special=render_rungs)

    def _render_rung(self, index: int, unit_label: str, number: int):
        document = self._document
        name = collapse(document.child_text(index, 'Name') or "")
        label = f"{unit_label}{CONTEXT_SEPARATOR}{name or f'Rung {number}'}"
        section = Section(label)
        self._sections.append(section)

        comment = collapse(document.child_text(index, 'MainComment') or "")
        if comment:
            section.lines.append(f"{INDENT}(* {comment} *)")
        jump_label = collapse(document.child_text(index, 'Label') or "")
        if jump_label:
            section.lines.append(f"{INDENT}{jump_label}:")

        instructions = []
        container = document.find_child(index, INSTRUCTION_LINES_TAG)
        if container is not None:
            for entity in document.element_children(container):
                if document.tag(entity) == INSTRUCTION_ENTITY_TAG:
                    line = self._instruction_entity(entity)
                    if line:
                        instructions.append(line)
        section.lines.extend(INDENT + line for line in format_il(instructions, document.path(index)))

        current: Optional[Section] = section
        for child in document.element_children(index):
            if document.tag(child) not in RUNG_HANDLED_CHILDREN:
                current = self._render_settings(child, label, 1, current)

    def _instruction_entity(self, index: int) -> str:
        """Join the text fragments of one instruction line entity with tabs."""
        document = self._document
        fragments = []
        for node in document.iter_preorder(index):
            if document.node(node).kind == NodeKind.TEXT:
                fragment = normalize_instruction(document.node(node).text, self.symbols)
                if fragment:
                    fragments.append(fragment)
        return "\t".join(fragments)

    # Grafcet

    def _render_chart(self, index: int, label: str, section: Section):
        document = self._document

        def render_nodes(node: int, current: Optional[Section]):
            nodes = [n for n in document.iter_preorder(node)
                     if document.is_element(n) and document.tag(n) in GRAFCET_NODE_TAGS]
            if not nodes:
                return False, current
            for grafcet_node in nodes:
                current = self._append(label, INDENT + self._grafcet_line(grafcet_node), current)
                for child in document.element_children(grafcet_node):
                    if document.tag(child) not in GRAFCET_LINK_TAGS:
                        current = self._render_settings(child, label, 2, current)
            return True, current

        self._unit_children(index, label, section, {'Name'}, special=render_nodes)

    def _grafcet_line(self, index: int) -> str:
        document = self._document
        node_id = document.child_text(index, 'Id')
        if not node_id:
            raise MalformedInput(f"<{document.tag(index)}> has no Id", document.path(index))
        sources = []
        targets = []
        for child in document.element_children(index):
            if document.tag(child) == 'From':
                sources.append(document.direct_text(child))
            elif document.tag(child) == 'To':
                targets.append(document.direct_text(child))
        if len(sources) > 1 and len(targets) > 1:
            logger.debug(f"Grafcet node {node_id} joins {len(sources)} predecessors "
                         f"to {len(targets)} successors")
        line = f"{GRAFCET_NODE_TAGS[document.tag(index)]} {node_id}"
        if sources:
            line += f" <- {', '.join(sources)}"
        if targets:
            line += f" -> {', '.join(targets)}"
        return line
