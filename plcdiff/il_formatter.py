"""Instruction list (IL) line normalization and block indentation."""

from typing import List, Optional

from .constants import INDENT, SYMBOL_COLUMN
from .errors import InternalInvariantViolation
from .symbols import SymbolTable

BLOCK_OPEN = 'BLK'
BLOCK_OUT = 'OUT_BLK'
BLOCK_CLOSE = 'END_BLK'


def normalize_instruction(text: str, symbols: Optional[SymbolTable] = None) -> str:
    """
    Collapse whitespace in one instruction and annotate IO operands.

    ``LD    %I0.0`` becomes ``LD %I0.0      [START]`` when ``%I0.0`` has the
    symbol ``START``; the bracket is padded out to a fixed column.
    """
    line = ""
    for word in text.split():
        line += word
        symbol = symbols.get_symbol(word) if symbols is not None else None
        if symbol:
            line += " " * (1 + max(0, SYMBOL_COLUMN - len(line)))
            line += f"[{symbol}]"
        line += " "
    return line[:-1]


def _opcode(line: str) -> str:
    parts = line.split(None, 1)
    return parts[0].upper() if parts else ""


def format_il(lines: List[str], where: Optional[str] = None) -> List[str]:
    """
    Indent a rung's instruction lines by block and parenthesis nesting.

    Args:
        lines: Normalized instruction lines in rung order
        where: Element path used in error messages

    Raises:
        InternalInvariantViolation: A block or parenthesis is closed without
            being opened, or left open at the end of the rung
    """
    stack: List[str] = []
    formatted = []
    for line in lines:
        opcode = _opcode(line)
        level = len(stack)

        if opcode == BLOCK_CLOSE:
            if not stack or stack[-1] != BLOCK_OPEN:
                raise InternalInvariantViolation(f"'{line}' without matching {BLOCK_OPEN}", where)
            stack.pop()
            level = len(stack)
        elif opcode == BLOCK_OUT:
            if not stack or stack[-1] != BLOCK_OPEN:
                raise InternalInvariantViolation(f"'{line}' outside of a {BLOCK_OPEN}", where)
            level = len(stack) - 1
        elif opcode.startswith(")"):
            if not stack or stack[-1] != "(":
                raise InternalInvariantViolation(f"'{line}' closes an unopened parenthesis", where)
            stack.pop()
            level = len(stack)

        formatted.append(INDENT * level + line)

        if opcode == BLOCK_OPEN:
            stack.append(BLOCK_OPEN)
        elif opcode.endswith("("):
            stack.append("(")

    if stack:
        raise InternalInvariantViolation(f"Unclosed {stack[-1]} at end of rung", where)
    return formatted
