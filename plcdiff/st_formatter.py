"""
Structured Text (IEC 61131-3 ST) re-formatter.

Project files store a program body as one attribute value whose line breaks
and indentation are whatever the editor happened to write. The body is
tokenized and re-emitted one statement per line, with token spacing rebuilt
and indentation derived from block nesting, so that two revisions only
differ where the code does.
"""

import re
import logging
from dataclasses import dataclass
from typing import List, Optional

from .constants import INDENT
from .errors import InternalInvariantViolation

logger = logging.getLogger(__name__)

_TOKEN = re.compile(r"""
    (?P<comment>\(\*.*?\*\))
  | (?P<open_comment>\(\*)
  | (?P<line_comment>//[^\r\n]*)
  | (?P<pragma>\{[^}]*\})
  | (?P<string>'(?:\$.|[^'$])*'|"(?:\$.|[^"$])*")
  | (?P<label>==\d+==)
  | (?P<newline>\r\n|\r|\n)
  | (?P<space>[ \t\f\v]+)
  | (?P<word>(?:[^\W\d]|%)[\w.%#]*)
  | (?P<number>\d[\w.#]*)
  | (?P<operator>:=|=>|<=|>=|<>|\*\*|[-+*/=<>&:;,()\[\]^.])
  | (?P<other>.)
""", re.VERBOSE | re.DOTALL)

VAR_KEYWORDS = {
    'VAR', 'VAR_INPUT', 'VAR_OUTPUT', 'VAR_IN_OUT', 'VAR_TEMP', 'VAR_GLOBAL',
    'VAR_EXTERNAL', 'VAR_STAT', 'VAR_INST', 'VAR_CONFIG', 'VAR_ACCESS',
}
VAR_QUALIFIERS = {'CONSTANT', 'RETAIN', 'PERSISTENT', 'NON_RETAIN'}
HEADER_KEYWORDS = {
    'PROGRAM', 'FUNCTION_BLOCK', 'FUNCTION', 'METHOD', 'ACTION',
    'INTERFACE', 'PROPERTY', 'TYPE',
}
BLOCK_ENDS = {
    'END_IF': 'IF',
    'END_CASE': 'CASE',
    'END_FOR': 'FOR',
    'END_WHILE': 'WHILE',
    'END_REPEAT': 'REPEAT',
    'END_VAR': 'VAR',
    'END_STRUCT': 'STRUCT',
    'END_UNION': 'UNION',
    'END_TYPE': 'TYPE',
    'END_PROGRAM': 'PROGRAM',
    'END_FUNCTION_BLOCK': 'FUNCTION_BLOCK',
    'END_FUNCTION': 'FUNCTION',
    'END_METHOD': 'METHOD',
    'END_ACTION': 'ACTION',
    'END_INTERFACE': 'INTERFACE',
    'END_PROPERTY': 'PROPERTY',
}
# Words after which "(" is a parenthesised expression, not a call
EXPRESSION_KEYWORDS = {
    'IF', 'ELSIF', 'WHILE', 'UNTIL', 'CASE', 'AND', 'OR', 'XOR', 'NOT',
    'MOD', 'THEN', 'DO', 'OF', 'TO', 'BY', 'RETURN', 'AND_THEN', 'OR_ELSE',
}
# Words that start a statement, never a CASE label
STATEMENT_KEYWORDS = {'IF', 'CASE', 'FOR', 'WHILE', 'REPEAT', 'RETURN', 'EXIT', 'CONTINUE'}
# Words that end a block opening line; a CASE label cannot span them
OPENER_ENDS = {'THEN', 'DO', 'OF'}


@dataclass
class Token:
    """A lexical token of structured text."""
    kind: str
    text: str
    line_start: bool = False

    @property
    def keyword(self) -> str:
        return self.text.upper() if self.kind == 'word' else ""


@dataclass
class _Frame:
    kind: str
    case_body: bool = False


def tokenize(source: str, where: Optional[str] = None) -> List[Token]:
    """Split structured text into tokens, dropping whitespace."""
    tokens: List[Token] = []
    line_start = True
    for match in _TOKEN.finditer(source):
        kind = match.lastgroup
        if kind == 'newline':
            line_start = True
            continue
        if kind == 'space':
            continue
        if kind == 'open_comment':
            raise InternalInvariantViolation("Unterminated (* comment in structured text", where)
        tokens.append(Token(kind, match.group(0), line_start))
        line_start = False
    return tokens


def _is_exponent_number(token: Optional[Token]) -> bool:
    return (token is not None and token.kind == 'number'
            and token.text[-1] in 'eE' and '#' not in token.text)


def _is_unary_position(token: Optional[Token]) -> bool:
    """True if a sign following ``token`` is a unary sign."""
    if token is None:
        return True
    if token.kind == 'operator':
        return token.text not in (')', ']')
    return token.keyword in EXPRESSION_KEYWORDS


def _needs_space(before: Optional[Token], prev: Token, token: Token) -> bool:
    if token.text in (';', ',', ')', ']', '.', '^'):
        return False
    if prev.text in ('(', '[', '.'):
        return False
    if token.text in ('(', '[') and prev.kind == 'word' \
            and prev.keyword not in EXPRESSION_KEYWORDS:
        return False
    if token.text in ('+', '-') and _is_exponent_number(prev):
        return False
    if prev.text in ('+', '-') and (_is_exponent_number(before) or _is_unary_position(before)):
        return False
    return True


def join_tokens(tokens: List[Token]) -> str:
    """Rebuild source text for one line with normalized spacing."""
    text = ""
    before: Optional[Token] = None
    prev: Optional[Token] = None
    for token in tokens:
        if prev is not None and _needs_space(before, prev, token):
            text += " "
        text += token.text
        before, prev = prev, token
    return text


class StructuredTextFormatter:
    """Re-emits structured text one statement per line, indented by nesting."""

    def __init__(self, where: Optional[str] = None):
        self.where = where
        self.lines: List[str] = []
        self._stack: List[_Frame] = []
        self._line: List[Token] = []
        self._level = 0
        self._header = False
        self._attachable = False

    def _depth(self) -> int:
        return len(self._stack) + sum(1 for frame in self._stack if frame.case_body)

    def _fail(self, message: str):
        raise InternalInvariantViolation(message, self.where)

    def _add(self, token: Token):
        if not self._line:
            self._level = self._depth()
        self._line.append(token)

    def _emit(self, text: str, level: int):
        self.lines.append(INDENT * level + text)

    def _flush(self):
        if self._line:
            self._emit(join_tokens(self._line), self._level)
            self._line = []
            self._attachable = True
        self._header = False

    def _close(self, token: Token, expected: str):
        self._flush()
        top = self._stack[-1] if self._stack else None
        if top is None or top.kind != expected:
            found = top.kind if top else "nothing"
            self._fail(f"{token.text} closes {found}, expected {expected}")
        self._stack.pop()
        self._add(token)

    def _comment(self, token: Token):
        text = " ".join(token.text.split()) if self._line else token.text
        if self._line:
            self._line.append(Token(token.kind, text, token.line_start))
        elif not token.line_start and self._attachable and self.lines:
            self.lines[-1] += " " + " ".join(text.split())
        else:
            for part in text.splitlines():
                if part.strip():
                    self._emit(part.strip(), self._depth())
        if token.kind == 'line_comment':
            self._flush()

    def _case_label_end(self, tokens: List[Token], start: int) -> Optional[int]:
        """Index of the ':' closing a CASE label starting at ``start``, if any."""
        for position in range(start, len(tokens)):
            token = tokens[position]
            if token.text == ':':
                return position
            if token.text in (';', ':=') or token.keyword in BLOCK_ENDS \
                    or token.keyword in OPENER_ENDS or token.keyword == 'ELSE':
                return None
        return None

    def format(self, source: str) -> List[str]:
        """
        Format a structured text body.

        Returns:
            Lines indented relative to the body (no base indentation)

        Raises:
            InternalInvariantViolation: Block keywords are unbalanced
        """
        tokens = tokenize(source, self.where)
        position = 0
        while position < len(tokens):
            token = tokens[position]
            position += 1
            keyword = token.keyword

            if token.line_start:
                self._attachable = False
                if self._header:
                    self._flush()

            if token.kind in ('comment', 'line_comment'):
                self._comment(token)
                continue
            if token.kind == 'pragma':
                self._flush()
                self._add(token)
                self._flush()
                continue

            top = self._stack[-1] if self._stack else None
            if not self._line and top is not None and top.kind == 'CASE' \
                    and keyword not in BLOCK_ENDS and keyword not in STATEMENT_KEYWORDS \
                    and keyword != 'ELSE':
                end = self._case_label_end(tokens, position - 1)
                if end is not None:
                    label = join_tokens(tokens[position - 1:end])
                    self._emit(f"{label}:", self._depth() - (1 if top.case_body else 0))
                    self._attachable = True
                    top.case_body = True
                    position = end + 1
                    continue

            if keyword in VAR_KEYWORDS:
                self._flush()
                self._add(token)
                while position < len(tokens) and tokens[position].keyword in VAR_QUALIFIERS:
                    self._line.append(tokens[position])
                    position += 1
                self._flush()
                self._stack.append(_Frame('VAR'))
            elif keyword in HEADER_KEYWORDS and not self._line:
                self._add(token)
                self._stack.append(_Frame(keyword))
                self._header = True
            elif keyword in ('STRUCT', 'UNION'):
                self._flush()
                self._add(token)
                self._flush()
                self._stack.append(_Frame(keyword))
            elif keyword in BLOCK_ENDS:
                self._close(token, BLOCK_ENDS[keyword])
                if position < len(tokens) and tokens[position].text == ';':
                    self._line.append(tokens[position])
                    position += 1
                self._flush()
            elif keyword == 'ELSIF':
                self._flush()
                if top is None or top.kind != 'IF':
                    self._fail("ELSIF outside of IF")
                self._add(token)
                self._level = self._depth() - 1
            elif keyword == 'ELSE':
                self._flush()
                if top is None or top.kind not in ('IF', 'CASE'):
                    self._fail("ELSE outside of IF or CASE")
                if top.kind == 'CASE':
                    top.case_body = True
                self._emit(token.text, self._depth() - 1)
                self._attachable = True
            elif keyword == 'REPEAT':
                self._flush()
                self._add(token)
                self._flush()
                self._stack.append(_Frame('REPEAT'))
            elif keyword == 'UNTIL':
                self._flush()
                if top is None or top.kind != 'REPEAT':
                    self._fail("UNTIL outside of REPEAT")
                self._add(token)
                self._level = self._depth() - 1
            elif keyword in ('THEN', 'DO', 'OF') and self._line:
                opener = self._line[0].keyword
                self._line.append(token)
                if keyword == 'THEN' and opener in ('IF', 'ELSIF'):
                    self._flush()
                    if opener == 'IF':
                        self._stack.append(_Frame('IF'))
                elif keyword == 'DO' and opener in ('FOR', 'WHILE'):
                    self._flush()
                    self._stack.append(_Frame(opener))
                elif keyword == 'OF' and opener == 'CASE':
                    self._flush()
                    self._stack.append(_Frame('CASE'))
            elif token.text == ';':
                self._add(token)
                self._flush()
            else:
                self._add(token)

        self._flush()
        if self._stack:
            self._fail(f"Unclosed {self._stack[-1].kind} at end of structured text")
        return self.lines


def format_st(source: str, where: Optional[str] = None) -> List[str]:
    """Format a structured text body; see StructuredTextFormatter."""
    return StructuredTextFormatter(where).format(source)
