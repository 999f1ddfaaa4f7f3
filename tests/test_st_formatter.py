"""
Tests for the structured text re-formatter.
"""

import pytest

from plcdiff.errors import InternalInvariantViolation
from plcdiff.st_formatter import format_st, join_tokens, tokenize


class TestTokenizer:
    """Test cases for tokenize and join_tokens."""

    def test_comments_and_strings_are_single_tokens(self):
        tokens = tokenize("msg := 'a;b'; (* x := 1; *)")
        kinds = [t.kind for t in tokens]

        assert kinds == ['word', 'operator', 'string', 'operator', 'comment']
        assert tokens[2].text == "'a;b'"

    def test_line_start_flag(self):
        tokens = tokenize("a\n  b c")
        assert [t.line_start for t in tokens] == [True, True, False]

    def test_unterminated_comment(self):
        with pytest.raises(InternalInvariantViolation):
            tokenize("x := 1; (* never closed")

    @pytest.mark.parametrize("source,expected", [
        ("y:=LIMIT( 0 ,x,100 ) ;", "y := LIMIT(0, x, 100);"),
        ("x := - 1;", "x := -1;"),
        ("r:=1.5E-3;", "r := 1.5E-3;"),
        ("a := b-c;", "a := b - c;"),
        ("ok := NOT (a AND b);", "ok := NOT (a AND b);"),
        ("arr[ i ] := fb.Q;", "arr[i] := fb.Q;"),
        ("t := T#1s;", "t := T#1s;"),
        ("Start(==1==);", "Start(==1==);"),
    ])
    def test_spacing(self, source, expected):
        """Test token spacing is rebuilt regardless of the source layout."""
        assert join_tokens(tokenize(source)) == expected


class TestStructuredTextFormatter:
    """Test cases for format_st."""

    def test_one_statement_per_line(self):
        assert format_st("a:=1;b:=2;") == ["a := 1;", "b := 2;"]

    def test_blank_lines_and_indentation_are_ignored(self):
        assert format_st("\n\n   a := 1;\n\t\tb := 2;\n") == ["a := 1;", "b := 2;"]

    def test_if_elsif_else(self):
        source = "IF a > 1 THEN b := 2; ELSIF a < 0 THEN b := 3; ELSE b := 0; END_IF;"

        assert format_st(source) == [
            "IF a > 1 THEN",
            "    b := 2;",
            "ELSIF a < 0 THEN",
            "    b := 3;",
            "ELSE",
            "    b := 0;",
            "END_IF;",
        ]

    def test_case_labels(self):
        """Test CASE labels sit one level in and their statements two."""
        source = "CASE state OF 0: x := 1; 1, 2: x := 2; ELSE x := 0; END_CASE;"

        assert format_st(source) == [
            "CASE state OF",
            "    0:",
            "        x := 1;",
            "    1, 2:",
            "        x := 2;",
            "    ELSE",
            "        x := 0;",
            "END_CASE;",
        ]

    def test_case_inside_case_branch(self):
        source = "CASE a OF\n1:\n  CASE b OF\n  2: x := 1;\n  END_CASE;\n3: y := 2;\nEND_CASE;"

        assert format_st(source) == [
            "CASE a OF",
            "    1:",
            "        CASE b OF",
            "            2:",
            "                x := 1;",
            "        END_CASE;",
            "    3:",
            "        y := 2;",
            "END_CASE;",
        ]

    @pytest.mark.parametrize("block,expected", [
        ("CASE b OF 2: x := 1; END_CASE;",
         ["CASE b OF", "    2:", "        x := 1;", "END_CASE;"]),
        ("IF b THEN x := 1; END_IF;",
         ["IF b THEN", "    x := 1;", "END_IF;"]),
        ("FOR i := 1 TO 3 DO x := i; END_FOR;",
         ["FOR i := 1 TO 3 DO", "    x := i;", "END_FOR;"]),
        ("WHILE b DO x := 1; END_WHILE;",
         ["WHILE b DO", "    x := 1;", "END_WHILE;"]),
        ("REPEAT x := x + 1; UNTIL x > 3 END_REPEAT;",
         ["REPEAT", "    x := x + 1;", "UNTIL x > 3", "END_REPEAT;"]),
    ])
    def test_block_as_first_statement_of_case_branch(self, block, expected):
        """Test a block opening a CASE branch is nested under the label."""
        source = f"CASE s OF 1: {block} 9: y := 0; END_CASE;"

        assert format_st(source) == (
            ["CASE s OF", "    1:"]
            + ["        " + line for line in expected]
            + ["    9:", "        y := 0;", "END_CASE;"]
        )

    def test_blank_lines_inside_comment_are_dropped(self):
        assert format_st("(* first\n\n   second *)\nx := 1;") == [
            "(* first",
            "second *)",
            "x := 1;",
        ]

    def test_loops(self):
        source = (
            "FOR i := 1 TO 10 BY 2 DO sum := sum + i; END_FOR;\n"
            "WHILE x < 10 DO x := x + 1; END_WHILE;\n"
            "REPEAT x := x - 1; UNTIL x <= 0 END_REPEAT;"
        )

        assert format_st(source) == [
            "FOR i := 1 TO 10 BY 2 DO",
            "    sum := sum + i;",
            "END_FOR;",
            "WHILE x < 10 DO",
            "    x := x + 1;",
            "END_WHILE;",
            "REPEAT",
            "    x := x - 1;",
            "UNTIL x <= 0",
            "END_REPEAT;",
        ]

    def test_nested_blocks(self):
        source = "IF run THEN FOR i := 0 TO 3 DO IF a[i] THEN n := n + 1; END_IF; END_FOR; END_IF;"

        assert format_st(source) == [
            "IF run THEN",
            "    FOR i := 0 TO 3 DO",
            "        IF a[i] THEN",
            "            n := n + 1;",
            "        END_IF;",
            "    END_FOR;",
            "END_IF;",
        ]

    def test_function_block_with_variables(self):
        source = (
            "FUNCTION_BLOCK Timer\n"
            "VAR_INPUT\nIN : BOOL;\nEND_VAR\n"
            "VAR RETAIN\ncount : INT := 0;\nEND_VAR\n"
            "count := count + 1;\n"
            "END_FUNCTION_BLOCK"
        )

        assert format_st(source) == [
            "FUNCTION_BLOCK Timer",
            "    VAR_INPUT",
            "        IN : BOOL;",
            "    END_VAR",
            "    VAR RETAIN",
            "        count : INT := 0;",
            "    END_VAR",
            "    count := count + 1;",
            "END_FUNCTION_BLOCK",
        ]

    def test_trailing_comments_stay_on_their_line(self):
        source = "x := 1; (* set x *)\ny := 2; // done\n(* own line *)\nz := 3;"

        assert format_st(source) == [
            "x := 1; (* set x *)",
            "y := 2; // done",
            "(* own line *)",
            "z := 3;",
        ]

    @pytest.mark.parametrize("source", [
        "IF a THEN x := 1;",
        "x := 1; END_IF;",
        "IF a THEN x := 1; END_WHILE;",
        "WHILE a DO x := 1; END_FOR;",
        "ELSE x := 1;",
        "UNTIL a",
        "VAR x : INT;",
    ])
    def test_unbalanced_blocks(self, source):
        """Test mismatched or unclosed blocks raise."""
        with pytest.raises(InternalInvariantViolation):
            format_st(source, "/Project/Pou")

    def test_error_carries_path(self):
        with pytest.raises(InternalInvariantViolation) as exc_info:
            format_st("IF a THEN", "/Project/Pou")

        assert exc_info.value.path == "/Project/Pou"
