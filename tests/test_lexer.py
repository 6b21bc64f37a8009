"""
Tests for the template lexer.
"""

import pytest

from hbs.errors import SyntaxErrorKind, TemplateSyntaxError
from hbs.template.lexer import TemplateLexer
from hbs.template.tokens import TokenType


def _types(tokens):
    return [t.type for t in tokens]


class TestTemplateLexer:

    def setup_method(self):
        self.lexer = TemplateLexer()

    def test_empty_template(self):
        """Empty source yields only EOF"""
        tokens = self.lexer.tokenize("")
        assert _types(tokens) == [TokenType.EOF]

    def test_plain_text(self):
        """Text without markers is a single token, newlines included"""
        tokens = self.lexer.tokenize("line 1\nline 2\n")
        assert _types(tokens) == [TokenType.TEXT, TokenType.EOF]
        assert tokens[0].value == "line 1\nline 2\n"

    def test_text_and_markers_with_positions(self):
        """Markers carry offset, line and column of their opening braces"""
        tokens = self.lexer.tokenize("Hi {{name}}!\n{{#if x}}y{{/if}}")

        assert _types(tokens) == [
            TokenType.TEXT,
            TokenType.EXPRESSION,
            TokenType.TEXT,
            TokenType.BLOCK_OPEN,
            TokenType.TEXT,
            TokenType.BLOCK_CLOSE,
            TokenType.EOF,
        ]

        expr = tokens[1]
        assert expr.value == "name"
        assert expr.raw == "{{name}}"
        assert (expr.position, expr.line, expr.column) == (3, 1, 4)

        block = tokens[3]
        assert block.value == "if x"
        assert (block.position, block.line, block.column) == (13, 2, 1)

        assert tokens[5].value == "if"

    def test_marker_kinds(self):
        """Each sigil maps to its own token type"""
        cases = [
            ("{{x}}", TokenType.EXPRESSION, "x"),
            ("{{{ x }}}", TokenType.RAW_EXPRESSION, "x"),
            ("{{& x}}", TokenType.RAW_EXPRESSION, "x"),
            ("{{#each xs}}", TokenType.BLOCK_OPEN, "each xs"),
            ("{{^xs}}", TokenType.INVERSE_OPEN, "xs"),
            ("{{/each}}", TokenType.BLOCK_CLOSE, "each"),
            ("{{> card}}", TokenType.PARTIAL, "card"),
            ("{{#> layout}}", TokenType.PARTIAL_BLOCK_OPEN, "layout"),
            ("{{! note }}", TokenType.COMMENT, " note"),
        ]
        for source, expected_type, expected_value in cases:
            tokens = self.lexer.tokenize(source)
            assert tokens[0].type == expected_type, source
            assert tokens[0].value == expected_value, source

    def test_else_variants(self):
        """{{else}}, {{^}} and {{else if ...}} are all ELSE tokens"""
        tokens = self.lexer.tokenize("{{#if a}}{{else}}{{^}}{{else if b}}{{/if}}")
        elses = [t for t in tokens if t.type == TokenType.ELSE]
        assert [t.value for t in elses] == ["", "", "if b"]

    def test_identifier_starting_with_else(self):
        """A path named like `elsewhere` is an ordinary expression"""
        tokens = self.lexer.tokenize("{{elsewhere}}")
        assert tokens[0].type == TokenType.EXPRESSION
        assert tokens[0].value == "elsewhere"

    def test_long_comment_may_contain_braces(self):
        """{{!-- --}} comments end only at --}}"""
        tokens = self.lexer.tokenize("a{{!-- {{x}} }} --}}b")
        assert _types(tokens) == [TokenType.TEXT, TokenType.COMMENT, TokenType.TEXT, TokenType.EOF]
        assert tokens[1].value == " {{x}} }} "
        assert tokens[2].value == "b"

    def test_escaped_marker_is_text(self):
        """A backslash before {{ produces literal braces"""
        tokens = self.lexer.tokenize("\\{{name}} and {{name}}")
        assert tokens[0].type == TokenType.TEXT
        assert tokens[0].value == "{{name}} and "
        assert tokens[1].type == TokenType.EXPRESSION

    def test_line_tracking_across_text(self):
        """Line and column follow newlines in preceding text"""
        tokens = self.lexer.tokenize("a\nbb\n  {{x}}")
        expr = tokens[1]
        assert (expr.line, expr.column, expr.position) == (3, 3, 7)


class TestLexerErrors:

    def setup_method(self):
        self.lexer = TemplateLexer()

    def test_unterminated_marker(self):
        """An opening {{ without a closing }} is reported at the opening"""
        with pytest.raises(TemplateSyntaxError) as exc:
            self.lexer.tokenize("ab\n  {{name")
        err = exc.value
        assert err.kind == SyntaxErrorKind.UNTERMINATED_MARKER
        assert (err.line, err.column, err.position) == (2, 3, 5)

    def test_unterminated_raw_marker(self):
        """{{{ needs }}}"""
        with pytest.raises(TemplateSyntaxError) as exc:
            self.lexer.tokenize("{{{name}}")
        assert exc.value.kind == SyntaxErrorKind.UNTERMINATED_MARKER

    def test_unterminated_long_comment(self):
        """{{!-- needs --}}"""
        with pytest.raises(TemplateSyntaxError) as exc:
            self.lexer.tokenize("{{!-- never closed }}")
        assert exc.value.kind == SyntaxErrorKind.UNTERMINATED_MARKER

    def test_empty_marker(self):
        """A marker with nothing inside is invalid"""
        with pytest.raises(TemplateSyntaxError) as exc:
            self.lexer.tokenize("x {{ }} y")
        assert exc.value.kind == SyntaxErrorKind.INVALID_EXPRESSION


class TestWhitespaceControl:

    def setup_method(self):
        self.lexer = TemplateLexer()

    def _texts(self, source):
        return [t.value for t in self.lexer.tokenize(source) if t.type == TokenType.TEXT]

    def test_tilde_strips_adjacent_whitespace(self):
        """{{~ and ~}} remove whitespace on their side"""
        assert self._texts("a  \n {{~x~}} \n b") == ["a", "b"]

    def test_raw_marker_tilde_close(self):
        """{{{v}~}} closes the raw marker and trims what follows"""
        tokens = self.lexer.tokenize("a {{{v}~}} b")
        raw = tokens[1]
        assert raw.type == TokenType.RAW_EXPRESSION
        assert raw.value == "v"
        assert raw.strip_right and not raw.strip_left
        assert self._texts("a {{{v}~}} b") == ["a ", "b"]

    def test_tilde_one_side_only(self):
        """Only the marked side is trimmed"""
        assert self._texts("a  {{~x}}  b") == ["a", "  b"]

    def test_standalone_block_lines_removed(self):
        """Block markers alone on a line take the whole line with them"""
        source = "begin\n  {{#if x}}  \nbody\n{{/if}}\nend"
        assert self._texts(source) == ["begin\n", "body\n", "end"]

    def test_consecutive_standalone_markers(self):
        """Several standalone markers in a row are all removed"""
        source = "{{#if a}}\n{{#if b}}\nX\n{{/if}}\n{{/if}}\n"
        assert self._texts(source) == ["X\n"]

    def test_inline_markers_keep_whitespace(self):
        """Markers sharing the line with other content are not standalone"""
        source = "a {{#if x}}b{{/if}} c\n"
        assert self._texts(source) == ["a ", "b", " c\n"]

    def test_expressions_are_never_standalone(self):
        """Interpolations keep their line"""
        assert self._texts("  {{x}}\n") == ["  ", "\n"]

    def test_standalone_comment(self):
        """A comment alone on its line disappears with the line"""
        assert self._texts("a\n{{! note }}\nb") == ["a\n", "b"]

    def test_standalone_partial_records_indent(self):
        """A partial alone on its line drops the line and keeps its indentation"""
        tokens = self.lexer.tokenize("a\n    {{> inner}}\nb")
        assert [t.value for t in tokens if t.type == TokenType.TEXT] == ["a\n", "b"]
        partial = next(t for t in tokens if t.type == TokenType.PARTIAL)
        assert partial.indent == "    "

    def test_inline_partial_has_no_indent(self):
        """A partial sharing its line is left alone"""
        tokens = self.lexer.tokenize("  x {{> inner}}\n")
        assert [t.value for t in tokens if t.type == TokenType.TEXT] == ["  x ", "\n"]
        assert next(t for t in tokens if t.type == TokenType.PARTIAL).indent == ""
