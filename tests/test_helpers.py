"""
Tests for the built-in helpers and the HelperOptions contract.
"""

import logging

import pytest

from hbs import TemplateRegistry
from hbs.helpers import BUILTIN_HELPERS, HelperOptions
from hbs.helpers.boolean import compare_values, values_equal
from hbs.template.scope import ScopeStack


class TestComparison:

    def test_compare_numbers_and_strings(self):
        """Numbers compare numerically, strings lexically"""
        assert compare_values(1, 2) == -1
        assert compare_values(2.5, 2) == 1
        assert compare_values("b", "a") == 1
        assert compare_values("10", 9) == 1
        assert compare_values(False, True) == -1

    def test_incomparable(self):
        """Mixed non-numeric values are not ordered"""
        assert compare_values("x", 1) is None
        assert compare_values(None, 1) is None
        assert compare_values([1], [1]) is None

    def test_values_equal(self):
        """Booleans never equal numbers"""
        assert values_equal(1, 1.0)
        assert not values_equal(True, 1)
        assert values_equal({"a": [1]}, {"a": [1]})
        assert not values_equal("1", 1)


class TestBuiltinHelpers:

    def setup_method(self):
        self.registry = TemplateRegistry()

    def render(self, source, data=None):
        return self.registry.render_template(source, data)

    def test_builtin_names(self):
        """All built-ins are registered"""
        expected = {"if", "unless", "each", "with", "lookup", "log",
                    "eq", "ne", "gt", "gte", "lt", "lte", "and", "or", "not", "len"}
        assert set(BUILTIN_HELPERS) == expected

    def test_comparisons_inline(self):
        """Comparison helpers return booleans rendered as text"""
        data = {"a": 3, "b": 5}
        source = "{{eq a 3}} {{ne a b}} {{gt a b}} {{gte a 3}} {{lt a b}} {{lte b a}}"
        assert self.render(source, data) == "true true false true true false"

    def test_logic_helpers(self):
        """and/or/not follow template truthiness"""
        data = {"t": 1, "f": 0, "e": []}
        source = "{{and t t}} {{and t f}} {{or f e}} {{or f t}} {{not e}} {{not t}}"
        assert self.render(source, data) == "true false false true true false"

    def test_and_without_params_is_false(self):
        """and with nothing to test is false"""
        assert self.render("{{and}}") == "false"

    def test_comparison_as_block(self):
        """Comparison helpers used as blocks choose body or inverse"""
        source = "{{#eq status 'ok'}}fine{{else}}broken{{/eq}}"
        assert self.render(source, {"status": "ok"}) == "fine"
        assert self.render(source, {"status": "down"}) == "broken"

    def test_len(self):
        """len counts lists, mappings and strings; anything else is 0"""
        data = {"xs": [1, 2, 3], "m": {"a": 1}, "s": "abcd", "n": 7}
        assert self.render("{{len xs}} {{len m}} {{len s}} {{len n}} {{len missing}}", data) == "3 1 4 0 0"

    def test_lookup(self):
        """lookup indexes by a computed key"""
        data = {"m": {"a b": "spaced"}, "k": "a b", "xs": ["x", "y"]}
        assert self.render("{{lookup m k}} {{lookup xs 1}} {{lookup m 'nope'}}", data) == "spaced y "

    def test_if_inline(self):
        """if used inline yields its truthiness"""
        assert self.render("{{if x}}", {"x": "y"}) == "true"

    def test_with_block_param(self):
        """with binds its argument to a block param"""
        source = "{{#with user as |u|}}{{u.name}}{{/with}}"
        assert self.render(source, {"user": {"name": "Ann"}}) == "Ann"

    def test_each_non_iterable(self):
        """each over a scalar renders the inverse"""
        assert self.render("{{#each n}}x{{else}}none{{/each}}", {"n": 5}) == "none"

    def test_log_writes_to_logger(self, caplog):
        """log renders nothing and writes its arguments at the given level"""
        with caplog.at_level(logging.DEBUG, logger="hbs.helpers"):
            out = self.render("a{{log 'value:' x level='warn'}}b", {"x": 42})
        assert out == "ab"
        records = [r for r in caplog.records if r.name == "hbs.helpers"]
        assert len(records) == 1
        assert records[0].levelno == logging.WARNING
        assert records[0].getMessage() == "value: 42"


class TestHelperOptions:

    def setup_method(self):
        self.rendered = []

        def render(nodes, scopes):
            self.rendered.append((nodes, scopes))
            return "out"

        self.scopes = ScopeStack.root({"a": {"b": 1}}).push("item", data={"index": 2})
        self.options = HelperOptions(
            name="h",
            params=(1, "x"),
            hash={"k": "v"},
            scopes=self.scopes,
            render=render,
            body=("body",),
            inverse_body=None,
            block_param_names=("item", "i"),
        )

    def test_accessors(self):
        """params, hash, data, context and lookup"""
        opts = self.options
        assert opts.is_block
        assert opts.param(1) == "x"
        assert opts.param(5, "d") == "d"
        assert opts.hash == {"k": "v"}
        assert opts.context == "item"
        assert opts.data("index") == 2
        assert opts.lookup("@root.a.b") == 1

    def test_fn_without_arguments_keeps_scope(self):
        """fn() renders the body against the invocation scope"""
        assert self.options.fn() == "out"
        nodes, scopes = self.rendered[-1]
        assert nodes == ("body",)
        assert scopes is self.scopes

    def test_fn_with_context_pushes_frame(self):
        """fn(ctx) pushes a frame on top of the invocation scope"""
        self.options.fn({"new": 1}, data={"first": True})
        _, scopes = self.rendered[-1]
        assert len(scopes) == len(self.scopes) + 1
        assert scopes.current == {"new": 1}
        assert scopes.get_data("first") is True

    def test_inverse_without_branch(self):
        """inverse() is empty when there is no else branch"""
        assert self.options.inverse() == ""
        assert self.rendered == []

    def test_bind_block_params(self):
        """Declared names are zipped onto values"""
        assert self.options.bind_block_params("v", 0) == {"item": "v", "i": 0}
        assert self.options.bind_block_params("v") == {"item": "v"}


@pytest.mark.parametrize("source,expected", [
    ("{{#if (and a (not b))}}y{{else}}n{{/if}}", "y"),
    ("{{#if (or (eq a 2) (gt a 0))}}y{{else}}n{{/if}}", "y"),
    ("{{#unless (lt a 1)}}y{{else}}n{{/unless}}", "y"),
])
def test_nested_subexpressions(source, expected):
    """Helpers compose through subexpressions"""
    assert TemplateRegistry().render_template(source, {"a": 1, "b": False}) == expected
