# SPDX-License-Identifier: MIT
"""Tests for buildgraph.core.subst."""

import pytest

from buildgraph.core.errors import CircularReferenceError, MissingVariableError
from buildgraph.core.subst import escape, references, reify


class TestReify:
    def test_no_variables(self):
        assert reify("gcc -c a.c", {}) == "gcc -c a.c"

    def test_parenthesized(self):
        assert reify("$(CC) -c a.c", {"CC": "gcc"}) == "gcc -c a.c"

    def test_bare(self):
        assert reify("$CC -c a.c", {"CC": "gcc"}) == "gcc -c a.c"

    def test_nested_values_resolve_to_fixed_point(self):
        assert reify("$(FOO)", {"FOO": "$(BAR)", "BAR": "baz"}) == "baz"

    def test_deep_chain(self):
        variables = {"A": "$(B)/a", "B": "$(C)/b", "C": "root"}
        assert reify("cd $(A)", variables) == "cd root/b/a"

    def test_missing_variable(self):
        with pytest.raises(MissingVariableError) as exc_info:
            reify("$(FOO)", {"FOO": "$(BAR)"})
        assert exc_info.value.variable == "BAR"

    def test_self_reference_is_circular(self):
        with pytest.raises(CircularReferenceError):
            reify("$(X)", {"X": "$(X)"})

    def test_mutual_reference_is_circular(self):
        with pytest.raises(CircularReferenceError) as exc_info:
            reify("$(X)", {"X": "$(Y)", "Y": "$(X)"})
        assert exc_info.value.chain

    def test_escaped_dollar(self):
        assert reify("echo $$HOME", {}) == "echo $HOME"

    def test_escaped_dollar_inside_value(self):
        assert reify("$(A)", {"A": "$$x"}) == "$x"

    def test_dollar_digit_left_alone(self):
        assert reify("awk '{print $1}'", {}) == "awk '{print $1}'"


class TestHelpers:
    def test_escape(self):
        assert escape("a$b") == "a$$b"
        assert reify(escape("cost: $5 $(X)"), {}) == "cost: $5 $(X)"

    def test_references(self):
        assert references("$(A) $B $$C $(D)") == ["A", "B", "D"]
