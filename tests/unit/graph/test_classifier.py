"""
Tests for funcarrows.graph.classifier module.
"""

import pytest

from funcarrows.core.types import TriggerKind
from funcarrows.graph.classifier import Grammar, classify, is_propagator_of_kind


class TestClassify:
    """Tests for classify()."""

    @pytest.mark.parametrize(
        "text,kind",
        [
            ("{ val: 1 }", TriggerKind.CHANGE),
            ("click { val: 1 }", TriggerKind.CLICK),
            ("tick { x: to.x + 1 }", TriggerKind.TICK),
            ("geo { hit: true }", TriggerKind.SPATIAL),
        ],
    )
    def test_shorthand_kinds(self, text, kind):
        """Test that each prefix selects its kind."""
        result = classify(text)
        assert result.kind == kind
        assert result.grammar == Grammar.SHORTHAND

    def test_expanded(self):
        result = classify("click() { return { val: 1 } }")
        assert result.kind == TriggerKind.CLICK
        assert result.grammar == Grammar.EXPANDED
        assert result.source == "() { return { val: 1 } }"

    def test_expanded_without_prefix(self):
        """Test that a bare "()" body is a change program."""
        result = classify("( ) { return null }")
        assert result.kind == TriggerKind.CHANGE
        assert result.grammar == Grammar.EXPANDED

    def test_prefix_is_stripped_from_source(self):
        assert classify("  tick   { x: 1 }  ").source == "{ x: 1 }"

    def test_no_space_after_prefix(self):
        assert classify("click{ val: 1 }").kind == TriggerKind.CLICK

    def test_malformed_expanded_still_classifies(self):
        """Test that a broken expanded text classifies so compiling can fail."""
        result = classify("tick( { malformed")
        assert result.kind == TriggerKind.TICK
        assert result.grammar == Grammar.EXPANDED

    @pytest.mark.parametrize(
        "text",
        [None, "", "   ", "hello", "clicker { val: 1 }", "Click { val: 1 }", "42", "val: 1", "(optional)", "(a) { b }"],
    )
    def test_not_a_program(self, text):
        """Test plain labels and unknown prefixes."""
        assert classify(text) is None

    def test_pure(self):
        """Test that the same text always gives an equal result."""
        assert classify("geo { a: 1 }") == classify("geo { a: 1 }")


class TestIsPropagatorOfKind:
    """Tests for is_propagator_of_kind()."""

    def test_matching_kind(self):
        assert is_propagator_of_kind("click { a: 1 }", TriggerKind.CLICK)

    def test_kinds_are_disjoint(self):
        """Test that a text belongs to at most one kind."""
        text = "tick { a: 1 }"
        matches = [kind for kind in TriggerKind if is_propagator_of_kind(text, kind)]
        assert matches == [TriggerKind.TICK]

    def test_change_requires_brace(self):
        assert not is_propagator_of_kind("label", TriggerKind.CHANGE)
