"""Tests for rule config parsing and rule evaluation."""

import logging

import pytest

from facedrive.retarget.rule_config import (
    Item, NameIndexAllocator, Rule, RuleConfigError, parse_rule_config,
)


class TestItem:
    def test_tent_half_peak(self):
        item = Item(0, 0.5)
        assert item.eval(0.5) == 1.0
        assert item.eval(0.25) == pytest.approx(0.5)
        assert item.eval(0.75) == pytest.approx(0.5)
        assert item.eval(0.0) == 0.0
        assert item.eval(1.0) == 0.0

    def test_tent_full_peak(self):
        item = Item(0, 1.0)
        assert item.eval(1.0) == 1.0
        assert item.eval(0.5) == pytest.approx(0.5)
        assert item.eval(0.0) == 0.0

    def test_tent_zero_peak(self):
        item = Item(0, 0.0)
        assert item.eval(0.0) == 1.0
        assert item.eval(0.5) == pytest.approx(0.5)
        assert item.eval(1.0) == 0.0

    def test_near_peak_counts_as_peak(self):
        assert Item(0, 0.5).eval(0.50005) == 1.0


class TestRule:
    def test_multiplicative(self):
        rule = Rule(drivers=(Item(0, 1.0), Item(1, 1.0)), targets=(Item(0, 1.0),))
        assert rule.eval([1.0, 1.0]) == 1.0
        assert rule.eval([0.5, 0.5]) == pytest.approx(0.25)
        assert rule.eval([1.0, 0.0]) == 0.0

    def test_driver_weight_scales_activation(self):
        rule = Rule(drivers=(Item(0, 0.5),), targets=(Item(0, 1.0),))
        assert rule.eval([0.5]) == pytest.approx(0.5)

    def test_peak(self):
        rule = Rule(drivers=(Item(1, 0.5),), targets=(Item(0, 0.3), Item(2, 1.0)))
        signals = [0.0, 0.0]
        targets = [0.0, 0.0, 0.0]
        rule.peak(signals, targets)
        assert signals == [0.0, 0.5]
        assert targets == [0.3, 0.0, 1.0]


class TestNameIndexAllocator:
    def test_stable_ids(self):
        alloc = NameIndexAllocator()
        assert alloc.index_of("b") == 0
        assert alloc.index_of("a") == 1
        assert alloc.index_of("b") == 0
        assert alloc.names == ("b", "a")
        assert len(alloc) == 2
        assert "a" in alloc
        assert "c" not in alloc

    def test_empty_name_rejected(self):
        with pytest.raises(RuleConfigError):
            NameIndexAllocator().index_of("")


class TestParseV1:
    def test_basic(self):
        parsed = parse_rule_config('{"a": {"x": 1.0, "y": 0.5}, "b": {"y": 1.0}}')
        assert parsed.signals.names == ("a", "b")
        assert parsed.targets.names == ("x", "y")
        assert len(parsed.rules) == 2
        assert parsed.rules[0].drivers == (Item(0, 1.0),)
        assert parsed.rules[0].targets == (Item(0, 1.0), Item(1, 0.5))
        assert parsed.rules[1].drivers == (Item(1, 1.0),)
        assert parsed.rules[1].targets == (Item(1, 1.0),)

    def test_integer_weights(self):
        parsed = parse_rule_config('{"a": {"x": 1}}')
        assert parsed.rules[0].targets == (Item(0, 1.0),)

    def test_leading_whitespace(self):
        parsed = parse_rule_config('  \n\t{"a": {"x": 1.0}}')
        assert len(parsed.rules) == 1

    def test_empty_rule_discarded_but_signal_kept(self, caplog):
        with caplog.at_level(logging.WARNING):
            parsed = parse_rule_config('{"a": {}, "b": {"x": 1.0}}')
        assert len(parsed.rules) == 1
        assert parsed.signals.names == ("a", "b")
        assert parsed.rules[0].drivers == (Item(1, 1.0),)
        assert "no targets" in caplog.text


class TestParseV2:
    def test_basic(self):
        text = """[
            {"drivers": {"a": 0.5}, "targets": {"x": 1.0}},
            {"drivers": {"a": 1.0, "b": 1.0}, "targets": {"y": 1.0, "x": 0.2}}
        ]"""
        parsed = parse_rule_config(text)
        assert parsed.signals.names == ("a", "b")
        assert parsed.targets.names == ("x", "y")
        assert parsed.rules[0].drivers == (Item(0, 0.5),)
        assert parsed.rules[1].drivers == (Item(0, 1.0), Item(1, 1.0))
        assert parsed.rules[1].targets == (Item(1, 1.0), Item(0, 0.2))

    def test_rule_without_drivers_discarded(self, caplog):
        text = '[{"drivers": {}, "targets": {"x": 1.0}}, {"drivers": {"a": 1.0}, "targets": {"y": 1.0}}]'
        with caplog.at_level(logging.WARNING):
            parsed = parse_rule_config(text)
        assert len(parsed.rules) == 1
        # Targets of a driverless rule are never allocated
        assert parsed.targets.names == ("y",)
        assert "no drivers" in caplog.text

    def test_rule_without_targets_discarded(self):
        parsed = parse_rule_config('[{"drivers": {"a": 1.0}}]')
        assert parsed.rules == []
        assert parsed.signals.names == ("a",)

    def test_empty_array(self):
        parsed = parse_rule_config("[]")
        assert parsed.rules == []
        assert len(parsed.signals) == 0


@pytest.mark.parametrize("text", [
    "",
    "   \n",
    "{not json",
    '{"a": [1.0]}',
    '{"a": {"x": "heavy"}}',
    '{"a": {"x": true}}',
    '{"": {"x": 1.0}}',
    '[1, 2]',
    '[{"drivers": [], "targets": {}}]',
    '"just a string"',
])
def test_malformed_configs(text):
    with pytest.raises(RuleConfigError):
        parse_rule_config(text)


def test_error_is_value_error():
    with pytest.raises(ValueError):
        parse_rule_config("")
