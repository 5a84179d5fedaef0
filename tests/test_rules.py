"""Tests for rule definitions loaded from mappings."""

import pytest

from logwatch.errors import ConfigurationError
from logwatch.models import Category
from logwatch.rules import DEFAULT_RULES, Extractor, Target, Validator, rule_from_dict


class TestRuleFromDict:
    def test_full_mapping(self):
        rule = rule_from_dict({
            "name": "boss-kill",
            "category": "Death",
            "priority": 25,
            "target": "text",
            "required": ["defeated"],
            "excluded": ["practice"],
            "any_of": ["Boss", "Unique"],
            "validator": "none",
            "extractor": "death",
        })
        assert rule.name == "boss-kill"
        assert rule.category is Category.DEATH
        assert rule.priority == 25
        assert rule.target is Target.TEXT
        assert rule.required == ("defeated",)
        assert rule.excluded == ("practice",)
        assert rule.any_of == ("Boss", "Unique")
        assert rule.validator is Validator.NONE
        assert rule.extractor is Extractor.DEATH

    def test_defaults(self):
        rule = rule_from_dict({"name": "r", "category": "Audio", "priority": 3})
        assert rule.target is Target.MESSAGE
        assert rule.required == ()
        assert rule.validator is Validator.NONE

    def test_single_string_pattern(self):
        rule = rule_from_dict({"name": "r", "category": "Audio", "priority": 1, "any_of": "ping"})
        assert rule.any_of == ("ping",)

    @pytest.mark.parametrize("mapping, fragment", [
        ({"category": "Audio", "priority": 1}, "name"),
        ({"name": "r", "priority": 1}, "category"),
        ({"name": "r", "category": "Audio"}, "priority"),
        ({"name": "r", "category": "Nope", "priority": 1}, "category"),
        ({"name": "r", "category": "Audio", "priority": "high"}, "priority"),
        ({"name": "r", "category": "Audio", "priority": 1, "target": "body"}, "target"),
        ({"name": "r", "category": "Audio", "priority": 1, "validator": "magic"}, "validator"),
        ({"name": "r", "category": "Audio", "priority": 1, "required": [1, 2]}, "required"),
    ])
    def test_invalid(self, mapping, fragment):
        with pytest.raises(ConfigurationError, match=fragment):
            rule_from_dict(mapping)

    def test_not_a_mapping(self):
        with pytest.raises(ConfigurationError):
            rule_from_dict(["name", "r"])


class TestDefaultRules:
    def test_unique_names(self):
        names = [r.name for r in DEFAULT_RULES]
        assert len(names) == len(set(names))

    def test_chat_before_dialogue(self):
        by_name = {r.name: r for r in DEFAULT_RULES}
        assert by_name["chat"].priority < by_name["dialogue"].priority
