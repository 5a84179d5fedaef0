"""CategoryEngine: priority-ordered rule matching over parsed lines."""

import logging
import re
from dataclasses import dataclass

from logwatch.errors import ConfigurationError
from logwatch.heuristics import (
    extract_death,
    extract_level_up,
    looks_like_dialogue,
    parse_chat_prefix,
)
from logwatch.models import (
    Category,
    ChatChannel,
    Classification,
    ExtractedFields,
    ParsedLine,
)
from logwatch.rules import DEFAULT_RULES, CategoryRule, Extractor, Target, Validator

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class _CompiledRule:
    rule: CategoryRule
    required: tuple[re.Pattern, ...]
    excluded: tuple[re.Pattern, ...]
    any_of: tuple[re.Pattern, ...]


def _compile(rule: CategoryRule) -> _CompiledRule:
    def compile_all(patterns: tuple[str, ...], field_name: str) -> tuple[re.Pattern, ...]:
        compiled = []
        for p in patterns:
            try:
                compiled.append(re.compile(p))
            except re.error as e:
                raise ConfigurationError(
                    f"Rule {rule.name!r}: invalid {field_name} pattern {p!r}: {e}"
                ) from e
        return tuple(compiled)

    return _CompiledRule(
        rule=rule,
        required=compile_all(rule.required, "required"),
        excluded=compile_all(rule.excluded, "excluded"),
        any_of=compile_all(rule.any_of, "any_of"),
    )


def _target_text(parsed: ParsedLine, target: Target) -> str:
    if target is Target.MESSAGE:
        return parsed.message
    if target is Target.TEXT:
        return parsed.text
    if target is Target.SYSTEM_TAG:
        return parsed.system_tag or ""
    if target is Target.LEVEL:
        return parsed.level.value
    return parsed.raw


def _validate(validator: Validator, text: str) -> bool:
    if validator is Validator.NONE:
        return True
    if validator is Validator.DIALOGUE:
        return looks_like_dialogue(text)
    if validator is Validator.CHAT_PREFIX:
        return parse_chat_prefix(text) is not None
    raise ConfigurationError(f"Unhandled validator {validator!r}")


class CategoryEngine:
    """Maps a ParsedLine to exactly one category.

    Rules are evaluated in ascending priority, ties broken by declaration
    order (built-ins first, then extra rules). The first rule whose predicate
    holds wins; a line no rule accepts is Unknown.
    """

    def __init__(self, rules: tuple[CategoryRule, ...] | list[CategoryRule] | None = None,
                 extra_rules=()):
        declared = list(DEFAULT_RULES if rules is None else rules) + list(extra_rules)

        seen: set[str] = set()
        for rule in declared:
            if rule.name in seen:
                raise ConfigurationError(f"Duplicate rule name {rule.name!r}")
            seen.add(rule.name)

        # sorted() is stable, so equal priorities keep declaration order.
        ordered = sorted(declared, key=lambda r: r.priority)
        self._rules: tuple[_CompiledRule, ...] = tuple(_compile(r) for r in ordered)
        logger.debug("CategoryEngine ready with %d rules", len(self._rules))

    @property
    def rules(self) -> tuple[CategoryRule, ...]:
        """Rules in evaluation order."""
        return tuple(c.rule for c in self._rules)

    @staticmethod
    def _matches(compiled: _CompiledRule, text: str) -> bool:
        for pattern in compiled.excluded:
            if pattern.search(text):
                return False
        for pattern in compiled.required:
            if not pattern.search(text):
                return False
        if compiled.any_of and not any(p.search(text) for p in compiled.any_of):
            return False
        return _validate(compiled.rule.validator, text)

    def classify(self, parsed: ParsedLine) -> Classification:
        for compiled in self._rules:
            rule = compiled.rule
            text = _target_text(parsed, rule.target)
            if self._matches(compiled, text):
                return self._extract(rule, parsed)
        return Classification(category=Category.UNKNOWN, rule_name=None, message=parsed.text)

    @staticmethod
    def _extract(rule: CategoryRule, parsed: ParsedLine) -> Classification:
        message = parsed.text
        category = rule.category
        fields = None

        if rule.extractor is Extractor.DEATH:
            fields = extract_death(parsed.message)
        elif rule.extractor is Extractor.LEVEL_UP:
            fields = extract_level_up(parsed.message)
        elif rule.extractor is Extractor.CHAT:
            chat = parse_chat_prefix(parsed.message)
            if chat is not None:
                message = chat.content
                fields = ExtractedFields(chat_channel=chat.channel, chat_sender=chat.sender)
                if chat.channel is ChatChannel.GUILD_SYSTEM:
                    category = Category.GUILD_SYSTEM

        return Classification(
            category=category,
            rule_name=rule.name,
            message=message,
            fields=fields or ExtractedFields(),
        )
