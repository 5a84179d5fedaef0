"""Category rule definitions.

A rule is plain data: pattern lists, a target selecting which view of the
parsed line the patterns see, and named validator/extractor variants that the
engine dispatches with a fixed switch. Built-in rules match literal
substrings, so their patterns are escaped; rules loaded from YAML are raw
regular expressions.
"""

import re
from dataclasses import dataclass
from enum import Enum

from logwatch.errors import ConfigurationError
from logwatch.models import Category


class Target(str, Enum):
    MESSAGE = "message"        # message after the system tag
    TEXT = "text"              # "[TAG] message"
    SYSTEM_TAG = "system_tag"
    LEVEL = "level"
    RAW = "raw"


class Validator(str, Enum):
    NONE = "none"
    DIALOGUE = "dialogue"
    CHAT_PREFIX = "chat_prefix"


class Extractor(str, Enum):
    NONE = "none"
    DEATH = "death"
    LEVEL_UP = "level_up"
    CHAT = "chat"


@dataclass(frozen=True)
class CategoryRule:
    name: str
    category: Category
    priority: int
    target: Target = Target.MESSAGE
    required: tuple[str, ...] = ()
    excluded: tuple[str, ...] = ()
    any_of: tuple[str, ...] = ()
    validator: Validator = Validator.NONE
    extractor: Extractor = Extractor.NONE


def _literal(*substrings: str) -> tuple[str, ...]:
    return tuple(re.escape(s) for s in substrings)


_SYSTEM_TAGS = (
    "[SHADER]", "[TEXTURE]", "[RENDER]", "[VULKAN]", "[SCENE]", "[MESH]", "[MAT]",
    "[TRAILS]", "[GRAPH]", "[VIDEO]", "[PARTICLE]", "[STREAMLINE]",
    "[ENTITY]", "[ENGINE]", "[JOB]", "[STORAGE]", "[BUNDLE]", "[WINDOW]", "[RESOURCE]",
    "[SOUND]", "[AUDIO]", "[Item Filter]", "[HTTP2]",
)

DEFAULT_RULES: tuple[CategoryRule, ...] = (
    CategoryRule(
        name="warning-level",
        category=Category.WARNING,
        priority=10,
        target=Target.LEVEL,
        any_of=(r"^(?:WARN|ERROR|CRIT)$",),
    ),
    CategoryRule(
        name="warning-prefix",
        category=Category.WARNING,
        priority=11,
        target=Target.TEXT,
        any_of=(r"^\[?(?:WARN(?:ING)?|ERROR|CRIT(?:ICAL)?)\b",),
    ),
    CategoryRule(
        name="chat",
        category=Category.CHAT,
        priority=20,
        validator=Validator.CHAT_PREFIX,
        extractor=Extractor.CHAT,
    ),
    CategoryRule(
        name="death",
        category=Category.DEATH,
        priority=30,
        required=_literal("has been slain"),
        extractor=Extractor.DEATH,
    ),
    CategoryRule(
        name="level-up",
        category=Category.LEVEL_UP,
        priority=31,
        required=_literal("is now level"),
        extractor=Extractor.LEVEL_UP,
    ),
    CategoryRule(
        name="skill",
        category=Category.SKILL,
        priority=32,
        any_of=_literal("have received", "Successfully allocated passive skill"),
    ),
    CategoryRule(
        name="gameplay",
        category=Category.GAMEPLAY,
        priority=40,
        any_of=_literal(
            "Failed to apply item:", "Item has no space for more Mods",
            "Cannot use that item", "You cannot", "Not enough",
        ),
    ),
    CategoryRule(
        name="guild",
        category=Category.GUILD_SYSTEM,
        priority=41,
        any_of=_literal("Joined guild", "guild named", "GUILD UPDATE"),
    ),
    CategoryRule(
        name="item-filter",
        category=Category.ITEM_FILTER,
        priority=50,
        target=Target.TEXT,
        required=_literal("[Item Filter]"),
    ),
    CategoryRule(
        name="graphics",
        category=Category.GRAPHICS,
        priority=51,
        target=Target.TEXT,
        any_of=_literal(
            "[SHADER]", "[TEXTURE]", "[RENDER]", "[VULKAN]", "[SCENE]", "[MESH]", "[MAT]",
            "[TRAILS]", "[GRAPH]", "[VIDEO]", "[PARTICLE]", "[STREAMLINE]",
            "Shader uses incorrect vertex layout", "Signature:", "Metadata/",
            ".fxgraph", "EngineGraphs",
        ),
    ),
    CategoryRule(
        name="engine",
        category=Category.ENGINE,
        priority=52,
        target=Target.TEXT,
        any_of=_literal(
            "[ENTITY]", "[ENGINE]", "[JOB]", "[STORAGE]", "[BUNDLE]", "[WINDOW]",
            "[RESOURCE]", "Client-Safe Instance ID", "Generating level",
        ),
    ),
    CategoryRule(
        name="audio",
        category=Category.AUDIO,
        priority=53,
        target=Target.TEXT,
        any_of=_literal("[SOUND]", "[AUDIO]"),
    ),
    CategoryRule(
        name="network",
        category=Category.NETWORK,
        priority=54,
        target=Target.TEXT,
        any_of=_literal(
            "[HTTP2]", "User agent:", "Using backend:", "Send patching protocol",
            "Web root:", "Backup Web root:", "Requesting root contents",
            "Queue file to download", "Got file list", "Requesting folder",
            ".datc64.bundle.bin", "Connecting to", "Connected to",
            "Got Instance Details", "Connect time to instance", "Async connecting to",
            "patch-poe", "poecdn.com", "pathofexile2.com",
        ),
    ),
    CategoryRule(
        name="dialogue",
        category=Category.DIALOGUE,
        priority=60,
        target=Target.TEXT,
        excluded=_literal(
            *_SYSTEM_TAGS, "@From ", "User agent:", "Using backend:", "Web root:",
            "Driver Version:", "Windows Version:", "Trade accepted", "Trade cancelled",
        ),
        validator=Validator.DIALOGUE,
    ),
)


def _pattern_list(value, field_name: str, rule_name: str) -> tuple[str, ...]:
    if value is None:
        return ()
    if isinstance(value, str):
        return (value,)
    if not isinstance(value, list) or not all(isinstance(p, str) for p in value):
        raise ConfigurationError(f"Rule {rule_name!r}: {field_name} must be a list of strings")
    return tuple(value)


def _enum_value(enum_cls, value, field_name: str, rule_name: str):
    try:
        return enum_cls(value)
    except ValueError:
        allowed = ", ".join(m.value for m in enum_cls)
        raise ConfigurationError(
            f"Rule {rule_name!r}: unknown {field_name} {value!r} (expected one of: {allowed})"
        ) from None


def rule_from_dict(d: dict) -> CategoryRule:
    """Build a rule from a YAML mapping. Patterns are compiled later by the engine."""
    if not isinstance(d, dict):
        raise ConfigurationError(f"Rule definition must be a mapping, got {type(d).__name__}")
    name = d.get("name")
    if not name or not isinstance(name, str):
        raise ConfigurationError("Rule definition is missing a name")
    if "category" not in d:
        raise ConfigurationError(f"Rule {name!r}: category is required")
    if "priority" not in d:
        raise ConfigurationError(f"Rule {name!r}: priority is required")
    try:
        priority = int(d["priority"])
    except (TypeError, ValueError):
        raise ConfigurationError(f"Rule {name!r}: priority must be an integer") from None

    return CategoryRule(
        name=name,
        category=_enum_value(Category, d["category"], "category", name),
        priority=priority,
        target=_enum_value(Target, d.get("target", "message"), "target", name),
        required=_pattern_list(d.get("required"), "required", name),
        excluded=_pattern_list(d.get("excluded"), "excluded", name),
        any_of=_pattern_list(d.get("any_of"), "any_of", name),
        validator=_enum_value(Validator, d.get("validator", "none"), "validator", name),
        extractor=_enum_value(Extractor, d.get("extractor", "none"), "extractor", name),
    )
