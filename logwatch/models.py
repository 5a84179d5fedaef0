"""Data model shared by every stage of the ingestion pipeline."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class Level(str, Enum):
    INFO = "INFO"
    WARN = "WARN"
    ERROR = "ERROR"
    CRIT = "CRIT"
    UNKNOWN = "unknown"

    @classmethod
    def from_token(cls, token: str | None) -> "Level":
        """Map a raw level token to a Level; anything unexpected is UNKNOWN."""
        if token:
            try:
                return cls(token.upper())
            except ValueError:
                pass
        return cls.UNKNOWN


class Category(str, Enum):
    DEATH = "Death"
    LEVEL_UP = "LevelUp"
    SKILL = "Skill"
    DIALOGUE = "Dialogue"
    CHAT = "Chat"
    GUILD_SYSTEM = "GuildSystem"
    ITEM_FILTER = "ItemFilter"
    NETWORK = "Network"
    GRAPHICS = "Graphics"
    ENGINE = "Engine"
    AUDIO = "Audio"
    WARNING = "Warning"
    GAMEPLAY = "Gameplay"
    UNKNOWN = "Unknown"


class ChatChannel(str, Enum):
    GLOBAL = "Global"
    LOCAL = "Local"
    GUILD = "Guild"
    GUILD_SYSTEM = "GuildSystem"
    WHISPER = "Whisper"


@dataclass(frozen=True)
class RawLine:
    text: str      # terminator removed
    offset: int    # byte offset of the first byte in the file


@dataclass(frozen=True)
class ParsedLine:
    raw: str
    parsed: bool
    timestamp: str = ""
    counter: int = 0
    thread_id: str = ""
    level: Level = Level.UNKNOWN
    source_tag: str = ""
    process_id: int = 0
    system_tag: str | None = None
    message: str = ""

    @property
    def text(self) -> str:
        """Content after the structural prefix, system tag included."""
        if self.system_tag is not None:
            return f"[{self.system_tag}] {self.message}" if self.message else f"[{self.system_tag}]"
        return self.message


@dataclass(frozen=True)
class ChatMessage:
    channel: ChatChannel
    sender: str | None
    content: str


@dataclass(frozen=True)
class ExtractedFields:
    player_name: str | None = None
    character_class: str | None = None
    level: int | None = None
    chat_channel: ChatChannel | None = None
    chat_sender: str | None = None


@dataclass(frozen=True)
class Classification:
    category: Category
    rule_name: str | None
    message: str
    fields: ExtractedFields = field(default_factory=ExtractedFields)


# Wire names for the optional fields, in payload order.
_OPTIONAL_KEYS = (
    ("player_name", "playerName"),
    ("character_class", "characterClass"),
    ("level", "level"),
    ("chat_channel", "chatChannel"),
    ("chat_sender", "chatSender"),
)


@dataclass(frozen=True)
class Event:
    timestamp: str
    category: Category
    message: str
    raw: str
    player_name: str | None = None
    character_class: str | None = None
    level: int | None = None
    chat_channel: ChatChannel | None = None
    chat_sender: str | None = None

    @classmethod
    def from_classification(cls, parsed: ParsedLine, result: Classification) -> "Event":
        f = result.fields
        return cls(
            timestamp=parsed.timestamp,
            category=result.category,
            message=result.message,
            raw=parsed.raw,
            player_name=f.player_name,
            character_class=f.character_class,
            level=f.level,
            chat_channel=f.chat_channel,
            chat_sender=f.chat_sender,
        )

    def to_dict(self) -> dict[str, Any]:
        """Wire payload: camelCase keys, absent optional fields omitted."""
        d: dict[str, Any] = {
            "timestamp": self.timestamp,
            "category": self.category.value,
            "message": self.message,
            "raw": self.raw,
        }
        for attr, key in _OPTIONAL_KEYS:
            value = getattr(self, attr)
            if value is None:
                continue
            d[key] = value.value if isinstance(value, Enum) else value
        return d
