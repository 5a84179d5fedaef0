"""Shape-based detectors for dialogue, chat, deaths and level-ups.

None of these consult a list of known names: a speaker or sender is accepted
on the shape of the text alone, so new characters need no code change.
"""

import re

from logwatch.models import ChatChannel, ChatMessage, ExtractedFields

MAX_SPEAKER_LENGTH = 100
MAX_UTTERANCE_LENGTH = 500

# Case-sensitive string prefixes that mark a system line, not a speaker.
RESERVED_SPEAKER_PREFIXES = ("Has", "Is", "Been", "Now", "Level", "Client", "Server")

_SPEAKER_EXTRA_CHARS = frozenset(" '-,")

# Order matters: "&: " must be tried before the "&Name: " form.
_CHAT_PATTERNS = (
    (ChatChannel.WHISPER, re.compile(r'^@From (?P<sender>[^:]+?)\s*:\s?(?P<content>.*)$', re.DOTALL)),
    (ChatChannel.GLOBAL, re.compile(r'^\$(?P<sender>[^:]+?)\s*:\s?(?P<content>.*)$', re.DOTALL)),
    (ChatChannel.LOCAL, re.compile(r'^#(?P<sender>[^:]+?)\s*:\s?(?P<content>.*)$', re.DOTALL)),
    (ChatChannel.GUILD_SYSTEM, re.compile(r'^&:\s?(?P<content>.*)$', re.DOTALL)),
    (ChatChannel.GUILD, re.compile(r'^&(?P<sender>[^:]+?)\s*:\s?(?P<content>.*)$', re.DOTALL)),
)

_DEATH_RE = re.compile(r'^: (?P<name>\w+) has been slain\.')
_LEVEL_UP_RE = re.compile(r'^: (?P<name>.+?) \((?P<cls>[^()]+)\) is now level (?P<level>\d+)')


def _is_speaker_name(speaker: str) -> bool:
    if not speaker or len(speaker) > MAX_SPEAKER_LENGTH:
        return False
    first = speaker[0]
    if not (first.isalpha() and first.isupper()):
        return False
    if not all(c.isalnum() or c in _SPEAKER_EXTRA_CHARS for c in speaker):
        return False
    return not speaker.startswith(RESERVED_SPEAKER_PREFIXES)


def _is_utterance(utterance: str) -> bool:
    if not utterance or len(utterance) > MAX_UTTERANCE_LENGTH:
        return False
    if utterance.startswith("[") or utterance.endswith("]"):
        return False
    letters = sum(1 for c in utterance if c.isalpha())
    return letters * 2 >= len(utterance)


def looks_like_dialogue(message: str) -> bool:
    """Return True for "Speaker: utterance" lines with a name-shaped speaker."""
    speaker, sep, utterance = message.partition(":")
    if not sep:
        return False
    return _is_speaker_name(speaker.strip()) and _is_utterance(utterance.strip())


def parse_chat_prefix(message: str) -> ChatMessage | None:
    """Decode the channel symbol at the start of a chat line.

    $Name: text -> Global, #Name: text -> Local, &Name: text -> Guild,
    &: text -> GuildSystem (no sender), @From Name: text -> Whisper.
    """
    if not message or message[0] not in "$#&@":
        return None
    for channel, pattern in _CHAT_PATTERNS:
        m = pattern.match(message)
        if not m:
            continue
        sender = m.groupdict().get("sender")
        if sender is not None:
            sender = sender.strip()
            if not sender:
                continue
        return ChatMessage(channel=channel, sender=sender, content=m.group("content").strip())
    return None


def extract_death(message: str) -> ExtractedFields | None:
    m = _DEATH_RE.match(message)
    if not m:
        return None
    return ExtractedFields(player_name=m.group("name"))


def extract_level_up(message: str) -> ExtractedFields | None:
    m = _LEVEL_UP_RE.match(message)
    if not m:
        return None
    return ExtractedFields(
        player_name=m.group("name"),
        character_class=m.group("cls"),
        level=int(m.group("level")),
    )
