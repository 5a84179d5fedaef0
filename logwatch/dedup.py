"""Duplicate suppression within one watch session.

The identity key is timestamp + category + the first few characters of the
message, plus the chat channel and sender when the line is chat. Two
distinct lines sharing all of these collide; that approximation is accepted
in exchange for small, constant-size keys.

Lines without a timestamp of their own (continuation lines) are keyed on an
anchor supplied by the caller instead of the empty timestamp, so they only
collide with a re-read of the same position in the same entry.
"""

from collections import OrderedDict

from logwatch.models import Event

DEFAULT_KEY_LENGTH = 50
DEFAULT_MAX_KEYS = 100_000


class Deduplicator:
    def __init__(self, key_length: int = DEFAULT_KEY_LENGTH, max_keys: int = DEFAULT_MAX_KEYS):
        if key_length <= 0:
            raise ValueError("key_length must be positive")
        if max_keys <= 0:
            raise ValueError("max_keys must be positive")
        self._key_length = key_length
        self._max_keys = max_keys
        self._keys: OrderedDict[str, None] = OrderedDict()

    def __len__(self) -> int:
        return len(self._keys)

    def key_for(self, event: Event, anchor: str | None = None) -> str:
        stamp = event.timestamp or anchor or ""
        key = f"{stamp}|{event.category.value}"
        if event.chat_channel is not None:
            key += f"|{event.chat_channel.value}|{event.chat_sender or ''}"
        return f"{key}|{event.message[:self._key_length]}"

    def is_duplicate(self, event: Event, anchor: str | None = None) -> bool:
        return self.key_for(event, anchor) in self._keys

    def remember(self, event: Event, anchor: str | None = None) -> None:
        key = self.key_for(event, anchor)
        self._keys[key] = None
        self._keys.move_to_end(key)
        while len(self._keys) > self._max_keys:
            self._keys.popitem(last=False)

    def check_and_remember(self, event: Event, anchor: str | None = None) -> bool:
        """Return True if already seen; otherwise record it and return False."""
        if self.is_duplicate(event, anchor):
            return True
        self.remember(event, anchor)
        return False

    def clear(self) -> None:
        self._keys.clear()
