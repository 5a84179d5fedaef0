"""Tests for the shape-based dialogue, chat, death and level-up detectors."""

import pytest

from logwatch.heuristics import (
    extract_death,
    extract_level_up,
    looks_like_dialogue,
    parse_chat_prefix,
)
from logwatch.models import ChatChannel


class TestLooksLikeDialogue:
    @pytest.mark.parametrize("message", [
        "Doryani: Welcome back, exile.",
        "The Bloated Miller: You will feed the mill!",
        "Siora, Blade of the Mists: Stay close to me.",
        "O'Brien: Nice weather today",
        "Zxqvwrt Nevermet: completely new speaker here",
        "Una-7: the numbers are fine",
    ])
    def test_accepts_name_shaped_speakers(self, message):
        assert looks_like_dialogue(message) is True

    @pytest.mark.parametrize("message", [
        "no colon in this line",
        ": leading colon only",
        "lowercase: speaker",
        "Has Flag: something here",
        "Is Enabled: yes indeed",
        "Been Here: before today",
        "Now Playing: some song",
        "Level Seed: abcdef",
        "Client Version: great one",
        "Server Name: the realm",
        "Speaker=1: value here",
        "Speaker: ",
        "Speaker: [bracketed system text",
        "Speaker: text ending in bracket]",
        "Speaker: 1234567890 12",
        "Path/To: something",
    ])
    def test_rejects(self, message):
        assert looks_like_dialogue(message) is False

    def test_speaker_length_limit(self):
        assert looks_like_dialogue("A" * 100 + ": hello there") is True
        assert looks_like_dialogue("A" * 101 + ": hello there") is False

    def test_utterance_length_limit(self):
        assert looks_like_dialogue("Doryani: " + "a" * 500) is True
        assert looks_like_dialogue("Doryani: " + "a" * 501) is False

    def test_alphabetic_majority(self):
        # 4 letters out of 8 characters is exactly half.
        assert looks_like_dialogue("Doryani: abcd1234") is True
        assert looks_like_dialogue("Doryani: abc12345") is False

    def test_splits_on_first_colon(self):
        assert looks_like_dialogue("Doryani: the time is 10:30 now") is True


class TestParseChatPrefix:
    def test_global(self):
        chat = parse_chat_prefix("$A: hi")
        assert chat.channel is ChatChannel.GLOBAL
        assert chat.sender == "A"
        assert chat.content == "hi"

    def test_local(self):
        chat = parse_chat_prefix("#Someone Else: wts map")
        assert chat.channel is ChatChannel.LOCAL
        assert chat.sender == "Someone Else"
        assert chat.content == "wts map"

    def test_guild_system(self):
        chat = parse_chat_prefix("&: update")
        assert chat.channel is ChatChannel.GUILD_SYSTEM
        assert chat.sender is None
        assert chat.content == "update"

    def test_guild(self):
        chat = parse_chat_prefix("&A: hi")
        assert chat.channel is ChatChannel.GUILD
        assert chat.sender == "A"

    def test_whisper(self):
        chat = parse_chat_prefix("@From Trader_99: Hi, I would like to buy your Tabula")
        assert chat.channel is ChatChannel.WHISPER
        assert chat.sender == "Trader_99"
        assert chat.content == "Hi, I would like to buy your Tabula"

    def test_content_keeps_later_colons(self):
        chat = parse_chat_prefix("$A: price: 5 div")
        assert chat.content == "price: 5 div"

    @pytest.mark.parametrize("message", [
        "Doryani: hello",
        "$: no sender",
        "$NoColon here",
        "@To Someone: outgoing",
        "",
    ])
    def test_not_chat(self, message):
        assert parse_chat_prefix(message) is None


class TestExtractors:
    def test_death(self):
        fields = extract_death(": Player_01 has been slain.")
        assert fields.player_name == "Player_01"

    def test_death_requires_anchor(self):
        assert extract_death("Player has been slain.") is None
        assert extract_death(": Two Words has been slain.") is None

    def test_level_up(self):
        fields = extract_level_up(": TomHanksIndexFinger (Mercenary) is now level 2")
        assert fields.player_name == "TomHanksIndexFinger"
        assert fields.character_class == "Mercenary"
        assert fields.level == 2

    def test_level_up_multi_digit(self):
        fields = extract_level_up(": Kira (Blood Mage) is now level 87")
        assert fields.character_class == "Blood Mage"
        assert fields.level == 87

    def test_level_up_no_match(self):
        assert extract_level_up(": Kira is now level 5") is None
