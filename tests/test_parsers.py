"""Tests for the fixed-shape line parser."""

from logwatch.models import Level
from logwatch.parsers import parse_line

LEVEL_UP = ("2025/11/04 19:24:34 188191812 3ef232c2 [INFO Client 7776] "
            ": TomHanksIndexFinger (Mercenary) is now level 2")


class TestStructuredLines:
    def test_all_fields(self):
        p = parse_line(LEVEL_UP)
        assert p.parsed is True
        assert p.timestamp == "2025/11/04 19:24:34"
        assert p.counter == 188191812
        assert p.thread_id == "3ef232c2"
        assert p.level is Level.INFO
        assert p.source_tag == "Client"
        assert p.process_id == 7776
        assert p.system_tag is None
        assert p.message == ": TomHanksIndexFinger (Mercenary) is now level 2"
        assert p.raw == LEVEL_UP

    def test_system_tag(self, make_line):
        p = parse_line(make_line("Set Source [Clearfell]", tag="SCENE"))
        assert p.system_tag == "SCENE"
        assert p.message == "Set Source [Clearfell]"
        assert p.text == "[SCENE] Set Source [Clearfell]"

    def test_tag_with_space(self, make_line):
        p = parse_line(make_line("Loading filter", tag="Item Filter"))
        assert p.system_tag == "Item Filter"
        assert p.message == "Loading filter"

    def test_further_tags_stay_in_message(self, make_line):
        p = parse_line(make_line("[EXTRA] [MORE] payload", tag="ENGINE"))
        assert p.system_tag == "ENGINE"
        assert p.message == "[EXTRA] [MORE] payload"

    def test_tag_only_line(self, make_line):
        p = parse_line(make_line("", tag="SHADER").rstrip())
        assert p.parsed is True
        assert p.system_tag == "SHADER"
        assert p.message == ""

    def test_levels(self, make_line):
        assert parse_line(make_line("x", level="WARN")).level is Level.WARN
        assert parse_line(make_line("x", level="ERROR")).level is Level.ERROR
        assert parse_line(make_line("x", level="CRIT")).level is Level.CRIT
        assert parse_line(make_line("x", level="DEBUG")).level is Level.UNKNOWN

    def test_source_with_spaces(self):
        p = parse_line("2025/11/04 19:24:34 1 abc [INFO Render Thread 12] hello")
        assert p.source_tag == "Render Thread"
        assert p.process_id == 12
        assert p.message == "hello"

    def test_trailing_newline_stripped(self):
        p = parse_line(LEVEL_UP + "\r\n")
        assert p.raw == LEVEL_UP
        assert p.parsed is True


class TestDegradedLines:
    def test_free_text_kept_as_message(self):
        p = parse_line("just some text")
        assert p.parsed is False
        assert p.message == "just some text"
        assert p.timestamp == ""
        assert p.counter == 0
        assert p.thread_id == ""
        assert p.level is Level.UNKNOWN
        assert p.source_tag == ""
        assert p.process_id == 0
        assert p.system_tag is None

    def test_broken_prefix(self):
        line = "2025/11/04 19:24:34 notanumber 3ef [INFO Client 1] hi"
        p = parse_line(line)
        assert p.parsed is False
        assert p.message == line

    def test_empty_line(self):
        p = parse_line("")
        assert p.parsed is False
        assert p.message == ""
