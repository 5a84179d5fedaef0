"""Line parser for the client log's fixed line shape.

Expected format:
    2025/11/04 19:24:34 188191812 3ef232c2 [INFO Client 7776] [SCENE] Set Source [Clearfell]

    DATE TIME COUNTER THREADID [LEVEL SOURCE PID] [SYSTEMTAG] MESSAGE

Only the first bracketed tag after the structural prefix is taken as the
system tag; anything after it, brackets included, stays in the message.
Parsing never fails: a line that does not fit the shape comes back with
parsed=False and the whole line as its message.
"""

import logging
import re

from logwatch.models import Level, ParsedLine

logger = logging.getLogger(__name__)

_LINE_RE = re.compile(
    r'^(?P<date>\d{4}/\d{2}/\d{2}) (?P<time>\d{2}:\d{2}:\d{2}) '
    r'(?P<counter>\d+) '
    r'(?P<thread>[0-9A-Za-z]+) '
    r'\[(?P<level>[A-Za-z]+) (?P<source>[^\]]*?) ?(?P<pid>\d+)\]'
    r'(?: \[(?P<tag>[^\[\]]+)\])?'
    r'(?: (?P<message>.*))?$'
)


def _safe_int(value: str | None) -> int:
    if not value:
        return 0
    try:
        return int(value)
    except ValueError:
        return 0


def parse_line(raw: str) -> ParsedLine:
    """Split a raw log line into its structured fields."""
    line = raw.rstrip("\r\n")

    m = _LINE_RE.match(line)
    if not m:
        logger.debug("Unstructured line kept as message: %.80s", line)
        return ParsedLine(raw=line, parsed=False, message=line)

    return ParsedLine(
        raw=line,
        parsed=True,
        timestamp=f"{m.group('date')} {m.group('time')}",
        counter=_safe_int(m.group("counter")),
        thread_id=m.group("thread"),
        level=Level.from_token(m.group("level")),
        source_tag=m.group("source").strip(),
        process_id=_safe_int(m.group("pid")),
        system_tag=m.group("tag"),
        message=m.group("message") or "",
    )
