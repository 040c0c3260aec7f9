"""Guess a syslog priority digit from a raw JSON log line.

The fast path relies on the preamble emitted by ``JSONFormatter``: the record
opens with a millisecond RFC 3339 ``time`` field and ``level`` follows it
directly.

    {"time":"2019-07-10T05:35:54.277Z","level":"info",...
    {"time":"2019-07-10T05:35:54.277+08:00","level":"info",...

In the UTC layout offset 32 holds ``Z``, offsets 42 and 43 hold ``:"`` and
the level letter sits at 44. In the offset layout offset 32 holds ``+``,
47 and 48 hold ``:"`` and the letter sits at 49. Negative offsets are not
checked at fixed positions.

Anything else falls back to a search for ``level":"`` and, failing that,
to LOG_INFO. Only the first letter of the level value is inspected.
"""

LEVEL_MARKER = b'level":"'

# Both fixed layouts are checked only above this length.
_MIN_FIXED_LEN = 49

_UTC_MARK, _UTC_COLON, _UTC_QUOTE, _UTC_LEVEL = 32, 42, 43, 44
_OFS_MARK, _OFS_COLON, _OFS_QUOTE, _OFS_LEVEL = 32, 47, 48, 49

LOG_ALERT = 1
LOG_CRIT = 2
LOG_ERR = 3
LOG_WARNING = 4
LOG_INFO = 6
LOG_DEBUG = 7

_PRIORITY_BY_LETTER = {
    ord("t"): LOG_DEBUG,    # trace
    ord("d"): LOG_DEBUG,    # debug
    ord("i"): LOG_INFO,     # info
    ord("w"): LOG_WARNING,  # warn
    ord("e"): LOG_ERR,      # error
    ord("f"): LOG_CRIT,     # fatal
    ord("p"): LOG_ALERT,    # panic
}


def guess_level(p: bytes) -> int:
    """Return the byte value of the level letter, or 0 if none was found."""
    level = 0
    lp = len(p)
    if lp > _MIN_FIXED_LEN:
        if p[_UTC_MARK] == 0x5A and p[_UTC_COLON] == 0x3A and p[_UTC_QUOTE] == 0x22:  # Z : "
            level = p[_UTC_LEVEL]
        elif p[_OFS_MARK] == 0x2B and p[_OFS_COLON] == 0x3A and p[_OFS_QUOTE] == 0x22:  # + : "
            level = p[_OFS_LEVEL]

    if level == 0:
        i = p.find(LEVEL_MARKER)
        if i > 0 and i + len(LEVEL_MARKER) + 1 < lp:
            level = p[i + len(LEVEL_MARKER)]
    return level


def priority_for_level(level: int) -> int:
    return _PRIORITY_BY_LETTER.get(level, LOG_INFO)


def classify(p: bytes) -> int:
    """Map a raw message to a syslog priority in 0..7."""
    return priority_for_level(guess_level(p))
