"""todo.txt line parsing module.

A line has the fixed header grammar

    [x [YYYY-MM-DD ]][(A) ][YYYY-MM-DD ]free text

followed by free text that may carry `+project` and `@context` tags and
`key:value` keywords anywhere. The line text is authoritative: a Task keeps
the text it was built from and every structured field is a view over it.
"""

import re
import string
from dataclasses import dataclass, field
from datetime import date
from typing import Any, Callable, Self

# Marker that begins a project tag
PROJECT_TAG = "+"

# Marker that begins a context tag
CONTEXT_TAG = "@"

# Separator of a key:value keyword
KEYWORD_SEP = ":"

# All valid priority letters
PRIORITY_LETTERS = string.ascii_uppercase

# Canonical date token, e.g. 2012-12-23
DATE_WIDTH = len("YYYY-MM-DD")
DATE_PATTERN = re.compile(r"(\d{4})-(\d{2})-(\d{2})", re.ASCII)

COMPLETION_MARKER = "x "

Clock = Callable[[], date]


class Priority(str):
    """A single uppercase letter A-Z.

    Priorities compare and sort like their letter, so "A" < "B" means
    "A" is the more important one.
    """

    def __new__(cls, letter: str) -> Self:
        if len(letter) != 1 or letter not in PRIORITY_LETTERS:
            raise ValueError(f"Invalid priority: {letter!r}")
        return super().__new__(cls, letter)

    def __repr__(self) -> str:
        return f"Priority({str(self)!r})"

    def marker(self) -> str:
        """Return the priority as it is written in a line, e.g. "(A)"."""
        return f"({self})"


def _skip_space(s: str) -> str:
    if s.startswith(" "):
        return s[1:]
    return s


def parse_completion(s: str) -> tuple[bool, str]:
    """Parse the completion marker from the start of the string.

    Returns:
        (True, rest) if the string begins with "x ", else (False, s).
    """
    if len(s) >= 2 and s[0] == "x" and s[1] == " ":
        return True, s[2:]
    return False, s


def parse_date(s: str) -> tuple[date | None, str]:
    """Parse a YYYY-MM-DD date from the start of the string.

    One space following the date is consumed with it. If the string does
    not begin with a valid calendar date, None and the untouched string
    are returned.
    """
    if len(s) < DATE_WIDTH:
        return None, s
    match = DATE_PATTERN.fullmatch(s[:DATE_WIDTH])
    if match is None:
        return None, s
    try:
        parsed = date(*(int(part) for part in match.groups()))
    except ValueError:
        return None, s
    return parsed, _skip_space(s[DATE_WIDTH:])


def parse_priority(s: str) -> tuple[Priority | None, str]:
    """Parse a "(X)" priority from the start of the string.

    One space following the priority is consumed with it.
    """
    if len(s) < 3 or s[0] != "(" or s[1] not in PRIORITY_LETTERS or s[2] != ")":
        return None, s
    return Priority(s[1]), _skip_space(s[3:])


def format_date(value: date) -> str:
    """Format a date as the canonical 10-character token."""
    return value.isoformat()


def _is_tag_end(char: str) -> bool:
    return char.isalpha() or char.isdecimal() or char == "_"


def is_valid_tag(word: str, markers: str = PROJECT_TAG + CONTEXT_TAG) -> bool:
    """Check whether a word is a tag beginning with one of the markers."""
    return bool(word) and word[0] in markers and _is_tag_end(word[-1])


@dataclass(eq=False)
class Task:
    """A single line of a todo.txt file.

    Attributes:
        text: The line with line breaks turned into spaces.
        fields: Whitespace-separated words of the text.
        done: Whether the line begins with "x ".
        completion_date: Date following the "x " marker, if any.
        priority: The "(X)" priority, if any.
        creation_date: Date following the completion and priority prefixes.
    """

    text: str = ""
    fields: list[str] = field(init=False, repr=False)
    done: bool = field(init=False, default=False)
    completion_date: date | None = field(init=False, default=None)
    priority: Priority | None = field(init=False, default=None)
    creation_date: date | None = field(init=False, default=None)

    def __post_init__(self) -> None:
        self._parse(self.text)

    def _parse(self, text: str) -> None:
        text = text.replace("\r\n", " ").replace("\n", " ")
        self.text = text
        self.fields = text.split()

        self.done, rest = parse_completion(text)
        self.completion_date = None
        if self.done:
            self.completion_date, rest = parse_date(rest)
        self.priority, rest = parse_priority(rest)
        self.creation_date, _ = parse_date(rest)

    @classmethod
    def parse(cls, line: str) -> Self:
        """Parse a todo.txt line into a Task object."""
        return cls(line)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Task):
            return NotImplemented
        return self.text == other.text

    def __str__(self) -> str:
        return self.text

    def to_line(self) -> str:
        """Return the line text, exactly as last set."""
        return self.text

    def tags(self, marker: str) -> list[str]:
        """Return the tags that begin with the marker, in line order.

        A tag is a whitespace-separated word whose first character is the
        marker and whose last character is a letter, digit or underscore.
        Duplicates are kept.
        """
        return [word for word in self.fields if is_valid_tag(word, marker)]

    @property
    def projects(self) -> list[str]:
        return self.tags(PROJECT_TAG)

    @property
    def contexts(self) -> list[str]:
        return self.tags(CONTEXT_TAG)

    def has_tag(self, tag: str) -> bool:
        """Check whether the task carries the given tag, marker included."""
        return bool(tag) and tag in self.tags(tag[0])

    def keywords(self) -> dict[str, str]:
        """Return the key:value keywords of the task.

        Words are split at their first ":". When a key is repeated the
        last value wins.
        """
        keywords = {}
        for word in self.fields:
            key, sep, value = word.partition(KEYWORD_SEP)
            if sep:
                keywords[key] = value
        return keywords

    def complete(self, clock: Clock = date.today) -> None:
        """Mark the task as complete, dated by the clock.

        The text becomes "x YYYY-MM-DD " followed by the old text, and the
        task is re-parsed. Completed tasks are left untouched.
        """
        if self.done:
            return
        prefix = COMPLETION_MARKER + format_date(clock())
        if self.text:
            prefix += " "
        self._parse(prefix + self.text)

    def to_dict(self) -> dict[str, Any]:
        """Convert the Task to a dictionary for JSON serialization."""
        return {
            "text": self.text,
            "done": self.done,
            "completion_date": _iso_or_none(self.completion_date),
            "creation_date": _iso_or_none(self.creation_date),
            "priority": str(self.priority) if self.priority else None,
            "projects": self.projects,
            "contexts": self.contexts,
            "keywords": self.keywords(),
        }


def _iso_or_none(value: date | None) -> str | None:
    return format_date(value) if value else None
