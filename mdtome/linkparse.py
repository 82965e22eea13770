"""Find and parse ``{{#include ...}}``-style helpers in chapter text."""

from __future__ import annotations

import logging
import re
from collections.abc import Iterator
from dataclasses import dataclass
from typing import Union

__all__ = [
    "LineRange",
    "Anchor",
    "Escaped",
    "Include",
    "RustdocInclude",
    "Playground",
    "Title",
    "Link",
    "parse_range_or_anchor",
    "parse_include_path",
    "parse_rustdoc_include_path",
    "find_links",
]

log = logging.getLogger(__name__)

_ESCAPE_CHAR = "\\"
_USIZE_MAX = (1 << 64) - 1
_UNSIGNED = re.compile(r"\+?[0-9]+")

_LINK_RE = re.compile(
    r"""
    \\\{\{\#.*\}\}          # escaped link
    |                       # or
    \{\{\s*                 # opening braces and whitespace
    \#([a-zA-Z0-9_]+)       # link type
    \s+                     # separating whitespace
    ([^}]+)                 # target path and space separated properties
    \}\}                    # closing braces
    """,
    re.VERBOSE,
)


@dataclass(frozen=True)
class LineRange:
    """A zero-based, half-open range of lines; ``None`` means unbounded."""

    start: int | None = None
    end: int | None = None


@dataclass(frozen=True)
class Anchor:
    """A named anchor whose enclosed lines are to be included."""

    name: str


RangeOrAnchor = Union[LineRange, Anchor]


@dataclass(frozen=True)
class Escaped:
    """A backslash-escaped helper that is emitted literally."""


@dataclass(frozen=True)
class Include:
    """Insert a file, or part of it."""

    path: str
    range_or_anchor: RangeOrAnchor


@dataclass(frozen=True)
class RustdocInclude:
    """Insert a Rust file, hiding the lines outside the selection."""

    path: str
    range_or_anchor: RangeOrAnchor


@dataclass(frozen=True)
class Playground:
    """Insert a runnable Rust file with the given code block attributes."""

    path: str
    attrs: tuple[str, ...] = ()


@dataclass(frozen=True)
class Title:
    """Override the chapter's page title."""

    title: str


LinkType = Union[Escaped, Include, RustdocInclude, Playground, Title]


@dataclass(frozen=True)
class Link:
    """A helper found in text, with its character offsets and raw text."""

    start_index: int
    end_index: int
    link_type: LinkType
    link_text: str


def _parse_unsigned(text: str) -> int | None:
    if not _UNSIGNED.fullmatch(text):
        return None
    value = int(text)
    return value if value <= _USIZE_MAX else None


def parse_range_or_anchor(parts: str | None) -> RangeOrAnchor:
    """Parse the ``start:end`` or ``anchor`` part after the file name.

    Line numbers are one-based in the text and zero-based in the result.
    """
    pieces = (parts or "").split(":", 2)
    first = pieces[0]

    number = _parse_unsigned(first)
    if number is not None:
        start: int | None = max(number - 1, 0)
    elif first == "":
        start = None
    else:
        return Anchor(first)

    if len(pieces) < 2:
        if start is None:
            return LineRange()
        return LineRange(start, start + 1)

    end = _parse_unsigned(pieces[1])
    if start is not None:
        return LineRange(start, end)
    if end is not None:
        return LineRange(None, end)
    return LineRange()


def _split_path(path: str) -> tuple[str, RangeOrAnchor]:
    name, sep, rest = path.partition(":")
    return name, parse_range_or_anchor(rest if sep else None)


def parse_include_path(path: str) -> Include:
    """Parse the argument of an ``include`` helper."""
    name, selection = _split_path(path)
    return Include(name, selection)


def parse_rustdoc_include_path(path: str) -> RustdocInclude:
    """Parse the argument of a ``rustdoc_include`` helper."""
    name, selection = _split_path(path)
    return RustdocInclude(name, selection)


def _link_type(match: re.Match[str]) -> LinkType | None:
    kind, rest = match.group(1), match.group(2)
    if kind is not None and rest is not None:
        if kind == "title":
            return Title(rest)
        words = rest.split()
        if not words:
            return None
        target, props = words[0], tuple(words[1:])
        if kind == "include":
            return parse_include_path(target)
        if kind == "playground":
            return Playground(target, props)
        if kind == "playpen":
            log.warning(
                "the {{#playpen}} expression has been renamed to "
                "{{#playground}}, please update your book to use the new name"
            )
            return Playground(target, props)
        if kind == "rustdoc_include":
            return parse_rustdoc_include_path(target)
        return None
    if match.group(0).startswith(_ESCAPE_CHAR):
        return Escaped()
    return None


def find_links(contents: str) -> Iterator[Link]:
    """Yield every recognised helper in ``contents``, in order."""
    for match in _LINK_RE.finditer(contents):
        link_type = _link_type(match)
        if link_type is not None:
            yield Link(match.start(), match.end(), link_type, match.group(0))