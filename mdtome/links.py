"""Expand ``{{#include}}``, ``{{#playground}}`` and related helpers in text."""

from __future__ import annotations

import logging
import os
import re
from pathlib import Path

from .linkparse import (
    Anchor,
    Escaped,
    Include,
    LineRange,
    Link,
    LinkType,
    Playground,
    RustdocInclude,
    Title,
    find_links,
)

__all__ = ["MAX_LINK_NESTED_DEPTH", "relative_path", "render_link", "replace_all"]

log = logging.getLogger(__name__)

MAX_LINK_NESTED_DEPTH = 10

_ANCHOR_START = re.compile(r"ANCHOR:\s*(?P<anchor_name>[\w_-]+)")
_ANCHOR_END = re.compile(r"ANCHOR_END:\s*(?P<anchor_name>[\w_-]+)")


def _lines(s: str) -> list[str]:
    parts = s.split("\n")
    if parts[-1] == "":
        parts.pop()
    return [p[:-1] if p.endswith("\r") else p for p in parts]


def _in_range(index: int, selection: LineRange) -> bool:
    if selection.start is not None and index < selection.start:
        return False
    return selection.end is None or index < selection.end


def _take_lines(s: str, selection: LineRange) -> str:
    return "\n".join(
        line for index, line in enumerate(_lines(s)) if _in_range(index, selection)
    )


def _anchor_name(pattern: re.Pattern[str], line: str) -> str | None:
    match = pattern.search(line)
    return match.group("anchor_name") if match else None


def _take_anchored_lines(s: str, anchor: str) -> str:
    retained = []
    found = False
    for line in _lines(s):
        if found:
            end = _anchor_name(_ANCHOR_END, line)
            if end is not None:
                if end == anchor:
                    break
            elif not _ANCHOR_START.search(line):
                retained.append(line)
        elif _anchor_name(_ANCHOR_START, line) == anchor:
            found = True
    return "\n".join(retained)


def _take_rustdoc_include_lines(s: str, selection: LineRange) -> str:
    return "\n".join(
        line if _in_range(index, selection) else f"# {line}"
        for index, line in enumerate(_lines(s))
    )


def _take_rustdoc_include_anchored_lines(s: str, anchor: str) -> str:
    output = []
    within = False
    for line in _lines(s):
        if within:
            end = _anchor_name(_ANCHOR_END, line)
            if end is not None:
                if end == anchor:
                    within = False
            elif not _ANCHOR_START.search(line):
                output.append(line)
        else:
            start = _anchor_name(_ANCHOR_START, line)
            if start is not None:
                if start == anchor:
                    within = True
            elif not _ANCHOR_END.search(line):
                output.append(f"# {line}")
    return "\n".join(output)


def _read(link: Link, target: Path) -> str:
    try:
        with open(target, encoding="utf-8", newline="") as handle:
            return handle.read()
    except (OSError, UnicodeDecodeError) as exc:
        raise OSError(
            f"Could not read file for link {link.link_text} ({target})"
        ) from exc


def relative_path(link_type: LinkType, base: str | os.PathLike[str]) -> Path | None:
    """The directory that nested helpers inside the included file resolve against."""
    if isinstance(link_type, (Include, Playground, RustdocInclude)):
        return (Path(base) / link_type.path).parent
    return None


def render_link(link: Link, base: str | os.PathLike[str]) -> str:
    """The text that replaces ``link``, with files resolved against ``base``.

    Raises :class:`OSError` when a referenced file cannot be read.
    """
    kind = link.link_type
    if isinstance(kind, Escaped):
        return link.link_text[1:]
    if isinstance(kind, Title):
        return ""
    target = Path(base) / kind.path
    contents = _read(link, target)
    if isinstance(kind, Include):
        selection = kind.range_or_anchor
        if isinstance(selection, Anchor):
            return _take_anchored_lines(contents, selection.name)
        return _take_lines(contents, selection)
    if isinstance(kind, RustdocInclude):
        selection = kind.range_or_anchor
        if isinstance(selection, Anchor):
            return _take_rustdoc_include_anchored_lines(contents, selection.name)
        return _take_rustdoc_include_lines(contents, selection)
    ftype = "rust," if kind.attrs else "rust"
    if not contents.endswith("\n"):
        contents += "\n"
    return f"```{ftype}{','.join(kind.attrs)}\n{contents}```\n"


def replace_all(
    s: str,
    path: str | os.PathLike[str],
    source: str | os.PathLike[str],
    depth: int,
    chapter_title: str,
) -> tuple[str, str]:
    """Expand every helper in ``s``; return the new text and chapter title.

    Helpers whose files cannot be read are left in the text as written.
    Nesting stops at :data:`MAX_LINK_NESTED_DEPTH` levels.
    """
    pieces = []
    previous_end = 0
    for link in find_links(s):
        pieces.append(s[previous_end:link.start_index])
        try:
            new_content = render_link(link, path)
        except OSError as exc:
            log.error('Error updating "%s", %s', link.link_text, exc)
            if exc.__cause__ is not None:
                log.warning("Caused By: %s", exc.__cause__)
            previous_end = link.start_index
            continue

        if isinstance(link.link_type, Title):
            chapter_title = link.link_type.title

        if depth < MAX_LINK_NESTED_DEPTH:
            nested_base = relative_path(link.link_type, path)
            if nested_base is not None:
                expanded, chapter_title = replace_all(
                    new_content, nested_base, source, depth + 1, chapter_title
                )
                pieces.append(expanded)
            else:
                pieces.append(new_content)
        else:
            log.error(
                "Stack depth exceeded in %s. Check for cyclic includes", Path(source)
            )
        previous_end = link.end_index

    pieces.append(s[previous_end:])
    return "".join(pieces), chapter_title