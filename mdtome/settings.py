"""Typed tables of the book configuration: book, build, rust and html output."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Callable

__all__ = [
    "SettingsError",
    "TextDirection",
    "RustEdition",
    "BookConfig",
    "BuildConfig",
    "RustConfig",
    "Print",
    "Fold",
    "Playground",
    "Code",
    "Search",
    "HtmlConfig",
]


class SettingsError(ValueError):
    """A configuration table holds a value of the wrong type or shape."""


_MISSING = object()

_RTL_LANGUAGES = frozenset(
    {
        "ar", "ara", "arc", "ae", "ave", "egy", "he", "heb", "nqo", "pal", "phn",
        "sam", "syc", "syr", "fa", "per", "fas", "ku", "kur", "ur", "urd",
        "pus", "ps", "yi", "yid",
    }
)


def _describe(value: Any) -> str:
    if value is None:
        return "none"
    if isinstance(value, bool):
        return f"boolean `{str(value).lower()}`"
    if isinstance(value, int):
        return f"integer `{value}`"
    if isinstance(value, float):
        return f"float `{value}`"
    if isinstance(value, str):
        return f"string {value!r}"
    if isinstance(value, Mapping):
        return "table"
    if isinstance(value, (list, tuple)):
        return "array"
    return type(value).__name__


def _table(data: Any, section: str) -> Mapping[str, Any]:
    if not isinstance(data, Mapping):
        raise SettingsError(
            f"invalid type for `{section}`: expected a table, found {_describe(data)}"
        )
    return data


def _is_str(value: Any) -> bool:
    return isinstance(value, str)


def _is_bool(value: Any) -> bool:
    return isinstance(value, bool)


def _is_str_list(value: Any) -> bool:
    return isinstance(value, (list, tuple)) and all(isinstance(v, str) for v in value)


def _is_str_map(value: Any) -> bool:
    return isinstance(value, Mapping) and all(
        isinstance(k, str) and isinstance(v, str) for k, v in value.items()
    )


def _uint_check(bits: int) -> Callable[[Any], bool]:
    limit = 1 << bits

    def check(value: Any) -> bool:
        return (
            isinstance(value, int)
            and not isinstance(value, bool)
            and 0 <= value < limit
        )

    return check


def _read(
    data: Mapping[str, Any],
    key: str,
    section: str,
    check: Callable[[Any], bool],
    expected: str,
    default: Any,
    optional: bool = False,
) -> Any:
    value = data.get(key, _MISSING)
    if value is _MISSING:
        return default
    if value is None and optional:
        return None
    if not check(value):
        raise SettingsError(
            f"invalid type for `{section}.{key}`: expected {expected}, "
            f"found {_describe(value)}"
        )
    return value


def _opt_str(data, key, section, default=None):
    return _read(data, key, section, _is_str, "a string", default, optional=True)


def _str(data, key, section, default):
    return _read(data, key, section, _is_str, "a string", default)


def _bool(data, key, section, default):
    return _read(data, key, section, _is_bool, "a boolean", default)


def _uint(data, key, section, default, bits):
    return _read(
        data, key, section, _uint_check(bits), f"a u{bits} integer", default
    )


def _str_list(data, key, section):
    return list(_read(data, key, section, _is_str_list, "an array of strings", []))


def _str_map(data, key, section):
    return dict(
        _read(data, key, section, _is_str_map, "a table of strings", {})
    )


def _enum(data, key, section, enum_cls):
    value = data.get(key, _MISSING)
    if value is _MISSING or value is None:
        return None
    try:
        return enum_cls(value)
    except ValueError:
        choices = ", ".join(repr(member.value) for member in enum_cls)
        raise SettingsError(
            f"unknown variant {_describe(value)} for `{section}.{key}`, "
            f"expected one of {choices}"
        ) from None


class TextDirection(Enum):
    """Direction of text in rendered output."""

    LEFT_TO_RIGHT = "ltr"
    RIGHT_TO_LEFT = "rtl"

    @classmethod
    def from_lang_code(cls, code: str) -> TextDirection:
        """Return the text direction conventionally used by a language code."""
        return cls.RIGHT_TO_LEFT if code in _RTL_LANGUAGES else cls.LEFT_TO_RIGHT


class RustEdition(Enum):
    """Rust edition used for playground code."""

    E2021 = "2021"
    E2018 = "2018"
    E2015 = "2015"


@dataclass
class BookConfig:
    """Metadata about the book."""

    title: str | None = None
    authors: list[str] = field(default_factory=list)
    description: str | None = None
    src: str = "src"
    multilingual: bool = False
    language: str | None = "en"
    text_direction: TextDirection | None = None

    def realized_text_direction(self) -> TextDirection:
        """The explicit text direction, or the one derived from the language."""
        if self.text_direction is not None:
            return self.text_direction
        return TextDirection.from_lang_code(self.language or "")

    @classmethod
    def from_dict(cls, data: Any) -> BookConfig:
        section = "book"
        data = _table(data, section)
        return cls(
            title=_opt_str(data, "title", section),
            authors=_str_list(data, "authors", section),
            description=_opt_str(data, "description", section),
            src=_str(data, "src", section, "src"),
            multilingual=_bool(data, "multilingual", section, False),
            language=_opt_str(data, "language", section, "en"),
            text_direction=_enum(data, "text-direction", section, TextDirection),
        )

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {}
        if self.title is not None:
            out["title"] = self.title
        out["authors"] = list(self.authors)
        if self.description is not None:
            out["description"] = self.description
        out["src"] = str(self.src)
        out["multilingual"] = self.multilingual
        if self.language is not None:
            out["language"] = self.language
        if self.text_direction is not None:
            out["text-direction"] = self.text_direction.value
        return out


@dataclass
class BuildConfig:
    """Settings of the build procedure."""

    build_dir: str = "book"
    create_missing: bool = True
    use_default_preprocessors: bool = True
    extra_watch_dirs: list[str] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: Any) -> BuildConfig:
        section = "build"
        data = _table(data, section)
        return cls(
            build_dir=_str(data, "build-dir", section, "book"),
            create_missing=_bool(data, "create-missing", section, True),
            use_default_preprocessors=_bool(
                data, "use-default-preprocessors", section, True
            ),
            extra_watch_dirs=_str_list(data, "extra-watch-dirs", section),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "build-dir": str(self.build_dir),
            "create-missing": self.create_missing,
            "use-default-preprocessors": self.use_default_preprocessors,
            "extra-watch-dirs": [str(d) for d in self.extra_watch_dirs],
        }


@dataclass
class RustConfig:
    """Settings for Rust code in the book."""

    edition: RustEdition | None = None

    @classmethod
    def from_dict(cls, data: Any) -> RustConfig:
        section = "rust"
        data = _table(data, section)
        return cls(edition=_enum(data, "edition", section, RustEdition))

    def to_dict(self) -> dict[str, Any]:
        if self.edition is None:
            return {}
        return {"edition": self.edition.value}


@dataclass
class Print:
    """Settings of the print page."""

    enable: bool = True
    page_break: bool = True

    @classmethod
    def from_dict(cls, data: Any) -> Print:
        section = "output.html.print"
        data = _table(data, section)
        return cls(
            enable=_bool(data, "enable", section, True),
            page_break=_bool(data, "page-break", section, True),
        )


@dataclass
class Fold:
    """Settings of sidebar folding."""

    enable: bool = False
    level: int = 0

    @classmethod
    def from_dict(cls, data: Any) -> Fold:
        section = "output.html.fold"
        data = _table(data, section)
        return cls(
            enable=_bool(data, "enable", section, False),
            level=_uint(data, "level", section, 0, 8),
        )


@dataclass
class Playground:
    """Settings of runnable code snippets."""

    editable: bool = False
    copyable: bool = True
    copy_js: bool = True
    line_numbers: bool = False
    runnable: bool = True

    @classmethod
    def from_dict(cls, data: Any) -> Playground:
        section = "output.html.playground"
        data = _table(data, section)
        return cls(
            editable=_bool(data, "editable", section, False),
            copyable=_bool(data, "copyable", section, True),
            copy_js=_bool(data, "copy-js", section, True),
            line_numbers=_bool(data, "line-numbers", section, False),
            runnable=_bool(data, "runnable", section, True),
        )


@dataclass
class Code:
    """Settings of code blocks."""

    hidelines: dict[str, str] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: Any) -> Code:
        section = "output.html.code"
        data = _table(data, section)
        return cls(hidelines=_str_map(data, "hidelines", section))


@dataclass
class Search:
    """Settings of the search feature."""

    enable: bool = True
    limit_results: int = 30
    teaser_word_count: int = 30
    use_boolean_and: bool = False
    boost_title: int = 2
    boost_hierarchy: int = 1
    boost_paragraph: int = 1
    expand: bool = True
    heading_split_level: int = 3
    copy_js: bool = True

    @classmethod
    def from_dict(cls, data: Any) -> Search:
        section = "output.html.search"
        data = _table(data, section)
        return cls(
            enable=_bool(data, "enable", section, True),
            limit_results=_uint(data, "limit-results", section, 30, 32),
            teaser_word_count=_uint(data, "teaser-word-count", section, 30, 32),
            use_boolean_and=_bool(data, "use-boolean-and", section, False),
            boost_title=_uint(data, "boost-title", section, 2, 8),
            boost_hierarchy=_uint(data, "boost-hierarchy", section, 1, 8),
            boost_paragraph=_uint(data, "boost-paragraph", section, 1, 8),
            expand=_bool(data, "expand", section, True),
            heading_split_level=_uint(data, "heading-split-level", section, 3, 8),
            copy_js=_bool(data, "copy-js", section, True),
        )


@dataclass
class HtmlConfig:
    """Settings of the HTML renderer."""

    theme: str | None = None
    default_theme: str | None = None
    preferred_dark_theme: str | None = None
    curly_quotes: bool = False
    mathjax_support: bool = False
    copy_fonts: bool = True
    google_analytics: str | None = None
    additional_css: list[str] = field(default_factory=list)
    additional_js: list[str] = field(default_factory=list)
    fold: Fold = field(default_factory=Fold)
    playground: Playground = field(default_factory=Playground)
    code: Code = field(default_factory=Code)
    print: Print = field(default_factory=Print)
    no_section_label: bool = False
    search: Search | None = None
    git_repository_url: str | None = None
    git_repository_icon: str | None = None
    input_404: str | None = None
    site_url: str | None = None
    cname: str | None = None
    edit_url_template: str | None = None
    live_reload_endpoint: str | None = None
    redirect: dict[str, str] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: Any) -> HtmlConfig:
        section = "output.html"
        data = _table(data, section)
        if "playground" in data and "playpen" in data:
            raise SettingsError(f"duplicate field `playground` in `{section}`")
        playground = data.get("playground", data.get("playpen", {}))
        search = data.get("search", _MISSING)
        return cls(
            theme=_opt_str(data, "theme", section),
            default_theme=_opt_str(data, "default-theme", section),
            preferred_dark_theme=_opt_str(data, "preferred-dark-theme", section),
            curly_quotes=_bool(data, "curly-quotes", section, False),
            mathjax_support=_bool(data, "mathjax-support", section, False),
            copy_fonts=_bool(data, "copy-fonts", section, True),
            google_analytics=_opt_str(data, "google-analytics", section),
            additional_css=_str_list(data, "additional-css", section),
            additional_js=_str_list(data, "additional-js", section),
            fold=Fold.from_dict(data.get("fold", {})),
            playground=Playground.from_dict(playground),
            code=Code.from_dict(data.get("code", {})),
            print=Print.from_dict(data.get("print", {})),
            no_section_label=_bool(data, "no-section-label", section, False),
            search=None if search is _MISSING or search is None else Search.from_dict(search),
            git_repository_url=_opt_str(data, "git-repository-url", section),
            git_repository_icon=_opt_str(data, "git-repository-icon", section),
            input_404=_opt_str(data, "input-404", section),
            site_url=_opt_str(data, "site-url", section),
            cname=_opt_str(data, "cname", section),
            edit_url_template=_opt_str(data, "edit-url-template", section),
            live_reload_endpoint=_opt_str(data, "live-reload-endpoint", section),
            redirect=_str_map(data, "redirect", section),
        )

    def theme_dir(self, root: str | Path) -> Path:
        """The theme directory under ``root``, ``theme`` unless configured."""
        return Path(root) / (self.theme if self.theme is not None else "theme")