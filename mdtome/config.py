"""The book configuration: typed tables plus a free-form tree for plugins."""

from __future__ import annotations

import copy
import datetime
import enum
import json
import logging
import os
import tomllib
from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import PurePath
from typing import Any

import tomli_w

from .settings import (
    BookConfig,
    BuildConfig,
    HtmlConfig,
    RustConfig,
    SettingsError,
)

__all__ = [
    "ConfigError",
    "read_path",
    "insert_path",
    "delete_path",
    "parse_env",
    "is_legacy_format",
    "Config",
]

log = logging.getLogger(__name__)

_ENV_PREFIX = "MDBOOK_"

_LEGACY_ITEMS = (
    "title",
    "authors",
    "source",
    "description",
    "output.html.destination",
)


class ConfigError(ValueError):
    """The configuration could not be read, parsed or updated."""


def read_path(table: Any, key: str) -> Any:
    """Look up a dotted key such as ``output.html.theme``; ``None`` if absent."""
    current = table
    for part in key.split("."):
        if not isinstance(current, Mapping) or part not in current:
            return None
        current = current[part]
    return current


def insert_path(table: dict[str, Any], key: str, value: Any) -> None:
    """Set a dotted key, replacing anything in the way with new tables."""
    head, sep, tail = key.partition(".")
    if not sep:
        table[key] = value
        return
    child = table.get(head)
    if not isinstance(child, dict):
        child = {}
        table[head] = child
    insert_path(child, tail, value)


def delete_path(table: Any, key: str) -> Any:
    """Remove a dotted key and return its value, or ``None`` if absent."""
    parent_key, _, last = key.rpartition(".")
    parent = read_path(table, parent_key) if parent_key else table
    if isinstance(parent, dict):
        return parent.pop(last, None)
    return None


def parse_env(key: str) -> str | None:
    """Turn an ``MDBOOK_`` environment variable name into a config key."""
    if not key.startswith(_ENV_PREFIX):
        return None
    rest = key[len(_ENV_PREFIX):]
    return rest.lower().replace("__", ".").replace("_", "-")


def is_legacy_format(table: Any) -> bool:
    """Whether a raw table uses the old layout with metadata at the top level."""
    return any(read_path(table, item) is not None for item in _LEGACY_ITEMS)


def _to_toml_value(value: Any) -> Any:
    if value is None:
        raise ConfigError("Unable to represent the item as a TOML value: none")
    if isinstance(value, enum.Enum):
        return _to_toml_value(value.value)
    if isinstance(value, (bool, int, float, str)):
        return value
    if isinstance(value, (datetime.datetime, datetime.date, datetime.time)):
        return value
    if isinstance(value, PurePath):
        return str(value)
    if isinstance(value, Mapping):
        out = {}
        for k, v in value.items():
            name = str(k) if isinstance(k, PurePath) else k
            if not isinstance(name, str):
                raise ConfigError(
                    "Unable to represent the item as a TOML value: "
                    f"key {k!r} is not a string"
                )
            out[name] = _to_toml_value(v)
        return out
    if isinstance(value, (list, tuple)):
        return [_to_toml_value(v) for v in value]
    raise ConfigError(
        f"Unable to represent the item as a TOML value: {type(value).__name__}"
    )


def _sorted_tree(value: Any) -> Any:
    if isinstance(value, Mapping):
        return {k: _sorted_tree(value[k]) for k in sorted(value)}
    if isinstance(value, list):
        return [_sorted_tree(v) for v in value]
    return value


def _reject_constant(name: str) -> Any:
    raise ValueError(f"not valid JSON: {name}")


def _update_section(current: Any, key: str, value: Any) -> Any:
    """Round-trip a typed table through a raw tree to change one field."""
    raw = current.to_dict()
    insert_path(raw, key, value)
    try:
        return type(current).from_dict(raw)
    except SettingsError:
        return current


@dataclass
class Config:
    """The whole book configuration, as found in ``book.toml``."""

    book: BookConfig = field(default_factory=BookConfig)
    build: BuildConfig = field(default_factory=BuildConfig)
    rust: RustConfig = field(default_factory=RustConfig)
    rest: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_str(cls, src: str) -> Config:
        """Parse a configuration from TOML text."""
        try:
            data = tomllib.loads(src)
        except tomllib.TOMLDecodeError as exc:
            raise ConfigError(f"Invalid configuration file: {exc}") from exc
        try:
            return cls.from_dict(data)
        except ConfigError as exc:
            raise ConfigError(f"Invalid configuration file: {exc}") from exc

    @classmethod
    def from_disk(cls, config_file: str | os.PathLike[str]) -> Config:
        """Load a configuration file from disk."""
        try:
            with open(config_file, encoding="utf-8") as handle:
                text = handle.read()
        except FileNotFoundError as exc:
            raise ConfigError("Unable to open the configuration file") from exc
        except (OSError, UnicodeDecodeError) as exc:
            raise ConfigError("Couldn't read the file") from exc
        return cls.from_str(text)

    @classmethod
    def from_dict(cls, data: Any) -> Config:
        """Build a configuration from a parsed TOML tree."""
        if is_legacy_format(data):
            log.warning("It looks like you are using the legacy book.toml format.")
            log.warning(
                "Move top level entries like `title`, `authors` and `description` "
                "under `[book]`, and `output.html.destination` to `build.build-dir`."
            )
            return cls._from_legacy(copy.deepcopy(data))

        if not isinstance(data, Mapping):
            raise ConfigError("A config file should always be a toml table")

        table = copy.deepcopy(dict(data))
        try:
            book = BookConfig.from_dict(table.pop("book", {}))
            build = BuildConfig.from_dict(table.pop("build", {}))
            rust = RustConfig.from_dict(table.pop("rust", {}))
        except SettingsError as exc:
            raise ConfigError(str(exc)) from exc
        return cls(book=book, build=build, rust=rust, rest=table)

    @classmethod
    def _from_legacy(cls, table: dict[str, Any]) -> Config:
        cfg = cls()

        title = table.pop("title", None)
        if isinstance(title, str):
            cfg.book.title = title
        authors = table.pop("authors", None)
        if isinstance(authors, list) and all(isinstance(a, str) for a in authors):
            cfg.book.authors = list(authors)
        source = table.pop("source", None)
        if isinstance(source, str):
            cfg.book.src = source
        description = table.pop("description", None)
        if isinstance(description, str):
            cfg.book.description = description

        destination = delete_path(table, "output.html.destination")
        if isinstance(destination, str):
            cfg.build.build_dir = destination

        cfg.rest = table
        return cfg

    def update_from_env(self, environ: Mapping[str, str] | None = None) -> None:
        """Apply overrides from ``MDBOOK_*`` variables.

        ``MDBOOK_FOO_BAR__BAZ`` sets ``foo-bar.baz``. Values are parsed as
        JSON, falling back to a plain string.
        """
        log.debug("Updating the config from environment variables")
        if environ is None:
            environ = os.environ

        for name, raw in list(environ.items()):
            key = parse_env(name)
            if key is None:
                continue
            log.debug("%s => %s", key, raw)
            try:
                value = json.loads(raw, parse_constant=_reject_constant)
            except ValueError:
                value = raw
            if value is None:
                log.warning("Ignoring null value for config key %s", key)
                continue

            if key in ("book", "build") and isinstance(value, dict):
                for sub_key, sub_value in value.items():
                    if sub_value is not None:
                        self.set(f"{key}.{sub_key}", sub_value)
                return

            self.set(key, value)

    def get(self, key: str) -> Any:
        """Fetch an item from the free-form part by dotted key."""
        return read_path(self.rest, key)

    def set(self, index: str, value: Any) -> None:
        """Set a config key, clobbering any existing values along the way."""
        value = _to_toml_value(value)
        if index.startswith("book."):
            self.book = _update_section(self.book, index[len("book."):], value)
        elif index.startswith("build."):
            self.build = _update_section(self.build, index[len("build."):], value)
        else:
            insert_path(self.rest, index, value)

    def get_renderer(self, index: str) -> dict[str, Any] | None:
        """The table for a renderer, from ``output.<index>``."""
        found = self.get(f"output.{index}")
        return found if isinstance(found, dict) else None

    def get_preprocessor(self, index: str) -> dict[str, Any] | None:
        """The table for a preprocessor, from ``preprocessor.<index>``."""
        found = self.get(f"preprocessor.{index}")
        return found if isinstance(found, dict) else None

    def html_config(self) -> HtmlConfig | None:
        """The HTML renderer's settings, or ``None`` if absent or invalid."""
        raw = self.get("output.html")
        if raw is None:
            return None
        try:
            return HtmlConfig.from_dict(raw)
        except SettingsError as exc:
            log.error("Parsing configuration [output.html]: %s", exc)
            return None

    def to_dict(self) -> dict[str, Any]:
        """The configuration as a plain TOML tree."""
        table = copy.deepcopy(self.rest)
        table["book"] = self.book.to_dict()
        if self.build != BuildConfig():
            table["build"] = self.build.to_dict()
        if self.rust != RustConfig():
            table["rust"] = self.rust.to_dict()
        return table

    def to_toml(self) -> str:
        """The configuration as TOML text with keys in sorted order."""
        return tomli_w.dumps(_sorted_tree(self.to_dict()))