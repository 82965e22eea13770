"""The preprocessor interface and the context handed to every preprocessor."""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from .config import Config

__all__ = ["MDBOOK_VERSION", "PreprocessorContext", "Preprocessor"]

MDBOOK_VERSION = "0.1.0"
"""The version reported to preprocessors and renderers for compatibility checks."""

_FIELDS = ("root", "config", "renderer", "mdbook_version")


@dataclass
class PreprocessorContext:
    """What a preprocessor knows about the book being processed."""

    root: Path
    config: Config
    renderer: str
    mdbook_version: str = MDBOOK_VERSION
    chapter_titles: dict[Path, str] = field(default_factory=dict)

    def __post_init__(self) -> None:
        self.root = Path(self.root)

    def to_dict(self) -> dict[str, Any]:
        """The context as a JSON-ready tree; chapter titles are not included."""
        return {
            "root": str(self.root),
            "config": self.config.to_dict(),
            "renderer": self.renderer,
            "mdbook_version": self.mdbook_version,
        }

    @classmethod
    def from_dict(cls, data: Any) -> PreprocessorContext:
        """Rebuild a context from the tree produced by :meth:`to_dict`."""
        if not isinstance(data, Mapping):
            raise ValueError("A preprocessor context should be a table")
        missing = [name for name in _FIELDS if name not in data]
        if missing:
            raise ValueError(f"missing field `{missing[0]}` in preprocessor context")
        for name in ("root", "renderer", "mdbook_version"):
            if not isinstance(data[name], str):
                raise ValueError(f"invalid type for `{name}`: expected a string")
        return cls(
            root=Path(data["root"]),
            config=Config.from_dict(data["config"]),
            renderer=data["renderer"],
            mdbook_version=data["mdbook_version"],
        )


class Preprocessor(ABC):
    """An operation run on a book after loading and before rendering."""

    @abstractmethod
    def name(self) -> str:
        """The preprocessor's name."""

    @abstractmethod
    def run(self, ctx: PreprocessorContext, book: Any) -> Any:
        """Process ``book`` and return the updated book."""

    def supports_renderer(self, renderer: str) -> bool:
        """Whether this preprocessor should run for ``renderer``; always true here."""
        return True