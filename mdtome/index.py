"""Turn ``README.md`` chapters into ``index.md`` so they render as index pages."""

from __future__ import annotations

import logging
import os
import re
from collections.abc import Mapping
from pathlib import Path
from typing import Any

from .preprocess import Preprocessor, PreprocessorContext

__all__ = ["is_readme_file", "IndexPreprocessor"]

log = logging.getLogger(__name__)

_README = re.compile(r"readme", re.IGNORECASE)


def is_readme_file(path: str | os.PathLike[str]) -> bool:
    """Whether the file stem of ``path`` is ``readme`` in any letter case."""
    return _README.fullmatch(Path(path).stem) is not None


def _warn_readme_name_conflict(readme_path: Path, index_path: Path) -> None:
    file_name = readme_path.name
    parent_dir = index_path.parent
    log.warning(
        'It seems that there are both "%s" and index.md under "%s".',
        file_name,
        parent_dir,
    )
    log.warning(
        'mdbook converts "%s" into index.html by default. It may cause', file_name
    )
    log.warning("unexpected behavior if putting both files under the same directory.")
    log.warning("To solve the warning, try to rearrange the book structure or disable")
    log.warning('"index" preprocessor to stop the conversion.')


class IndexPreprocessor(Preprocessor):
    """Renames chapters whose file is a README to ``index.md``."""

    NAME = "index"

    def name(self) -> str:
        return self.NAME

    def rename_chapter_path(
        self, path: str | os.PathLike[str], source_dir: str | os.PathLike[str]
    ) -> Path:
        """The chapter path to use: ``index.md`` in place of a README file.

        Warns when an ``index.md`` already sits next to the README.
        """
        path = Path(path)
        if not is_readme_file(path):
            return path
        index_md = Path(source_dir) / path.with_name("index.md")
        if index_md.exists():
            _warn_readme_name_conflict(path, index_md)
        return path.with_name("index.md")

    def run(self, ctx: PreprocessorContext, book: Any) -> Any:
        """Rename README chapters in a book given in its JSON tree form.

        Every ``{"Chapter": {...}}`` item anywhere in the tree has its
        ``path`` updated in place; the same book is returned.
        """
        source_dir = ctx.root / ctx.config.book.src
        self._walk(book, source_dir)
        return book

    def _walk(self, node: Any, source_dir: Path) -> None:
        if isinstance(node, Mapping):
            chapter = node.get("Chapter")
            if isinstance(chapter, dict):
                path = chapter.get("path")
                if isinstance(path, str) and path:
                    chapter["path"] = str(self.rename_chapter_path(path, source_dir))
            for value in node.values():
                self._walk(value, source_dir)
        elif isinstance(node, list):
            for item in node:
                self._walk(item, source_dir)