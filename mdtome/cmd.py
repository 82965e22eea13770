"""A preprocessor that hands the book to an external program."""

from __future__ import annotations

import io
import json
import logging
import shlex
import subprocess
from dataclasses import dataclass
from typing import IO, Any

from .preprocess import Preprocessor, PreprocessorContext

__all__ = ["CmdPreprocessor"]

log = logging.getLogger(__name__)


@dataclass
class CmdPreprocessor(Preprocessor):
    """Runs a third-party program as a preprocessor.

    ``supports_renderer`` runs ``<cmd> supports <renderer>`` and treats exit
    code 0 as support. ``run`` writes ``[context, book]`` as JSON to the
    program's stdin and reads the processed book as JSON from its stdout.
    """

    preprocessor_name: str
    cmd: str

    def name(self) -> str:
        return self.preprocessor_name

    def command(self) -> list[str]:
        """The command split into program and arguments, shell style."""
        words = shlex.split(self.cmd)
        if not words:
            raise ValueError("Command string was empty")
        return words

    @staticmethod
    def parse_input(reader: IO[Any]) -> tuple[PreprocessorContext, Any]:
        """Read the ``(context, book)`` pair written to a preprocessor's stdin."""
        try:
            data = json.load(reader)
            if not isinstance(data, list) or len(data) != 2:
                raise ValueError("expected a [context, book] array")
            return PreprocessorContext.from_dict(data[0]), data[1]
        except ValueError as exc:
            raise ValueError(f"Unable to parse the input: {exc}") from exc

    def write_input(
        self, writer: IO[Any], book: Any, ctx: PreprocessorContext
    ) -> None:
        """Write ``[context, book]`` as JSON to a text or binary stream."""
        text = json.dumps([ctx.to_dict(), book], default=str)
        if isinstance(writer, io.TextIOBase):
            writer.write(text)
        else:
            writer.write(text.encode("utf-8"))

    def run(self, ctx: PreprocessorContext, book: Any) -> Any:
        args = self.command()
        buffer = io.BytesIO()
        self.write_input(buffer, book, ctx)
        try:
            proc = subprocess.Popen(
                args, stdin=subprocess.PIPE, stdout=subprocess.PIPE
            )
        except OSError as exc:
            raise RuntimeError(
                f'Unable to start the "{self.name()}" preprocessor. Is it installed?'
            ) from exc

        try:
            stdout, _ = proc.communicate(buffer.getvalue())
        except BrokenPipeError as exc:
            log.warning("Error writing the RenderContext to the backend, %s", exc)
            stdout = proc.stdout.read() if proc.stdout else b""
            proc.wait()

        log.debug("%s exited with status %s", self.cmd, proc.returncode)
        if proc.returncode != 0:
            raise RuntimeError(
                f'The "{self.name()}" preprocessor exited unsuccessfully with '
                f"exit status: {proc.returncode} status"
            )

        try:
            return json.loads(stdout)
        except ValueError as exc:
            raise ValueError(
                f'Unable to parse the preprocessed book from "{self.name()}" processor'
            ) from exc

    def supports_renderer(self, renderer: str) -> bool:
        log.debug(
            'Checking if the "%s" preprocessor supports "%s"', self.name(), renderer
        )
        try:
            args = self.command()
        except ValueError as exc:
            log.warning(
                'Unable to create the command for the "%s" preprocessor, %s',
                self.name(),
                exc,
            )
            return False

        try:
            result = subprocess.run(
                [*args, "supports", renderer], stdin=subprocess.DEVNULL
            )
        except FileNotFoundError:
            log.warning(
                'The command wasn\'t found, is the "%s" preprocessor installed?',
                self.name(),
            )
            log.warning("\tCommand: %s", self.cmd)
            return False
        except OSError:
            return False
        return result.returncode == 0