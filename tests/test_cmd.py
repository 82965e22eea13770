import io
import shlex
import sys
from pathlib import Path

import pytest

from mdtome.cmd import CmdPreprocessor
from mdtome.config import Config
from mdtome.preprocess import PreprocessorContext

SCRIPT = """
import json
import sys

if len(sys.argv) > 1 and sys.argv[1] == "supports":
    sys.exit(1 if sys.argv[2] == "not-supported" else 0)

ctx, book = json.load(sys.stdin)
settings = ctx["config"].get("preprocessor", {}).get("nop-preprocessor", {})
if settings.get("blow-up"):
    sys.exit(1)
if settings.get("garbage"):
    sys.stdout.write("not json")
    sys.exit(0)
book["touched"] = True
json.dump(book, sys.stdout)
"""

BOOK = {"sections": [{"Chapter": {"name": "Intro", "path": "intro.md", "sub_items": []}}]}


@pytest.fixture
def example(tmp_path):
    script = tmp_path / "nop.py"
    script.write_text(SCRIPT)
    cmd = f"{shlex.quote(sys.executable)} {shlex.quote(str(script))}"
    return CmdPreprocessor("nop-preprocessor", cmd)


def make_ctx(tmp_path, config=None):
    return PreprocessorContext(
        root=tmp_path, config=config or Config(), renderer="some-renderer"
    )


def test_round_trip_write_and_parse_input(tmp_path):
    cmd = CmdPreprocessor("test", "test")
    config = Config.from_str('[book]\ntitle = "Guide"\n\n[output.html]\ncurly-quotes = true\n')
    ctx = make_ctx(tmp_path, config)
    buffer = io.BytesIO()
    cmd.write_input(buffer, BOOK, ctx)
    buffer.seek(0)
    got_ctx, got_book = CmdPreprocessor.parse_input(buffer)
    assert got_book == BOOK
    assert got_ctx == ctx


def test_write_input_to_text_stream(tmp_path):
    cmd = CmdPreprocessor("test", "test")
    ctx = make_ctx(tmp_path)
    buffer = io.StringIO()
    cmd.write_input(buffer, BOOK, ctx)
    buffer.seek(0)
    got_ctx, got_book = CmdPreprocessor.parse_input(buffer)
    assert got_book == BOOK
    assert got_ctx.renderer == "some-renderer"


def test_parse_input_rejects_garbage():
    with pytest.raises(ValueError, match="Unable to parse the input"):
        CmdPreprocessor.parse_input(io.StringIO("{not json"))


def test_name_and_command():
    cmd = CmdPreprocessor("nop", "run --flag 'two words'")
    assert cmd.name() == "nop"
    assert cmd.command() == ["run", "--flag", "two words"]


def test_empty_command_is_an_error():
    with pytest.raises(ValueError, match="Command string was empty"):
        CmdPreprocessor("empty", "   ").command()


def test_example_supports_whatever(example):
    assert example.supports_renderer("whatever") is True


def test_example_doesnt_support_not_supported(example):
    assert example.supports_renderer("not-supported") is False


def test_missing_command_is_unsupported():
    cmd = CmdPreprocessor("missing", "trduyvbhijnorgevfuhn")
    assert cmd.supports_renderer("html") is False


def test_empty_command_is_unsupported():
    assert CmdPreprocessor("empty", "").supports_renderer("html") is False


def test_process_the_book(example, tmp_path):
    got = example.run(make_ctx(tmp_path), BOOK)
    assert got["touched"] is True
    assert got["sections"] == BOOK["sections"]


def test_ask_the_preprocessor_to_blow_up(example, tmp_path):
    config = Config()
    config.set("preprocessor.nop-preprocessor.blow-up", True)
    with pytest.raises(RuntimeError, match="exited unsuccessfully"):
        example.run(make_ctx(tmp_path, config), BOOK)


def test_unparseable_output(example, tmp_path):
    config = Config()
    config.set("preprocessor.nop-preprocessor.garbage", True)
    with pytest.raises(ValueError, match="Unable to parse the preprocessed book"):
        example.run(make_ctx(tmp_path, config), BOOK)


def test_missing_program_cannot_start(tmp_path):
    cmd = CmdPreprocessor("missing", "trduyvbhijnorgevfuhn")
    with pytest.raises(RuntimeError, match="Is it installed"):
        cmd.run(make_ctx(tmp_path), BOOK)


def test_context_root_survives_round_trip(tmp_path):
    cmd = CmdPreprocessor("test", "test")
    ctx = make_ctx(tmp_path)
    buffer = io.BytesIO()
    cmd.write_input(buffer, BOOK, ctx)
    buffer.seek(0)
    got_ctx, _ = CmdPreprocessor.parse_input(buffer)
    assert got_ctx.root == Path(tmp_path)