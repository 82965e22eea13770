import tomllib
from pathlib import Path

import pytest

from mdtome.settings import (
    BookConfig,
    BuildConfig,
    Code,
    Fold,
    HtmlConfig,
    Playground,
    Print,
    RustConfig,
    RustEdition,
    Search,
    SettingsError,
    TextDirection,
)

COMPLEX_CONFIG = """
[book]
title = "Some Book"
authors = ["Jane Doe <jane@example.com>"]
description = "A completely useless book"
multilingual = true
src = "source"
language = "ja"

[build]
build-dir = "outputs"
create-missing = false
use-default-preprocessors = true

[output.html]
theme = "./themedir"
default-theme = "rust"
curly-quotes = true
google-analytics = "123456"
additional-css = ["./foo/bar/baz.css"]
git-repository-url = "https://example.com/"
git-repository-icon = "fa-code-fork"

[output.html.playground]
editable = true
editor = "ace"

[output.html.redirect]
"index.html" = "overview.html"
"nexted/page.md" = "https://example.com/page"
"""


@pytest.fixture
def complex_doc():
    return tomllib.loads(COMPLEX_CONFIG)


def test_load_complex_book(complex_doc):
    got = BookConfig.from_dict(complex_doc["book"])
    assert got == BookConfig(
        title="Some Book",
        authors=["Jane Doe <jane@example.com>"],
        description="A completely useless book",
        multilingual=True,
        src="source",
        language="ja",
        text_direction=None,
    )


def test_load_complex_build(complex_doc):
    got = BuildConfig.from_dict(complex_doc["build"])
    assert got == BuildConfig(
        build_dir="outputs",
        create_missing=False,
        use_default_preprocessors=True,
        extra_watch_dirs=[],
    )


def test_load_complex_html(complex_doc):
    got = HtmlConfig.from_dict(complex_doc["output"]["html"])
    assert got == HtmlConfig(
        curly_quotes=True,
        google_analytics="123456",
        additional_css=["./foo/bar/baz.css"],
        theme="./themedir",
        default_theme="rust",
        playground=Playground(
            editable=True, copyable=True, copy_js=True, line_numbers=False, runnable=True
        ),
        git_repository_url="https://example.com/",
        git_repository_icon="fa-code-fork",
        redirect={
            "index.html": "overview.html",
            "nexted/page.md": "https://example.com/page",
        },
    )


def test_disable_runnable():
    got = HtmlConfig.from_dict({"playground": {"runnable": False}})
    assert got.playground.runnable is False


def test_playpen_alias():
    got = HtmlConfig.from_dict({"playpen": {"editable": True}})
    assert got.playground.editable is True


def test_playground_and_playpen_together_rejected():
    with pytest.raises(SettingsError):
        HtmlConfig.from_dict({"playground": {}, "playpen": {}})


@pytest.mark.parametrize(
    "text,edition",
    [("2015", RustEdition.E2015), ("2018", RustEdition.E2018), ("2021", RustEdition.E2021)],
)
def test_editions(text, edition):
    assert RustConfig.from_dict({"edition": text}) == RustConfig(edition=edition)


def test_invalid_rust_edition():
    with pytest.raises(SettingsError):
        RustConfig.from_dict({"edition": "1999"})


def test_book_defaults_with_partial_table():
    got = BookConfig.from_dict(
        {"title": "Docs", "authors": ["Jane Doe"], "src": "./source"}
    )
    assert got == BookConfig(title="Docs", authors=["Jane Doe"], src="./source")
    assert got.language == "en"
    assert got.multilingual is False


def test_legacy_html_keys_are_ignored():
    got = HtmlConfig.from_dict(
        {
            "destination": "my-book",
            "theme": "my-theme",
            "curly-quotes": True,
            "google-analytics": "123456",
            "additional-css": ["custom.css", "custom2.css"],
            "additional-js": ["custom.js"],
        }
    )
    assert got == HtmlConfig(
        theme="my-theme",
        curly_quotes=True,
        google_analytics="123456",
        additional_css=["custom.css", "custom2.css"],
        additional_js=["custom.js"],
    )


def test_file_404_default_and_custom():
    assert HtmlConfig.from_dict({"destination": "my-book"}).input_404 is None
    got = HtmlConfig.from_dict({"input-404": "missing.md", "output-404": "missing.html"})
    assert got.input_404 == "missing.md"


def test_text_direction_parsing():
    assert BookConfig.from_dict({"text-direction": "ltr"}).text_direction is TextDirection.LEFT_TO_RIGHT
    assert BookConfig.from_dict({"text-direction": "rtl"}).text_direction is TextDirection.RIGHT_TO_LEFT
    assert BookConfig.from_dict({}).text_direction is None


def test_invalid_text_direction():
    with pytest.raises(SettingsError):
        BookConfig.from_dict({"text-direction": "up"})


def test_realized_text_direction():
    cfg = BookConfig()
    cfg.language = "ar"
    assert cfg.realized_text_direction() is TextDirection.RIGHT_TO_LEFT
    cfg.language = "he"
    assert cfg.realized_text_direction() is TextDirection.RIGHT_TO_LEFT
    cfg.language = "en"
    assert cfg.realized_text_direction() is TextDirection.LEFT_TO_RIGHT
    cfg.language = "ja"
    assert cfg.realized_text_direction() is TextDirection.LEFT_TO_RIGHT

    cfg.language = "ar"
    cfg.text_direction = TextDirection.LEFT_TO_RIGHT
    assert cfg.realized_text_direction() is TextDirection.LEFT_TO_RIGHT
    cfg.text_direction = TextDirection.RIGHT_TO_LEFT
    assert cfg.realized_text_direction() is TextDirection.RIGHT_TO_LEFT
    cfg.language = "en"
    cfg.text_direction = TextDirection.LEFT_TO_RIGHT
    assert cfg.realized_text_direction() is TextDirection.LEFT_TO_RIGHT
    cfg.text_direction = TextDirection.RIGHT_TO_LEFT
    assert cfg.realized_text_direction() is TextDirection.RIGHT_TO_LEFT


def test_realized_text_direction_without_language():
    cfg = BookConfig(language=None)
    assert cfg.realized_text_direction() is TextDirection.LEFT_TO_RIGHT


@pytest.mark.parametrize("code", ["ar", "fa", "ur", "yid", "heb"])
def test_from_lang_code_rtl(code):
    assert TextDirection.from_lang_code(code) is TextDirection.RIGHT_TO_LEFT


@pytest.mark.parametrize("code", ["en", "ja", "de", ""])
def test_from_lang_code_ltr(code):
    assert TextDirection.from_lang_code(code) is TextDirection.LEFT_TO_RIGHT


def test_invalid_language_type():
    with pytest.raises(SettingsError):
        BookConfig.from_dict({"title": "Docs", "language": ["en", "pt-br"]})


def test_invalid_title_type():
    with pytest.raises(SettingsError):
        BookConfig.from_dict({"title": 20, "language": "en"})


def test_invalid_build_dir_type():
    with pytest.raises(SettingsError):
        BuildConfig.from_dict({"build-dir": 99, "create-missing": False})


def test_bool_field_rejects_integer():
    with pytest.raises(SettingsError):
        BuildConfig.from_dict({"create-missing": 1})


def test_non_table_rejected():
    with pytest.raises(SettingsError):
        BookConfig.from_dict("not a table")


def test_print_config():
    got = HtmlConfig.from_dict({"print": {"enable": False}})
    assert got.print.enable is False
    assert got.print.page_break is True
    got = HtmlConfig.from_dict({"print": {"page-break": False}})
    assert got.print.enable is True
    assert got.print.page_break is False


def test_print_and_playground_defaults():
    assert Print.from_dict({}) == Print(enable=True, page_break=True)
    assert Playground.from_dict({}) == Playground(
        editable=False, copyable=True, copy_js=True, line_numbers=False, runnable=True
    )


def test_search_defaults_and_absence():
    assert HtmlConfig.from_dict({}).search is None
    search = HtmlConfig.from_dict({"search": {}}).search
    assert search == Search()
    assert (search.limit_results, search.teaser_word_count, search.boost_title) == (30, 30, 2)
    assert search.heading_split_level == 3


def test_search_u8_out_of_range():
    with pytest.raises(SettingsError):
        Search.from_dict({"boost-title": 256})


def test_fold_level():
    assert Fold.from_dict({"enable": True, "level": 2}) == Fold(enable=True, level=2)
    with pytest.raises(SettingsError):
        Fold.from_dict({"level": -1})


def test_code_hidelines():
    assert Code.from_dict({"hidelines": {"python": "~"}}).hidelines == {"python": "~"}
    with pytest.raises(SettingsError):
        Code.from_dict({"hidelines": {"python": 3}})


def test_theme_dir():
    assert HtmlConfig().theme_dir("/root") == Path("/root") / "theme"
    assert HtmlConfig(theme="custom").theme_dir(Path("/root")) == Path("/root") / "custom"


def test_book_to_dict_default():
    assert BookConfig().to_dict() == {
        "authors": [],
        "src": "src",
        "multilingual": False,
        "language": "en",
    }


def test_book_round_trip(complex_doc):
    book = BookConfig.from_dict(complex_doc["book"])
    book.text_direction = TextDirection.RIGHT_TO_LEFT
    assert BookConfig.from_dict(book.to_dict()) == book
    assert book.to_dict()["text-direction"] == "rtl"


def test_build_to_dict_and_round_trip():
    build = BuildConfig(build_dir="out")
    assert build.to_dict() == {
        "build-dir": "out",
        "create-missing": True,
        "use-default-preprocessors": True,
        "extra-watch-dirs": [],
    }
    assert BuildConfig.from_dict(build.to_dict()) == build


def test_rust_to_dict():
    assert RustConfig().to_dict() == {}
    assert RustConfig(edition=RustEdition.E2018).to_dict() == {"edition": "2018"}
    assert RustConfig.from_dict(RustConfig(edition=RustEdition.E2021).to_dict()).edition is RustEdition.E2021