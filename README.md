# mdtome

mdtome reads and edits the configuration of a markdown book. It also provides the pieces that preprocess the book's chapters before they are rendered:

- expanding include helpers in chapter text;
- renaming README chapters to index pages;
- running an external preprocessor program.

## Installation

```
pip install mdtome
```

## Configuration (`mdtome.config`, `mdtome.settings`)

A book is configured with a `book.toml` file. `Config` reads this file and gives you typed access to three tables:

- `[book]` as `BookConfig`;
- `[build]` as `BuildConfig`;
- `[rust]` as `RustConfig`.

Every other table is kept in a free-form tree, for example the `output.*` and `preprocessor.*` tables:

```python
from mdtome.config import Config

cfg = Config.from_str("""
[book]
title = "My Book"
authors = ["Jane Doe"]

[other-table.foo]
bar = 123
""")

cfg.get("other-table.foo.bar")          # 123
cfg.set("output.html.theme", "./themes")
cfg.html_config().theme                  # "./themes"
cfg.get_renderer("html")                 # {"theme": "./themes"}
print(cfg.to_toml())                     # TOML text with keys sorted
```

Other ways to create or export a configuration:

- `Config.from_disk(path)` loads a file.
- `Config.from_dict(tree)` builds a configuration from an already parsed tree.
- `Config.to_dict()` returns the configuration as a plain tree.

Invalid input raises `ConfigError`. This includes TOML that does not parse and a value of the wrong type in `[book]`, `[build]` or `[rust]`.

Older files put `title`, `authors`, `source` and `description` at the top level, and `output.html.destination` under the html table. These files are still accepted; a warning is logged.

`Config.html_config()` returns the `[output.html]` table as an `HtmlConfig`. If that table is missing or invalid, it returns `None`. `HtmlConfig.theme_dir(root)` returns the theme directory under `root`. It is `theme` unless the table configures another one.

The helpers `read_path`, `insert_path` and `delete_path` work on dotted keys such as `output.html.theme` in plain dict trees.

### Environment overrides

`Config.update_from_env(environ=None)` applies variables whose names start with `MDBOOK_`. It reads `os.environ` by default. In the rest of each variable name:

- letters are lowercased;
- a double underscore separates nested keys;
- a single underscore becomes a dash.

For example, `MDBOOK_BOOK__TITLE="New title"` replaces the book's title. Use `parse_env(name)` to see which key a variable maps to.

Each value is parsed as JSON first. If that fails, the value is used as a plain string. Null values are ignored. A JSON object given for `book` or `build` as a whole sets each of its fields in turn.

### Text direction

`BookConfig.realized_text_direction()` returns the direction set in `text-direction`. If none is set, it works out the direction from the book's language:

```python
from mdtome.settings import BookConfig, TextDirection

book = BookConfig(language="ar")
assert book.realized_text_direction() is TextDirection.RIGHT_TO_LEFT
```

## Preprocessing

`mdtome.preprocess` defines the `Preprocessor` base class, with the methods `name`, `run` and `supports_renderer`. It also defines `PreprocessorContext`, which holds:

- the book root;
- the `Config`;
- the renderer name;
- the version string.

A book is handled in its JSON tree form.

### Include helpers (`mdtome.linkparse`, `mdtome.links`)

`find_links(text)` yields a `Link` for each helper it recognises. Each `Link` has its character offsets, its raw text and its parsed type. The helpers are:

- `{{#include file}}` and `{{#rustdoc_include file}}`. Both accept an optional line range (`file:5`, `file:5:10`, `file:5:`, `file::10`) or an anchor name (`file:anchor`).
- `{{#playground file attrs...}}`. The older name `{{#playpen ...}}` is also accepted.
- `{{#title ...}}`.
- A backslash in front of a helper (`\{{#...}}`) escapes it.

```python
from mdtome.linkparse import find_links

for link in find_links("See {{#include code.rs:3:7}} here"):
    print(link.start_index, link.end_index, link.link_type)
```

`replace_all(text, base_dir, source, 0, title)` expands every helper in the text, with files read relative to `base_dir`. It returns the new text and the chapter title; a `{{#title}}` helper may have changed the title.

- Helpers inside included files are expanded too, up to `MAX_LINK_NESTED_DEPTH` levels.
- A helper whose file cannot be read is left in the text as written, and an error is logged.
- `render_link(link, base_dir)` renders a single helper.

### README to index (`mdtome.index`)

`is_readme_file(path)` tests whether a file stem is `readme`, in any letter case.

`IndexPreprocessor.rename_chapter_path(path, source_dir)` turns a README chapter path into `index.md`. It logs a warning if an `index.md` already exists next to it. `IndexPreprocessor.run(ctx, book)` applies this to every `{"Chapter": {...}}` entry in a book tree.

### External programs (`mdtome.cmd`)

`CmdPreprocessor(name, cmd)` runs an external program. The command string is split the way a shell would split it.

- `supports_renderer(renderer)` runs `<cmd> supports <renderer>`. Exit status 0 means the renderer is supported.
- `run(ctx, book)` writes `[context, book]` as JSON to the program's stdin, and returns the book the program prints as JSON on its stdout.
- A program that cannot be started, or that exits with a non-zero status, raises an error.

An external preprocessor can read its input with `CmdPreprocessor.parse_input(sys.stdin)`.

## What this package does not do

mdtome has no command-line tool. It does not:

- load a book from a directory;
- parse `SUMMARY.md`;
- render HTML or any other output.

It gives you the configuration and the preprocessing steps. You supply the book tree and the renderer yourself.