from __future__ import annotations

import pytest

from docassembler.ingest.globbing import glob_to_regex, is_selected, matches_any


@pytest.mark.parametrize(
    "pattern,path",
    [
        ("**", "README.md"),
        ("**", "a/b/c.md"),
        ("**/docs/**", "docs/README.md"),
        ("**/docs/**", "app1/docs/README.md"),
        ("**/docs/**", "subsystem1/app20/docs/images/x.png"),
        ("*.md", "README.md"),
        ("**/*.md", "README.md"),
        ("**/*.md", "a/b/README.md"),
        ("guide?.md", "guide1.md"),
        ("images/*", "images/keyboard.jpg"),
    ],
)
def test_glob_matches(pattern: str, path: str) -> None:
    assert glob_to_regex(pattern).match(path)


@pytest.mark.parametrize(
    "pattern,path",
    [
        ("*.md", "a/README.md"),
        ("**/docs/**", "app1/src/app1.cs"),
        ("**/docs/**", "mydocs/README.md"),
        ("guide?.md", "guide10.md"),
        ("images/*", "images/sub/keyboard.jpg"),
        ("**/*.md", "README.txt"),
    ],
)
def test_glob_rejects(pattern: str, path: str) -> None:
    assert not glob_to_regex(pattern).match(path)


def test_glob_escapes_regex_characters() -> None:
    assert glob_to_regex("a+b.md").match("a+b.md")
    assert not glob_to_regex("a+b.md").match("aab.md")


def test_is_selected_applies_excludes() -> None:
    assert is_selected("docs/README.md", ["**"], ["**/*.cs"])
    assert not is_selected("src/app.cs", ["**"], ["**/*.cs"])
    assert not is_selected("src/app.cs", ["**/*.md"])


def test_matches_any_with_no_patterns() -> None:
    assert not matches_any("README.md", [])
