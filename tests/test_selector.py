"""Tests for glob expansion and candidate selection."""

import os

import pytest

from treecommit._glob import expand_glob, is_valid_pattern
from treecommit.selector import parse_patterns, regular_files, select

from conftest import write_files


@pytest.fixture
def tree(work):
    """Workspace with a small nested layout.

    Tree:
        a.txt, b.md, secret.txt, .env,
        src/main.py, src/util.py, src/sub/deep.txt,
        docs/guide.md
    """
    write_files(work, {
        "a.txt": b"a",
        "b.md": b"b",
        "secret.txt": b"s",
        ".env": b"e",
        "src/main.py": b"m",
        "src/util.py": b"u",
        "src/sub/deep.txt": b"d",
        "docs/guide.md": b"g",
    })
    return work


class TestExpandGlob:
    def test_star_stays_in_directory(self, tree):
        assert expand_glob("*.txt", tree) == ["a.txt", "secret.txt"]

    def test_nested_segment(self, tree):
        assert expand_glob("src/*.py", tree) == ["src/main.py", "src/util.py"]

    def test_double_star(self, tree):
        assert expand_glob("**/*.txt", tree) == ["a.txt", "secret.txt", "src/sub/deep.txt"]

    def test_double_star_alone_matches_everything(self, tree):
        found = expand_glob("**", tree)
        assert "src/sub/deep.txt" in found
        assert "src" in found
        assert ".env" in found

    def test_dotfiles_match(self, tree):
        assert ".env" in expand_glob("*", tree)

    def test_question_and_class(self, tree):
        assert expand_glob("?.md", tree) == ["b.md"]
        assert expand_glob("[ab].*", tree) == ["a.txt", "b.md"]
        assert expand_glob("[!ab]*.txt", tree) == ["secret.txt"]

    def test_literal_path(self, tree):
        assert expand_glob("docs/guide.md", tree) == ["docs/guide.md"]
        assert expand_glob("docs/missing.md", tree) == []

    @pytest.mark.skipif(os.sep != "/", reason="backslash is a separator on Windows")
    def test_backslash_is_literal(self, tree):
        write_files(tree, {"x\\y.txt": b"x"})
        assert expand_glob("x\\y.txt", tree) == ["x\\y.txt"]
        assert expand_glob("src\\*.py", tree) == []

    def test_no_match(self, tree):
        assert expand_glob("*.rs", tree) == []

    def test_absolute_pattern_relative_result(self, tree):
        assert expand_glob(str(tree / "src" / "*.py"), tree) == ["src/main.py", "src/util.py"]

    def test_unreadable_directory_skipped(self, tree):
        assert expand_glob("nowhere/*", tree) == []


class TestPatternParsing:
    @pytest.mark.parametrize("pattern", ["*.txt", "**/*.py", "src/[ab]*", "a/**", "[!x]y"])
    def test_valid(self, pattern):
        assert is_valid_pattern(pattern)

    @pytest.mark.parametrize("pattern", ["", "   ", "src/[ab", "a**", "**b/c", "***"])
    def test_invalid(self, pattern):
        assert not is_valid_pattern(pattern)

    def test_parse_drops_invalid_and_blank(self):
        assert parse_patterns(["*.txt", "", "[oops", "  docs/**  "]) == ("*.txt", "docs/**")

    def test_parse_splits_multiline_values(self):
        assert parse_patterns(["*.txt\n*.md\n\n"]) == ("*.txt", "*.md")

    def test_parse_none(self):
        assert parse_patterns(None) is None


class TestSelect:
    def test_include_minus_exclude(self, work):
        write_files(work, {"a.txt": b"a", "secret.txt": b"s", "b.md": b"b"})
        assert select(["*.txt"], ["secret.txt"], work) == {"a.txt"}

    def test_no_include_is_empty(self, tree):
        assert select(None, ["*.md"], tree) == set()
        assert select([], None, tree) == set()

    def test_unchanged_pruned(self, tree):
        assert select(["*.txt"], None, tree, unchanged={"a.txt"}) == {"secret.txt"}

    def test_duplicates_collapse(self, tree):
        assert select(["*.txt", "a.*", "a.txt"], None, tree) == {"a.txt", "secret.txt"}

    def test_exclude_not_selected_is_noop(self, tree):
        assert select(["*.md"], ["*.txt", "missing/*"], tree) == {"b.md"}

    def test_exclude_applies_after_all_includes(self, tree):
        assert select(["src/*.py", "**/*.py"], ["src/util.py"], tree) == {"src/main.py"}


class TestRegularFiles:
    def test_drops_directories(self, tree):
        assert regular_files({"src", "a.txt", "src/sub"}, tree) == ["a.txt"]

    def test_drops_symlinks(self, tree):
        os.symlink("a.txt", tree / "link.txt")
        assert regular_files({"a.txt", "link.txt"}, tree) == ["a.txt"]

    def test_keeps_vanished_paths(self, tree):
        assert regular_files({"gone.txt", "b.md"}, tree) == ["b.md", "gone.txt"]
