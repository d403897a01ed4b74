"""Tests for glob pattern matching and the parameter pattern operators."""

import pytest

from memsh.fs import InMemoryFs
from memsh.interpreter.patterns import (
    escape_glob,
    expand_pathname,
    has_glob_chars,
    pattern_matches,
    remove_prefix,
    remove_suffix,
    replace_pattern,
)


class TestPatternMatches:
    @pytest.mark.parametrize(
        "value,pattern,expected",
        [
            ("file.txt", "*.txt", True),
            ("file.txt", "*.md", False),
            ("ab", "a?", True),
            ("abc", "a?", False),
            ("a1", "a[0-9]", True),
            ("ax", "a[!0-9]", True),
            ("a5", "a[!0-9]", False),
            ("7", "[[:digit:]]", True),
            ("Q", "[[:lower:]]", False),
            ("*", "\\*", True),
            ("x", "\\*", False),
            ("a[b", "a[b", True),
            ("line\nbreak", "line*", True),
        ],
    )
    def test_matches(self, value, pattern, expected):
        assert pattern_matches(value, pattern) is expected

    def test_escape_glob_is_literal(self):
        assert pattern_matches("a*b?", escape_glob("a*b?"))
        assert not pattern_matches("axbx", escape_glob("a*b?"))

    def test_has_glob_chars(self):
        assert has_glob_chars("*.py")
        assert has_glob_chars("a[bc]")
        assert not has_glob_chars("plain")
        assert not has_glob_chars("\\*")


class TestAffixRemoval:
    def test_shortest_prefix(self):
        assert remove_prefix("a/b/c", "*/", greedy=False) == "b/c"

    def test_longest_prefix(self):
        assert remove_prefix("a/b/c", "*/", greedy=True) == "c"

    def test_shortest_suffix(self):
        assert remove_suffix("archive.tar.gz", ".*", greedy=False) == "archive.tar"

    def test_longest_suffix(self):
        assert remove_suffix("archive.tar.gz", ".*", greedy=True) == "archive"

    def test_no_match_unchanged(self):
        assert remove_prefix("abc", "x*", greedy=True) == "abc"


class TestReplacePattern:
    def test_first(self):
        assert replace_pattern("aaa", "a", "b", replace_all=False) == "baa"

    def test_all(self):
        assert replace_pattern("aaa", "a", "b", replace_all=True) == "bbb"

    def test_longest_match(self):
        assert replace_pattern("xabcabcx", "a*c", "-", replace_all=False) == "x-x"

    def test_anchored_start(self):
        assert replace_pattern("abab", "#ab", "X", replace_all=False) == "Xab"
        assert replace_pattern("zab", "#ab", "X", replace_all=False) == "zab"

    def test_anchored_end(self):
        assert replace_pattern("abab", "%ab", "X", replace_all=False) == "abX"

    def test_empty_pattern(self):
        assert replace_pattern("abc", "", "X", replace_all=True) == "abc"


class TestExpandPathname:
    def _fs(self) -> InMemoryFs:
        return InMemoryFs(
            initial_files={
                "/src/a.py": "",
                "/src/b.py": "",
                "/src/.hidden.py": "",
                "/src/pkg/c.py": "",
                "/src/notes.md": "",
            }
        )

    def test_absolute(self):
        assert expand_pathname(self._fs(), "/", "/src/*.py") == ["/src/a.py", "/src/b.py"]

    def test_relative_to_cwd(self):
        assert expand_pathname(self._fs(), "/src", "*.md") == ["notes.md"]

    def test_hidden_needs_dot(self):
        assert expand_pathname(self._fs(), "/src", ".*.py") == [".hidden.py"]

    def test_multiple_components(self):
        assert expand_pathname(self._fs(), "/", "/*/pkg/*.py") == ["/src/pkg/c.py"]

    def test_no_match(self):
        assert expand_pathname(self._fs(), "/", "/src/*.rs") == []
