"""Tests for the glob matcher."""

import pytest

from multiblob import matching
from multiblob.errors import InvalidUri
from multiblob.matching import glob_match


@pytest.mark.parametrize(
    "name, pattern, expected",
    [
        ("a.txt", "*.txt", True),
        ("dir/a.txt", "*.txt", False),
        ("dir/a.txt", "dir/*.txt", True),
        ("a/b/x.txt", "**/x.txt", True),
        ("x.txt", "**/x.txt", True),
        ("a/b/x.txt", "a/**", True),
        ("part-03.csv", "part-0[0-5].csv", True),
        ("part-07.csv", "part-0[0-5].csv", False),
        ("cb", "[!a]b", True),
        ("ab", "[!a]b", False),
        ("cb", "[^a]b", True),
        ("a/", "a[!x]", False),
        ("a*b", "a\\*b", True),
        ("axb", "a\\*b", False),
        ("a1", "a?", True),
        ("a/", "a?", False),
        ("[abc", "[abc", True),
        ("]", "[]]", True),
        ("part-1.csv.bak", "part-*.csv", False),
        ("m", "[z-a]", False),
        ("m", "[!z-a]", True),
        ("m", "[z-ak-n]", True),
        ("-", "[a-]", True),
        ("]", "[\\]]", True),
    ],
)
def test_glob_match(name, pattern, expected):
    assert glob_match(name, pattern) is expected


def test_uncompilable_pattern_is_invalid_uri(monkeypatch):
    monkeypatch.setattr(matching, "translate", lambda pattern: "(")
    with pytest.raises(InvalidUri):
        glob_match("x", "unbalanced-pattern-for-compile")
