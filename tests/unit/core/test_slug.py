"""Unit tests for core/utils/slug.py"""

import pytest

from sophub.core.utils.slug import slugify


@pytest.mark.parametrize("text,expected", [
    ("Hello World", "hello-world"),
    ("my_file_name", "my-file-name"),
    ("  leading and trailing  ", "leading-and-trailing"),
    ("multiple---hyphens", "multiple-hyphens"),
    ("Special! Ch@rs#", "special-ch-rs"),
    ("Ünïcödé", "n-c-d"),
    ("", ""),
])
def test_slugify_basic(text, expected):
    """slugify lower-cases and collapses non [a-z0-9] runs to single hyphens."""
    assert slugify(text) == expected


def test_slugify_preserves_hyphens():
    """slugify keeps existing hyphens intact."""
    assert slugify("already-slugified") == "already-slugified"


def test_slugify_strips_leading_trailing_hyphens():
    """slugify strips leading/trailing hyphens from result."""
    assert slugify("!leading trailing?") == "leading-trailing"
