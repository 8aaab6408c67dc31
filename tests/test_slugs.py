"""Unit tests for preview_host/slugs.py."""

import sys
from pathlib import Path

import pytest

# Add project root to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from preview_host.errors import AllocationExhaustedError
from preview_host.router import validate_slug
from preview_host.slugs import (
    MAX_SLUG_ATTEMPTS,
    SLUG_PATTERN,
    WORDS,
    SlugAllocator,
    generate_slug,
)


def sequence(*slugs):
    """Generator stand-in returning the given slugs in order."""
    it = iter(slugs)
    return lambda: next(it)


class TestWordList:
    """Sanity checks on the embedded vocabulary."""

    def test_words_are_lowercase_alphanumeric(self):
        for word in WORDS:
            assert word.isascii() and word.isalnum() and word == word.lower(), word

    def test_words_are_unique(self):
        assert len(set(WORDS)) == len(WORDS)


class TestGenerateSlug:
    """Tests for generate_slug."""

    def test_three_hyphenated_words(self):
        for _ in range(50):
            slug = generate_slug()
            assert SLUG_PATTERN.match(slug), slug
            assert all(part in WORDS for part in slug.split("-"))

    def test_generated_slugs_pass_router_validation(self):
        for _ in range(50):
            assert validate_slug(generate_slug())

    def test_custom_vocabulary(self):
        assert generate_slug(words=["x"], count=2) == "x-x"


class TestSlugAllocator:
    """Tests for SlugAllocator.allocate."""

    def test_reserves_empty_directory(self, tmp_path):
        allocator = SlugAllocator(tmp_path, generate=sequence("river-stone-echo"))

        slug, site_dir = allocator.allocate()

        assert slug == "river-stone-echo"
        assert site_dir == tmp_path / "river-stone-echo"
        assert site_dir.is_dir()
        assert list(site_dir.iterdir()) == []

    def test_retries_on_collision(self, tmp_path):
        """An existing directory is never reused; a fresh slug is drawn."""
        existing = tmp_path / "taken-name-here"
        existing.mkdir()
        (existing / "index.html").write_text("original")

        allocator = SlugAllocator(tmp_path, generate=sequence("taken-name-here", "fresh-name-here"))
        slug, site_dir = allocator.allocate()

        assert slug == "fresh-name-here"
        assert (existing / "index.html").read_text() == "original"

    def test_back_to_back_allocations_are_distinct(self, tmp_path):
        allocator = SlugAllocator(tmp_path, generate=sequence("a-b-c", "a-b-c", "d-e-f"))

        first, _ = allocator.allocate()
        second, _ = allocator.allocate()

        assert first == "a-b-c"
        assert second == "d-e-f"

    def test_exhaustion_after_max_attempts(self, tmp_path):
        (tmp_path / "a-b-c").mkdir()
        calls = []

        def always_taken():
            calls.append(1)
            return "a-b-c"

        allocator = SlugAllocator(tmp_path, generate=always_taken)
        with pytest.raises(AllocationExhaustedError):
            allocator.allocate()

        assert len(calls) == MAX_SLUG_ATTEMPTS

    def test_custom_attempt_budget(self, tmp_path):
        (tmp_path / "a-b-c").mkdir()
        allocator = SlugAllocator(tmp_path, generate=lambda: "a-b-c", max_attempts=2)
        with pytest.raises(AllocationExhaustedError):
            allocator.allocate()

    def test_missing_data_dir_is_not_created(self, tmp_path):
        """Creating the data directory is a startup concern."""
        allocator = SlugAllocator(tmp_path / "missing", generate=sequence("a-b-c"))
        with pytest.raises(FileNotFoundError):
            allocator.allocate()
