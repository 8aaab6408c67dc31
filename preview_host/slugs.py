"""Random preview names and directory reservation.

A slug is three short English words joined by hyphens, e.g.
``river-stone-echo``. Slugs are not unique by construction, so the
allocator reserves each candidate by creating its directory and moves on
to a fresh candidate when the directory already exists.

Usage:
    allocator = SlugAllocator(config.data_dir)
    slug, site_dir = allocator.allocate()
"""

from __future__ import annotations

import logging
import re
import secrets
from collections.abc import Callable, Sequence
from pathlib import Path

from .errors import AllocationExhaustedError

_LOG = logging.getLogger(__name__)

# =============================================================================
# Word List
# =============================================================================

WORDS: tuple[str, ...] = (
    "acorn", "amber", "anchor", "apple", "arrow", "ash", "aspen", "atlas",
    "autumn", "badge", "bamboo", "basil", "bay", "beacon", "bear", "birch",
    "bison", "blaze", "bloom", "breeze", "brook", "cactus", "canyon", "cedar",
    "chalk", "cherry", "cinder", "citrus", "clay", "cliff", "clover", "cloud",
    "cobalt", "comet", "copper", "coral", "cove", "crane", "creek", "crest",
    "crow", "dawn", "delta", "dew", "dune", "dusk", "eagle", "echo",
    "ember", "falcon", "fern", "field", "finch", "fjord", "flame", "flint",
    "forest", "fox", "frost", "garnet", "glade", "glen", "granite", "grove",
    "harbor", "hawk", "hazel", "heath", "heron", "hill", "holly", "honey",
    "indigo", "iris", "island", "ivory", "ivy", "jade", "jasper", "juniper",
    "kelp", "kestrel", "lagoon", "lake", "lantern", "larch", "lark", "laurel",
    "lemon", "lily", "linen", "lotus", "lunar", "maple", "marble", "marsh",
    "meadow", "mesa", "mint", "mist", "moss", "moth", "nectar", "nova",
    "oak", "oasis", "ocean", "olive", "onyx", "orbit", "orchid", "otter",
    "owl", "palm", "pebble", "pepper", "pine", "plume", "pond", "poppy",
    "prairie", "quartz", "quill", "rain", "raven", "reed", "ridge", "river",
    "robin", "rose", "ruby", "saffron", "sage", "sand", "sapphire", "shadow",
    "shore", "sierra", "silver", "sky", "slate", "snow", "sparrow", "spruce",
    "star", "stone", "storm", "summit", "sun", "swan", "thistle", "thunder",
    "tide", "timber", "topaz", "trail", "tulip", "tundra", "valley", "velvet",
    "violet", "willow", "wind", "winter", "wren", "yarrow", "zephyr", "zinc",
)
"""Lowercase alphanumeric words slugs are built from."""

SLUG_WORD_COUNT: int = 3
"""Number of words in a generated slug."""

MAX_SLUG_ATTEMPTS: int = 10
"""How many candidates to try before giving up on an upload."""

SLUG_PATTERN = re.compile(r"^[a-z0-9]+(?:-[a-z0-9]+){2}$")
"""Shape of a generated slug (three lowercase tokens)."""


def generate_slug(words: Sequence[str] = WORDS, count: int = SLUG_WORD_COUNT) -> str:
    """Generate a random hyphen-joined slug.

    Args:
        words: Vocabulary to draw from.
        count: Number of words to join.

    Returns:
        A slug such as "river-stone-echo".
    """
    return "-".join(secrets.choice(words) for _ in range(count))


class SlugAllocator:
    """Reserve a fresh, unused preview directory under ``data_dir``.

    Attributes:
        data_dir: Parent directory of all previews (must already exist).
        generate: Callable returning a candidate slug.
        max_attempts: Candidates tried before AllocationExhaustedError.
    """

    def __init__(
        self,
        data_dir: Path,
        generate: Callable[[], str] = generate_slug,
        max_attempts: int = MAX_SLUG_ATTEMPTS,
    ) -> None:
        self.data_dir = data_dir
        self.generate = generate
        self.max_attempts = max_attempts

    def allocate(self) -> tuple[str, Path]:
        """Pick a slug and create its empty directory.

        ``mkdir`` without ``exist_ok`` is the reservation: it fails if another
        upload already owns the name, in which case a new slug is drawn.

        Returns:
            Tuple of (slug, reserved directory).

        Raises:
            AllocationExhaustedError: Every attempt collided.
        """
        for attempt in range(1, self.max_attempts + 1):
            slug = self.generate()
            site_dir = self.data_dir / slug
            try:
                site_dir.mkdir()
            except FileExistsError:
                _LOG.warning(
                    "Slug collision on %s (attempt %d/%d)", slug, attempt, self.max_attempts
                )
                continue
            _LOG.debug("Reserved %s after %d attempt(s)", site_dir, attempt)
            return slug, site_dir

        _LOG.error("Gave up allocating a slug after %d attempts", self.max_attempts)
        raise AllocationExhaustedError()
