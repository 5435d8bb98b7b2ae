"""Slug generation for per-item output paths."""

from __future__ import annotations

from typing import TYPE_CHECKING
from unicodedata import combining, normalize

from pymdownx.slugs import slugify as _md_slugify

if TYPE_CHECKING:
    from berlin.content.model import ParsedSource

# Used when neither the title nor the file name leaves any slug characters
DEFAULT_SLUG = "post"

# Pre-configured once; building a slugifier per call is wasteful.
_slugify_lower = _md_slugify(case="lower", separator="-")


def _fold_latin(text: str) -> str:
    """Replace accented letters by their ASCII base, keep other scripts as is."""
    folded: list[str] = []
    for char in text:
        base = "".join(c for c in normalize("NFKD", char) if not combining(c))
        folded.append(base if base.isascii() else char)
    return "".join(folded)


def slugify(text: str, default: str = DEFAULT_SLUG) -> str:
    """Convert *text* to a lowercase, hyphenated, URL-safe slug.

    Accented Latin letters lose their accents; letters of other scripts are
    kept.  Text with no letters or digits at all gives *default*.

    Examples:
        >>> slugify("My Post!")
        'my-post'
        >>> slugify("Café à Paris")
        'cafe-a-paris'
        >>> slugify("Привет мир")
        'привет-мир'
        >>> slugify("!!!")
        'post'

    """
    # One separator per run of whitespace
    slug = _slugify_lower(" ".join(_fold_latin(text).split()), sep="-")
    return slug.strip("-") or default


def source_slug(source: ParsedSource) -> str:
    """Slug for a source: its front-matter title, else the file's base name."""
    fm = source.front_matter
    slug = slugify(fm.title, default="") if fm is not None and fm.title else ""
    return slug or slugify(source.path.stem)
