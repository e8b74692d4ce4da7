"""
Slug/path conversion for archive resources.

Slugs are the upstream, URL-facing identifiers (``cat/entry/chapter``);
paths are the canonical resource names exposed by the API
(``categories/cat/entries/entry/chapters/chapter``). Validity is decided
entirely by the patterns below, never by whether the resource exists.
"""

import posixpath
import re
from typing import Protocol

CATEGORY_COLLECTION = "categories"
ENTRY_COLLECTION = "entries"
CHAPTER_COLLECTION = "chapters"

RESOURCE_ID_PATTERN = r"[a-zA-Z0-9](?:[a-z0-9.-]{0,61}[a-z0-9])?"

_ID = f"({RESOURCE_ID_PATTERN})"

CATEGORY_PATH_PATTERN = f"{CATEGORY_COLLECTION}/{RESOURCE_ID_PATTERN}"
ENTRY_PATH_PATTERN = f"{CATEGORY_PATH_PATTERN}/{ENTRY_COLLECTION}/{RESOURCE_ID_PATTERN}"
CHAPTER_PATH_PATTERN = f"{ENTRY_PATH_PATTERN}/{CHAPTER_COLLECTION}/{RESOURCE_ID_PATTERN}"

_CATEGORY_PATH = re.compile(f"^{CATEGORY_COLLECTION}/{_ID}$")
_ENTRY_PATH = re.compile(f"^{CATEGORY_COLLECTION}/{_ID}/{ENTRY_COLLECTION}/{_ID}$")
_CHAPTER_PATH = re.compile(
    f"^{CATEGORY_COLLECTION}/{_ID}/{ENTRY_COLLECTION}/{_ID}/{CHAPTER_COLLECTION}/{_ID}$"
)

# Category and entry slugs are directories upstream, so a trailing slash is allowed.
_CATEGORY_SLUG = re.compile(f"^{_ID}/?$")
_ENTRY_SLUG = re.compile(f"^{_ID}/{_ID}/?$")
_CHAPTER_SLUG = re.compile(f"^{_ID}/{_ID}/{_ID}$")


class SlugError(ValueError):
    """Base error for slug/path conversion failures."""


class InvalidSlugError(SlugError):
    pass


class InvalidPathError(SlugError):
    pass


class HasPath(Protocol):
    path: str


def _convert(value: str, pattern: re.Pattern, fmt: str, error: type[SlugError], kind: str) -> str:
    match = pattern.match(value)
    if not match:
        raise error(f"invalid {kind}: {kind} {value!r} does not match pattern `{pattern.pattern}`")
    return fmt.format(*match.groups())


def to_category_path(slug: str) -> str:
    """Convert a category slug into a path."""
    return _convert(slug, _CATEGORY_SLUG, CATEGORY_COLLECTION + "/{}", InvalidSlugError, "slug")


def to_entry_path(slug: str) -> str:
    """Convert an entry slug into a path."""
    return _convert(
        slug, _ENTRY_SLUG,
        CATEGORY_COLLECTION + "/{}/" + ENTRY_COLLECTION + "/{}",
        InvalidSlugError, "slug",
    )


def to_chapter_path(slug: str) -> str:
    """Convert a chapter slug into a path."""
    return _convert(
        slug, _CHAPTER_SLUG,
        CATEGORY_COLLECTION + "/{}/" + ENTRY_COLLECTION + "/{}/" + CHAPTER_COLLECTION + "/{}",
        InvalidSlugError, "slug",
    )


def from_category_path(path: str) -> str:
    """Convert a category path into a slug."""
    return _convert(path, _CATEGORY_PATH, "{}", InvalidPathError, "path")


def from_entry_path(path: str) -> str:
    """Convert an entry path into a slug."""
    return _convert(path, _ENTRY_PATH, "{}/{}", InvalidPathError, "path")


def from_chapter_path(path: str) -> str:
    """Convert a chapter path into a slug."""
    return _convert(path, _CHAPTER_PATH, "{}/{}/{}", InvalidPathError, "path")


def from_resource(resource: HasPath) -> str:
    """Resolve the slug for a category, entry or chapter."""
    # Local import: schemas depends on the patterns defined in this module.
    from .schemas import Category, Chapter, Entry

    if isinstance(resource, Category):
        return from_category_path(resource.path)
    if isinstance(resource, Entry):
        return from_entry_path(resource.path)
    if isinstance(resource, Chapter):
        return from_chapter_path(resource.path)
    raise TypeError(f"unexpected type {type(resource).__name__}")


def _parent(path: str, segments: int = 2) -> str:
    for _ in range(segments):
        path = posixpath.dirname(path)
    return path


def entry_parent(path: str) -> str:
    """Convert an entry path into its parent category's path."""
    return _parent(path)


def chapter_parent(path: str) -> str:
    """Convert a chapter path into its parent entry's path."""
    return _parent(path)


def to_title(slug: str) -> str:
    """
    Approximate a display title from a slug.

    Takes the last segment, drops a ``.html`` suffix, turns hyphens into
    spaces and upper-cases the first letter of each word (leaving the
    rest of each word untouched).
    """
    name = posixpath.basename(slug.rstrip("/"))
    name = name.removesuffix(".html").replace("-", " ")
    return " ".join(word[:1].upper() + word[1:] for word in name.split())
