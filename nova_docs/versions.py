"""Version resolution for documentation pages.

A page belongs to a documentation version when one of its path segments is
that version's segment, e.g. `v4/resources/fields.html` belongs to "4.0" when
the segment template is `v{major}`. From that version the build derives the
`docsearch:version` meta tag and, for pages of older versions, the canonical
URL of the same page in the current version.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from typing import Any, NamedTuple, Optional

__all__ = (
    "AmbiguousVersionError",
    "InvalidPathError",
    "MetaTag",
    "VersionConfig",
    "VersionConfigError",
    "VersionError",
    "build_canonical_url",
    "build_metadata",
    "docsearch_version",
    "resolve_version",
    "rewrite_path",
)

logger = logging.getLogger(__name__)

DEFAULT_SEGMENT_TEMPLATE = "{version}"
DOCSEARCH_VERSION_META = "docsearch:version"


class VersionError(ValueError):
    """Base class for version resolution errors."""


class VersionConfigError(VersionError):
    """Raised when the configured versions, base prefix or template are unusable."""


class AmbiguousVersionError(VersionError):
    """Raised when a path contains the segments of more than one version."""

    def __init__(self, path: str, versions: Sequence[str]) -> None:
        self.path = path
        self.versions = tuple(versions)
        super().__init__(
            f"Path {path!r} matches more than one version: {', '.join(self.versions)}"
        )


class InvalidPathError(VersionError):
    """Raised for paths that cannot be resolved, such as the empty string."""


class MetaTag(NamedTuple):
    """A `<meta name=... content=...>` pair attached to a rendered page."""

    name: str
    content: str


def docsearch_version(version: str) -> str:
    """Format a version label the way the search index facets on it ("4.0" -> "4.0.0")."""
    return f"{version}.0"


def _segment(version: str, template: str) -> str:
    major, _, minor = version.partition(".")
    try:
        segment = template.format(version=version, major=major, minor=minor)
    except (KeyError, IndexError, AttributeError, ValueError) as e:
        raise VersionConfigError(f"Invalid segment template {template!r}: {e}") from None
    if not segment or "/" in segment:
        raise VersionConfigError(
            f"Version {version!r} produces an invalid path segment {segment!r}"
        )
    return segment


def _split_suffix(path: str) -> tuple[str, str]:
    if not isinstance(path, str) or not path:
        raise InvalidPathError("path must be a non-empty string")
    # query and fragment never carry the version
    end = min((i for i in (path.find("?"), path.find("#")) if i != -1), default=len(path))
    return path[:end], path[end:]


def _split(path: str) -> list[str]:
    return _split_suffix(path)[0].split("/")


def _matches(
    path: str, known_versions: Sequence[str], segment_template: str
) -> list[tuple[str, str]]:
    segments = set(_split(path))
    return [
        (version, segment)
        for version in dict.fromkeys(known_versions)
        if (segment := _segment(version, segment_template)) in segments
    ]


def _resolve(
    path: str,
    known_versions: Sequence[str],
    segment_template: str,
    strict: bool,
) -> Optional[tuple[str, str]]:
    matches = _matches(path, known_versions, segment_template)
    if not matches:
        return None
    if len(matches) > 1:
        versions = [version for version, _ in matches]
        if strict:
            raise AmbiguousVersionError(path, versions)
        logger.warning(
            "Path %r matches versions %s; using %s",
            path,
            ", ".join(versions),
            versions[0],
        )
    return matches[0]


def resolve_version(
    path: str,
    known_versions: Sequence[str],
    *,
    segment_template: str = DEFAULT_SEGMENT_TEMPLATE,
    strict: bool = True,
) -> Optional[str]:
    """Return the version whose segment appears in `path`, or None.

    Segments are compared whole, so "1.0" does not match "21.0" or "v1.0x".
    When the segments of several versions appear, `AmbiguousVersionError` is
    raised, unless `strict` is False, in which case the version listed first
    in `known_versions` wins.

    Example:

        >>> resolve_version("2.0/resources/fields", ["1.0", "2.0", "3.0"])
        '2.0'
        >>> resolve_version("installation", ["1.0", "2.0", "3.0"]) is None
        True
    """
    match = _resolve(path, known_versions, segment_template, strict)
    return match[0] if match else None


def build_metadata(
    path: str,
    known_versions: Sequence[str],
    *,
    segment_template: str = DEFAULT_SEGMENT_TEMPLATE,
    strict: bool = True,
) -> list[MetaTag]:
    """Return the meta tags for the page at `path`.

    Versioned pages get a single `docsearch:version` tag, unversioned pages
    none.
    """
    version = resolve_version(
        path, known_versions, segment_template=segment_template, strict=strict
    )
    if version is None:
        return []
    return [MetaTag(DOCSEARCH_VERSION_META, docsearch_version(version))]


def rewrite_path(
    path: str,
    known_versions: Sequence[str],
    target_version: str,
    *,
    segment_template: str = DEFAULT_SEGMENT_TEMPLATE,
    strict: bool = True,
) -> Optional[str]:
    """Return `path` moved to `target_version`, or None if there is nothing to move.

    Only the first occurrence of the version segment is replaced. Paths that
    carry no version, or already carry `target_version`, return None.
    """
    if target_version not in known_versions:
        raise VersionConfigError(
            f"Version {target_version!r} is not one of {', '.join(known_versions)}"
        )
    match = _resolve(path, known_versions, segment_template, strict)
    if match is None or match[0] == target_version:
        return None
    _, segment = match
    head, suffix = _split_suffix(path)
    segments = head.split("/")
    segments[segments.index(segment)] = _segment(target_version, segment_template)
    return "/".join(segments) + suffix


def _join(base_prefix: str, path: str) -> str:
    prefix = base_prefix.rstrip("/")
    # only a whole leading segment counts as the prefix: "/docsite" is not under "/docs"
    if path == prefix or path.startswith(prefix + "/"):
        return path
    return prefix + "/" + path.lstrip("/")


def build_canonical_url(
    path: str,
    known_versions: Sequence[str],
    current_version: str,
    base_prefix: str,
    *,
    segment_template: str = DEFAULT_SEGMENT_TEMPLATE,
    strict: bool = True,
) -> Optional[str]:
    """Return the URL of the current version of the page at `path`.

    Returns None for pages already in `current_version` and for unversioned
    pages. The result is prefixed with `base_prefix`, which must not be empty.

    Example:

        >>> build_canonical_url(
        ...     "2.0/resources/fields", ["1.0", "2.0", "3.0", "4.0"], "4.0", "/docs/"
        ... )
        '/docs/4.0/resources/fields'
    """
    if not base_prefix:
        raise VersionConfigError("base_prefix must be a non-empty string")
    rewritten = rewrite_path(
        path,
        known_versions,
        current_version,
        segment_template=segment_template,
        strict=strict,
    )
    if rewritten is None:
        return None
    return _join(base_prefix, rewritten)


@dataclass(frozen=True)
class VersionConfig:
    """The documentation versions of one site build.

    `versions` is ordered oldest to newest; `current` defaults to the last
    entry.
    """

    versions: tuple[str, ...]
    current: str = ""
    base: str = "/"
    segment_template: str = DEFAULT_SEGMENT_TEMPLATE
    strict: bool = True
    segments: Mapping[str, str] = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        versions = tuple(self.versions)
        if not versions:
            raise VersionConfigError("At least one documentation version is required")
        for version in versions:
            if not isinstance(version, str) or not version or "/" in version:
                raise VersionConfigError(f"Invalid version label: {version!r}")
        duplicates = sorted({v for v in versions if versions.count(v) > 1})
        if duplicates:
            raise VersionConfigError(f"Duplicate version labels: {', '.join(duplicates)}")
        current = self.current or versions[-1]
        if current not in versions:
            raise VersionConfigError(
                f"Current version {current!r} is not one of {', '.join(versions)}"
            )
        if not self.base:
            raise VersionConfigError("base must be a non-empty string")
        segments = {v: _segment(v, self.segment_template) for v in versions}
        if len(set(segments.values())) != len(segments):
            raise VersionConfigError(
                f"Segment template {self.segment_template!r} maps several versions "
                "to the same path segment"
            )
        object.__setattr__(self, "versions", versions)
        object.__setattr__(self, "current", current)
        object.__setattr__(self, "segments", segments)

    @classmethod
    def from_mapping(
        cls, data: Mapping[str, Any], *, default_base: str = "/"
    ) -> VersionConfig:
        """Build a config from the `extra.versions` block of mkdocs.yml."""
        if not isinstance(data, Mapping):
            raise VersionConfigError(
                f"Expected a mapping of version settings, got {type(data).__name__}"
            )
        unknown = set(data) - {"list", "current", "base", "segment", "strict"}
        if unknown:
            raise VersionConfigError(
                f"Unknown version settings: {', '.join(sorted(unknown))}"
            )
        versions = data.get("list")
        if isinstance(versions, str) or not isinstance(versions, Sequence):
            raise VersionConfigError("'list' must be a list of version labels")
        return cls(
            versions=tuple(str(v) for v in versions),
            current=str(data.get("current") or ""),
            base=data.get("base") or default_base,
            segment_template=data.get("segment") or DEFAULT_SEGMENT_TEMPLATE,
            strict=bool(data.get("strict", True)),
        )

    def segment_for(self, version: str) -> str:
        return self.segments[version]

    def docsearch_version(self, version: Optional[str] = None) -> str:
        return docsearch_version(version or self.current)

    def resolve(self, path: str) -> Optional[str]:
        return resolve_version(
            path,
            self.versions,
            segment_template=self.segment_template,
            strict=self.strict,
        )

    def metadata(self, path: str) -> list[MetaTag]:
        return build_metadata(
            path,
            self.versions,
            segment_template=self.segment_template,
            strict=self.strict,
        )

    def rewrite(self, path: str, target: Optional[str] = None) -> Optional[str]:
        return rewrite_path(
            path,
            self.versions,
            target or self.current,
            segment_template=self.segment_template,
            strict=self.strict,
        )

    def canonical_url(self, path: str) -> Optional[str]:
        return build_canonical_url(
            path,
            self.versions,
            self.current,
            self.base,
            segment_template=self.segment_template,
            strict=self.strict,
        )
