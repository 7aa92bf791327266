"""Build-time glue for the versioned Nova documentation site."""

from nova_docs.versions import (
    AmbiguousVersionError,
    InvalidPathError,
    MetaTag,
    VersionConfig,
    VersionConfigError,
    VersionError,
    build_canonical_url,
    build_metadata,
    resolve_version,
    rewrite_path,
)

__all__ = (
    "AmbiguousVersionError",
    "InvalidPathError",
    "MetaTag",
    "VersionConfig",
    "VersionConfigError",
    "VersionError",
    "build_canonical_url",
    "build_metadata",
    "resolve_version",
    "rewrite_path",
)
