"""Unit tests for version resolution, page metadata and canonical URLs."""

import logging

import pytest

from nova_docs.versions import (
    AmbiguousVersionError,
    InvalidPathError,
    MetaTag,
    VersionConfig,
    VersionConfigError,
    build_canonical_url,
    build_metadata,
    resolve_version,
    rewrite_path,
)

VERSIONS = ["1.0", "2.0", "3.0", "4.0"]


@pytest.mark.parametrize(
    "path, expected",
    [
        ("2.0/resources/fields", "2.0"),
        ("/docs/1.0/installation.html", "1.0"),
        ("4.0/", "4.0"),
        ("/docs/3.0/resources/#the-basics", "3.0"),
        ("3.0?page=2", "3.0"),
        ("installation", None),
        ("/docs/21.0/resources/fields", None),
        ("/docs/v1.0x/resources", None),
        ("/docs/resources/fields-2.0.html", None),
    ],
)
def test_resolve_version(path, expected) -> None:
    assert resolve_version(path, VERSIONS) == expected


def test_resolve_version_respects_segment_boundaries() -> None:
    assert resolve_version("/docs/21.0/resources/fields", ["1.0", "2.0"]) is None


def test_resolve_version_with_segment_template() -> None:
    assert resolve_version("v5/installation.md", ["4.0", "5.0"], segment_template="v{major}") == "5.0"
    # the bare label is not a segment under this template
    assert resolve_version("5.0/installation.md", ["4.0", "5.0"], segment_template="v{major}") is None


def test_resolve_version_repeated_segment_is_one_match() -> None:
    assert resolve_version("2.0/upgrade/2.0", VERSIONS) == "2.0"


def test_resolve_version_duplicate_known_versions_are_one_match() -> None:
    assert resolve_version("2.0/x", ["2.0", "2.0"]) == "2.0"
    assert build_canonical_url("2.0/x", ["2.0", "2.0", "4.0"], "4.0", "/docs") == "/docs/4.0/x"


def test_resolve_version_ambiguous_strict() -> None:
    with pytest.raises(AmbiguousVersionError) as exc_info:
        resolve_version("3.0/upgrade/from/2.0", VERSIONS)
    assert exc_info.value.versions == ("2.0", "3.0")
    assert exc_info.value.path == "3.0/upgrade/from/2.0"


def test_resolve_version_ambiguous_lenient(caplog) -> None:
    with caplog.at_level(logging.WARNING, logger="nova_docs.versions"):
        assert resolve_version("3.0/upgrade/from/2.0", VERSIONS, strict=False) == "2.0"
    assert "matches versions 2.0, 3.0" in caplog.text


def test_resolve_version_empty_path() -> None:
    with pytest.raises(InvalidPathError):
        resolve_version("", VERSIONS)


def test_build_metadata() -> None:
    assert build_metadata("2.0/resources/fields", VERSIONS) == [
        MetaTag("docsearch:version", "2.0.0")
    ]
    assert build_metadata("installation", VERSIONS) == []


def test_build_metadata_pairs_unpack() -> None:
    ((name, content),) = build_metadata("4.0/installation", VERSIONS)
    assert (name, content) == ("docsearch:version", "4.0.0")


def test_build_canonical_url() -> None:
    assert (
        build_canonical_url("2.0/resources/fields", VERSIONS, "4.0", "/docs/")
        == "/docs/4.0/resources/fields"
    )
    # already current
    assert build_canonical_url("4.0/resources/fields", VERSIONS, "4.0", "/docs/") is None
    # unversioned
    assert build_canonical_url("installation", VERSIONS, "4.0", "/docs/") is None


def test_build_canonical_url_joins_base_prefix() -> None:
    assert build_canonical_url("/1.0/installation", VERSIONS, "4.0", "/docs") == "/docs/4.0/installation"
    assert (
        build_canonical_url("1.0/installation", VERSIONS, "4.0", "https://example.com/docs/")
        == "https://example.com/docs/4.0/installation"
    )
    # a path that already carries the prefix is not prefixed twice
    assert (
        build_canonical_url("/docs/1.0/installation", VERSIONS, "4.0", "/docs/")
        == "/docs/4.0/installation"
    )


def test_build_canonical_url_prefix_matches_whole_segments() -> None:
    assert (
        build_canonical_url("/docsite/2.0/x", ["2.0", "4.0"], "4.0", "/docs")
        == "/docs/docsite/4.0/x"
    )
    assert build_canonical_url("/docs/2.0/x", ["2.0", "4.0"], "4.0", "/docs") == "/docs/4.0/x"
    assert build_canonical_url("/2.0/x", ["2.0", "4.0"], "4.0", "/") == "/4.0/x"


def test_build_canonical_url_replaces_first_occurrence_only() -> None:
    assert (
        build_canonical_url("2.0/upgrade/2.0", VERSIONS, "4.0", "/docs/")
        == "/docs/4.0/upgrade/2.0"
    )


def test_build_canonical_url_keeps_fragment() -> None:
    assert (
        build_canonical_url("2.0#fields", VERSIONS, "4.0", "/docs/")
        == "/docs/4.0#fields"
    )


def test_build_canonical_url_round_trip() -> None:
    canonical = build_canonical_url("2.0/resources/fields", VERSIONS, "4.0", "/docs/")
    assert resolve_version(canonical, VERSIONS) == "4.0"
    assert build_canonical_url(canonical, VERSIONS, "4.0", "/docs/") is None
    # every older version of the page agrees on the same canonical URL
    for version in ["1.0", "3.0"]:
        assert (
            build_canonical_url(f"{version}/resources/fields", VERSIONS, "4.0", "/docs/")
            == canonical
        )


def test_build_canonical_url_invalid_config() -> None:
    with pytest.raises(VersionConfigError):
        build_canonical_url("2.0/resources/fields", VERSIONS, "4.0", "")
    with pytest.raises(VersionConfigError):
        build_canonical_url("2.0/resources/fields", VERSIONS, "9.0", "/docs/")
    with pytest.raises(InvalidPathError):
        build_canonical_url("", VERSIONS, "4.0", "/docs/")


def test_rewrite_path() -> None:
    assert rewrite_path("v4/resources/fields.md", ["4.0", "5.0"], "5.0", segment_template="v{major}") == (
        "v5/resources/fields.md"
    )
    assert rewrite_path("v5/resources/fields.md", ["4.0", "5.0"], "4.0", segment_template="v{major}") == (
        "v4/resources/fields.md"
    )
    assert rewrite_path("index.md", ["4.0", "5.0"], "5.0") is None


def test_version_config_defaults() -> None:
    config = VersionConfig(versions=("1.0", "2.0", "3.0", "4.0"), base="/docs/")
    assert config.current == "4.0"
    assert config.segment_for("2.0") == "2.0"
    assert config.docsearch_version() == "4.0.0"
    assert config.resolve("2.0/resources/fields") == "2.0"
    assert config.metadata("2.0/resources/fields") == [MetaTag("docsearch:version", "2.0.0")]
    assert config.canonical_url("2.0/resources/fields") == "/docs/4.0/resources/fields"
    assert config.canonical_url("4.0/resources/fields") is None
    assert config.rewrite("4.0/resources/fields", "1.0") == "1.0/resources/fields"


def test_version_config_from_mapping() -> None:
    config = VersionConfig.from_mapping(
        {"list": ["4.0", "5.0"], "segment": "v{major}"},
        default_base="https://nova.laravel.com/docs/",
    )
    assert config.versions == ("4.0", "5.0")
    assert config.current == "5.0"
    assert config.base == "https://nova.laravel.com/docs/"
    assert config.segments == {"4.0": "v4", "5.0": "v5"}
    assert config.strict is True
    assert (
        config.canonical_url("v4/resources/fields.html")
        == "https://nova.laravel.com/docs/v5/resources/fields.html"
    )


@pytest.mark.parametrize(
    "data",
    [
        {},
        {"list": "5.0"},
        {"list": []},
        {"list": ["4.0", "4.0"]},
        {"list": ["4.0", "a/b"]},
        {"list": ["4.0", "5.0"], "current": "6.0"},
        {"list": ["4.0", "4.1"], "segment": "v{major}"},
        {"list": ["4.0"], "segment": "{patch}"},
        {"list": ["4.0"], "segment": "{0}"},
        {"list": ["4.0"], "segment": "{version.real}"},
        {"list": ["4.0"], "segment": "{version!z}"},
        {"list": ["4.0"], "segment": "v{"},
        {"list": ["4.0"], "segment": "{major:d}"},
        {"list": ["4.0"], "unknown": True},
    ],
)
def test_version_config_rejects_invalid_settings(data) -> None:
    with pytest.raises(VersionConfigError):
        VersionConfig.from_mapping(data)


def test_version_config_rejects_non_mapping() -> None:
    with pytest.raises(VersionConfigError):
        VersionConfig.from_mapping(["4.0", "5.0"])


def test_version_config_is_immutable() -> None:
    config = VersionConfig(versions=("4.0", "5.0"))
    with pytest.raises(AttributeError):
        config.current = "4.0"
