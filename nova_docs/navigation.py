"""Sidebar and navigation trees of the documentation site.

The hosted versions share one section layout; `sidebar_for` roots it at a
version's path segment. Older versions live in archived branches and only
appear in the version menu.
"""

from __future__ import annotations

from collections.abc import Callable, Mapping, Sequence
from typing import Any, Optional, TypedDict

from nova_docs.versions import VersionConfig


class SidebarItem(TypedDict):
    text: str
    link: str


class SidebarGroup(TypedDict):
    text: str
    items: list[SidebarItem]


class VersionMenuItem(TypedDict, total=False):
    text: str
    link: str
    current: bool


# (section title, directory, [(page title, page slug)]); an empty slug is the
# section index page.
SIDEBAR_SECTIONS: list[tuple[str, str, list[tuple[str, str]]]] = [
    (
        "Getting Started",
        "",
        [
            ("Installation", "installation"),
            ("Release Notes", "releases"),
            ("Upgrade Guide", "upgrade"),
            ("Support & Bug Reports", "support"),
            ("Code of Conduct", "code-of-conduct"),
        ],
    ),
    (
        "Resources",
        "resources",
        [
            ("The Basics", ""),
            ("Fields", "fields"),
            ("Date Fields", "date-fields"),
            ("Repeater Fields", "repeater-fields"),
            ("Relationships", "relationships"),
            ("Validation", "validation"),
            ("Authorization", "authorization"),
        ],
    ),
    (
        "Search",
        "search",
        [
            ("The Basics", ""),
            ("Global Search", "global-search"),
            ("Scout Integration", "scout-integration"),
        ],
    ),
    (
        "Filters",
        "filters",
        [
            ("Defining Filters", "defining-filters"),
            ("Registering Filters", "registering-filters"),
        ],
    ),
    (
        "Lenses",
        "lenses",
        [
            ("Defining Lenses", "defining-lenses"),
            ("Registering Lenses", "registering-lenses"),
        ],
    ),
    (
        "Actions",
        "actions",
        [
            ("Defining Actions", "defining-actions"),
            ("Registering Actions", "registering-actions"),
        ],
    ),
    (
        "Metrics",
        "metrics",
        [
            ("Defining Metrics", "defining-metrics"),
            ("Registering Metrics", "registering-metrics"),
        ],
    ),
    (
        "Digging Deeper",
        "customization",
        [
            ("Dashboards", "dashboards"),
            ("Menus", "menus"),
            ("Notifications", "notifications"),
            ("Impersonation", "impersonation"),
            ("Tools", "tools"),
            ("Resource Tools", "resource-tools"),
            ("Cards", "cards"),
            ("Fields", "fields"),
            ("Filters", "filters"),
            ("CSS & JavaScript", "frontend"),
            ("Assets", "assets"),
            ("Localization", "localization"),
            ("Stubs", "stubs"),
        ],
    ),
]

NAV_LINKS: list[SidebarItem] = [
    {"text": "Home", "link": "https://bit.ly/3KppFiG"},
    {"text": "Purchase a License", "link": "https://bit.ly/3QlZywL"},
    {
        "text": "Video Tutorials",
        "link": "https://laracasts.com/series/laravel-nova-mastery-2023-edition",
    },
]

ARCHIVED_VERSIONS: dict[str, str] = {
    "3.0": "https://github.com/laravel/nova-docs/tree/3.x",
    "2.0": "https://github.com/laravel/nova-docs/tree/2.x",
    "1.0": "https://github.com/laravel/nova-docs/tree/1.x",
}


def _link(segment: str, directory: str, slug: str) -> str:
    parts = [segment, directory, slug]
    path = "/".join(p for p in parts if p)
    # section index pages are linked as directories
    return f"/{path}/" if not slug else f"/{path}.html"


def sidebar_for(segment: str) -> list[SidebarGroup]:
    """Return the sidebar tree of the version published under `segment`."""
    return [
        {
            "text": title,
            "items": [
                {"text": text, "link": _link(segment, directory, slug)}
                for text, slug in pages
            ],
        }
        for title, directory, pages in SIDEBAR_SECTIONS
    ]


def link_to_src(link: str) -> str:
    """Map a sidebar link to the markdown file it is built from.

    Args:
        link: Site-relative link such as `/v5/resources/` or
            `/v5/installation.html`.

    Returns:
        The source path relative to the docs directory, e.g.
        `v5/resources/index.md` or `v5/installation.md`.
    """
    path = link.lstrip("/")
    if not path or path.endswith("/"):
        return f"{path}index.md"
    if path.endswith(".html"):
        return path[: -len(".html")] + ".md"
    return path


def _nav_section(
    group: SidebarGroup, exists: Callable[[str], bool]
) -> list[dict[str, str]]:
    return [
        {item["text"]: src}
        for item in group["items"]
        if exists(src := link_to_src(item["link"]))
    ]


def to_mkdocs_nav(
    config: VersionConfig,
    links: Sequence[SidebarItem] = NAV_LINKS,
    exists: Optional[Callable[[str], bool]] = None,
) -> list[dict[str, Any]]:
    """Build the MkDocs `nav` setting: one top-level entry per version, newest first.

    Args:
        config: The documentation versions.
        links: External links appended after the versions.
        exists: Tells whether a source path is part of the build. Pages it
            rejects are left out, and so are sections and versions left
            without pages. By default every page is kept.
    """
    exists = exists or (lambda src: True)
    nav: list[dict[str, Any]] = []
    for version in reversed(config.versions):
        sections = []
        for group in sidebar_for(config.segment_for(version)):
            pages = _nav_section(group, exists)
            if pages:
                sections.append({group["text"]: pages})
        if sections:
            nav.append({f"v{version}": sections})
    nav.extend({item["text"]: item["link"]} for item in links)
    return nav


def version_menu(
    config: VersionConfig, archived: Mapping[str, str] = ARCHIVED_VERSIONS
) -> list[VersionMenuItem]:
    """Return the entries of the version switcher, newest first.

    Hosted versions link to their section of the site; archived versions link
    wherever `archived` points them.
    """
    base = config.base.rstrip("/")
    menu: list[VersionMenuItem] = []
    for version in reversed(config.versions):
        item: VersionMenuItem = {
            "text": f"v{version}",
            "link": f"{base}/{config.segment_for(version)}/",
        }
        if version == config.current:
            item["current"] = True
        menu.append(item)
    menu.extend(
        {"text": f"v{version}", "link": link}
        for version, link in archived.items()
        if version not in config.versions
    )
    return menu
