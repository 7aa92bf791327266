"""mkdocs hooks for versioned documentation pages.

Lifecycle events: https://www.mkdocs.org/dev-guide/plugins/#events

- `on_config` parses the `extra` settings and publishes the version menu and
  search settings to the theme templates.
- `on_files` installs the generated nav, limited to pages that have sources.
- `on_page_markdown` derives each page's version metadata and canonical URL.
- `on_post_page` writes head tags, metadata, canonical link and the chat
  widget into the rendered HTML.
"""

import logging
import os
from typing import NamedTuple, Optional

from bs4 import BeautifulSoup
from mkdocs.config.defaults import MkDocsConfig
from mkdocs.exceptions import PluginError
from mkdocs.structure.files import Files
from mkdocs.structure.pages import Page

from nova_docs.navigation import to_mkdocs_nav, version_menu
from nova_docs.site_config import (
    ChatWidgetSettings,
    HeadTag,
    SearchSettings,
    SiteConfigError,
    parse_head,
)
from nova_docs.versions import AmbiguousVersionError, VersionConfig, VersionError

logger = logging.getLogger(f"mkdocs.plugins.{__name__}")
DISABLED = os.getenv("DISABLE_VERSION_META") in ("1", "true", "True")

SETTINGS_KEY = "docs_settings"


class DocsSettings(NamedTuple):
    versions: VersionConfig
    head: list[HeadTag]
    search: SearchSettings
    chat: Optional[ChatWidgetSettings]
    # mkdocs.yml defines no nav of its own
    generate_nav: bool = False


def _settings(config: MkDocsConfig) -> DocsSettings:
    try:
        return config["extra"][SETTINGS_KEY]
    except KeyError:
        raise PluginError(
            "Documentation settings are missing; on_config has not run"
        ) from None


def on_config(config: MkDocsConfig) -> MkDocsConfig:
    extra = config["extra"]
    try:
        versions = VersionConfig.from_mapping(
            extra.get("versions") or {}, default_base=config.get("site_url") or "/"
        )
        settings = DocsSettings(
            versions=versions,
            head=parse_head(extra.get("head")),
            search=SearchSettings.from_mapping(extra.get("search")),
            chat=ChatWidgetSettings.from_mapping(extra.get("chat")),
            generate_nav=not config.get("nav"),
        )
    except (VersionError, SiteConfigError) as e:
        raise PluginError(f"Invalid documentation settings: {e}") from e

    logger.info(
        "Documentation versions: %s (current: %s)",
        ", ".join(versions.versions),
        versions.current,
    )
    extra[SETTINGS_KEY] = settings
    extra["version_menu"] = version_menu(versions)
    extra["search_settings"] = settings.search.to_extra(versions)
    return config


def on_files(files: Files, config: MkDocsConfig) -> Files:
    settings = _settings(config)
    if not settings.generate_nav:
        return files

    missing = []

    def exists(src_uri: str) -> bool:
        if files.get_file_from_path(src_uri) is None:
            missing.append(src_uri)
            return False
        return True

    config["nav"] = to_mkdocs_nav(settings.versions, exists=exists)
    if missing:
        logger.info(
            "Left %d sidebar pages without sources out of the nav", len(missing)
        )
        logger.debug("Pages without sources: %s", ", ".join(missing))
    return files


def on_page_markdown(
    markdown: str, page: Page, config: MkDocsConfig, files: Files
) -> str:
    if DISABLED:
        return markdown

    versions = _settings(config).versions
    src_uri = page.file.src_uri
    try:
        version = versions.resolve(src_uri)
        meta = versions.metadata(src_uri)
        target = versions.rewrite(src_uri)
    except AmbiguousVersionError as e:
        # the page keeps rendering, just without version metadata
        logger.warning("Skipping version metadata for %s: %s", src_uri, e)
        return markdown

    page.meta["version"] = version
    page.meta["meta"] = meta

    canonical_url = None
    if target is not None:
        if files.get_file_from_path(target) is None:
            logger.info(
                "No %s counterpart for %s; not adding a canonical link",
                versions.current,
                src_uri,
            )
        elif page.url:
            canonical_url = versions.canonical_url(page.url)
    page.meta["canonical_url"] = canonical_url
    return markdown


def _inject_head(soup: BeautifulSoup, settings: DocsSettings, page: Page) -> None:
    head = soup.head
    for tag in settings.head:
        head.append(soup.new_tag(tag.tag, attrs=dict(tag.attrs)))

    for name, content in page.meta.get("meta") or ():
        head.append(soup.new_tag("meta", attrs={"name": name, "content": content}))

    canonical_url = page.meta.get("canonical_url")
    if canonical_url:
        link = head.find("link", rel="canonical")
        if link is None:
            link = soup.new_tag("link", attrs={"rel": "canonical"})
            head.append(link)
        link["href"] = canonical_url


def _inject_chat(soup: BeautifulSoup, chat: ChatWidgetSettings) -> None:
    script = soup.new_tag("script")
    script.string = chat.render_script()
    soup.body.append(script)


def on_post_page(output: str, page: Page, config: MkDocsConfig) -> str:
    """Write the page's head tags, version metadata and chat widget into the HTML.

    Args:
        output: The HTML output of the page.
        page: The page instance.
        config: The MkDocs configuration object.

    Returns:
        The modified HTML output.
    """
    settings = _settings(config)
    soup = BeautifulSoup(output, "html.parser")
    if soup.head is None:
        logger.warning("No <head> in %s; leaving the page untouched", page.file.src_uri)
        return output

    _inject_head(soup, settings, page)
    if settings.chat is not None and soup.body is not None:
        _inject_chat(soup, settings.chat)
    return str(soup)
