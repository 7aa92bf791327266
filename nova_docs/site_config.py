"""Typed views over the `extra` block of mkdocs.yml.

Each setting group is parsed once per build by the `on_config` hook; parsing
errors surface as `SiteConfigError` before any page is rendered.
"""

from __future__ import annotations

import json
import logging
import os
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from typing import Any, Literal, NamedTuple, Optional

from nova_docs.versions import VersionConfig

logger = logging.getLogger(__name__)

SearchProvider = Literal["local", "algolia"]

ALGOLIA_API_KEY_ENV = "ALGOLIA_API_KEY"
CHAT_LOADER_SRC = "https://chat.cdn-plain.com/index.js"

CHAT_SCRIPT_TEMPLATE = """(function(d, script) {{
    script = d.createElement('script');
    script.async = false;
    script.onload = function () {{
        Plain.init({options});
    }};
    script.src = {src};
    d.getElementsByTagName('head')[0].appendChild(script);
{open_handler}}}(document));"""

OPEN_HANDLER_TEMPLATE = """
    var opener = d.querySelector({selector});
    if (opener) {{
        opener.onclick = function (e) {{
            if (typeof window.Plain !== 'undefined') {{
                e.preventDefault();
                Plain.open();
            }}
        }};
    }}
"""


class SiteConfigError(ValueError):
    """Raised when a setting in the `extra` block is malformed."""


class HeadTag(NamedTuple):
    """An element injected into the `<head>` of every page."""

    tag: str
    attrs: dict[str, str]


def parse_head(entries: Optional[Sequence[Any]]) -> list[HeadTag]:
    """Parse head entries written as `[tag, {attribute: value}]` pairs."""
    tags = []
    for entry in entries or ():
        if (
            isinstance(entry, (str, bytes))
            or not isinstance(entry, Sequence)
            or len(entry) != 2
            or not isinstance(entry[0], str)
            or not isinstance(entry[1], Mapping)
        ):
            raise SiteConfigError(
                f"Head entries must be [tag, {{attribute: value}}] pairs, got {entry!r}"
            )
        tag, attrs = entry
        tags.append(HeadTag(tag, {str(k): str(v) for k, v in attrs.items()}))
    return tags


def _json_for_script(value: Any) -> str:
    content = json.dumps(value, ensure_ascii=False)
    return (
        content.replace("</", "\\u003c/")
        .replace("<script", "\\u003cscript")
        .replace("<!--", "\\u003c!--")
    )


@dataclass(frozen=True)
class SearchSettings:
    provider: SearchProvider = "local"
    placeholder: str = "Search..."
    index_name: Optional[str] = None
    app_id: Optional[str] = None

    @classmethod
    def from_mapping(cls, data: Optional[Mapping[str, Any]]) -> SearchSettings:
        data = data or {}
        provider = data.get("provider", "local")
        if provider not in ("local", "algolia"):
            raise SiteConfigError(
                f"Unknown search provider {provider!r}, expected 'local' or 'algolia'"
            )
        settings = cls(
            provider=provider,
            placeholder=data.get("placeholder", cls.placeholder),
            index_name=data.get("index_name"),
            app_id=data.get("app_id"),
        )
        if provider == "algolia" and not (settings.index_name and settings.app_id):
            raise SiteConfigError("Algolia search requires 'index_name' and 'app_id'")
        return settings

    @property
    def api_key(self) -> Optional[str]:
        return os.environ.get(ALGOLIA_API_KEY_ENV)

    def facet_filters(self, config: VersionConfig) -> list[str]:
        """Restrict search results to the current version."""
        return [f"version:{config.docsearch_version()}"]

    def to_extra(self, config: VersionConfig) -> dict[str, Any]:
        """Return the search settings the theme templates read from `extra.search_settings`."""
        extra: dict[str, Any] = {
            "provider": self.provider,
            "placeholder": self.placeholder,
        }
        if self.provider == "algolia":
            if not self.api_key:
                logger.warning(
                    "%s is not set; Algolia search will not work", ALGOLIA_API_KEY_ENV
                )
            extra["algolia"] = {
                "index_name": self.index_name,
                "app_id": self.app_id,
                "api_key": self.api_key,
                "facet_filters": self.facet_filters(config),
            }
        return extra


@dataclass(frozen=True)
class ChatWidgetSettings:
    """Settings of the live-chat widget loaded on every page.

    `options` are passed to the widget's `init` call as they are, next to the
    app id. `open_selector` names a link that opens the chat instead of
    following its href once the widget is loaded.
    """

    app_id: str
    options: dict[str, Any] = field(default_factory=dict)
    open_selector: Optional[str] = None
    src: str = CHAT_LOADER_SRC

    @classmethod
    def from_mapping(
        cls, data: Optional[Mapping[str, Any]]
    ) -> Optional[ChatWidgetSettings]:
        if not data or not data.get("enabled", True):
            return None
        app_id = data.get("app_id")
        if not app_id:
            raise SiteConfigError("The chat widget requires an 'app_id'")
        options = data.get("options") or {}
        if not isinstance(options, Mapping):
            raise SiteConfigError("Chat widget 'options' must be a mapping")
        return cls(
            app_id=app_id,
            options=dict(options),
            open_selector=data.get("open_selector"),
            src=data.get("src", CHAT_LOADER_SRC),
        )

    def init_options(self) -> dict[str, Any]:
        return {"appId": self.app_id, **self.options}

    def render_script(self) -> str:
        """Render the inline script that loads and initializes the widget."""
        open_handler = ""
        if self.open_selector:
            open_handler = OPEN_HANDLER_TEMPLATE.format(
                selector=_json_for_script(self.open_selector)
            )
        return CHAT_SCRIPT_TEMPLATE.format(
            options=_json_for_script(self.init_options()),
            src=_json_for_script(self.src),
            open_handler=open_handler,
        )
