"""Remote loaders for the MTA:SA wiki: the function catalog and single pages."""

from __future__ import annotations

import re
import time
from typing import Callable, Iterable, Sequence
from urllib.parse import quote

import requests

from mtasa_docs.core.config import Settings
from mtasa_docs.core.errors import FetchFailed
from mtasa_docs.core.logging import get_logger
from mtasa_docs.core.metrics import FETCH_LATENCY
from mtasa_docs.ingest.parser import parse_documentation
from mtasa_docs.models.entities import FetchedPage, Item, ParsedDocument

logger = get_logger(__name__)

NameTransform = Callable[[str], str]
PageParser = Callable[[str, str, str], ParsedDocument]

FUNCTION_LIST_FILES = ("luafuncs.js", "mtafuncs.js")
_FUNCTION_ENTRY_RE = re.compile(r"mh\['([^']+)'\]\s*=\s*(\d+)")


def keep_name(name: str) -> str:
    return name


def capitalize_first(name: str) -> str:
    return name[:1].upper() + name[1:]


def lower_name(name: str) -> str:
    return name.lower()


DEFAULT_NAME_VARIANTS: tuple[NameTransform, ...] = (keep_name, capitalize_first, lower_name)


def name_variants(name: str, transforms: Iterable[NameTransform] = DEFAULT_NAME_VARIANTS) -> list[str]:
    """Apply ``transforms`` in order, dropping empty and repeated spellings."""
    variants: list[str] = []
    for transform in transforms:
        candidate = transform(name)
        if candidate and candidate not in variants:
            variants.append(candidate)
    return variants


def parse_function_list(script: str) -> list[Item]:
    """Parse ``mh['name'] = type`` assignments from a wiki function-list script."""
    return [
        Item.from_type_code(name, int(type_code))
        for name, type_code in _FUNCTION_ENTRY_RE.findall(script)
    ]


class WikiClient:
    """HTTP access to the wiki, one :class:`requests.Session` per client."""

    def __init__(
        self,
        base_url: str,
        function_list_base_url: str,
        session: requests.Session | None = None,
        timeout: float | None = None,
        transforms: Sequence[NameTransform] = DEFAULT_NAME_VARIANTS,
        parser: PageParser = parse_documentation,
    ) -> None:
        self.base_url = base_url if base_url.endswith("/") else f"{base_url}/"
        self.function_list_base_url = (
            function_list_base_url if function_list_base_url.endswith("/") else f"{function_list_base_url}/"
        )
        self.session = session or requests.Session()
        self.timeout = timeout
        self.transforms = tuple(transforms)
        self.parser = parser

    @classmethod
    def from_settings(cls, settings: Settings, session: requests.Session | None = None) -> "WikiClient":
        return cls(
            base_url=settings.wiki_base_url,
            function_list_base_url=settings.function_list_base_url,
            session=session,
            timeout=settings.fetch_timeout,
        )

    def page_url(self, name: str) -> str:
        return f"{self.base_url}{quote(name, safe='')}"

    def load_catalog(self) -> list[Item]:
        """Download both function lists; later entries win on duplicate names."""
        merged: dict[str, Item] = {}
        for filename in FUNCTION_LIST_FILES:
            url = f"{self.function_list_base_url}{filename}"
            try:
                response = self.session.get(url, timeout=self.timeout)
                response.raise_for_status()
            except requests.RequestException as exc:
                raise FetchFailed(filename, str(exc)) from exc
            for item in parse_function_list(response.text):
                merged[item.id] = item
        logger.info("Parsed %s functions from wiki lists", len(merged))
        return list(merged.values())

    def fetch_and_parse(self, name: str) -> FetchedPage:
        """Fetch the first spelling variant the wiki resolves and parse it."""
        last_error = "no name variants to try"
        started = time.perf_counter()
        try:
            for variant in name_variants(name, self.transforms):
                url = self.page_url(variant)
                try:
                    response = self.session.get(url, timeout=self.timeout)
                except requests.RequestException as exc:
                    last_error = f"{url}: {exc}"
                    logger.debug("Request for %s failed: %s", url, exc)
                    continue
                if not response.ok:
                    last_error = f"{url}: HTTP {response.status_code}"
                    logger.debug("Wiki returned HTTP %s for %s", response.status_code, url)
                    continue
                resolved_url = response.url or url
                html = response.text
                try:
                    parsed = self.parser(html, name, resolved_url)
                except Exception as exc:  # parser bugs count as a failed variant
                    last_error = f"{resolved_url}: parse error: {exc}"
                    logger.warning("Could not parse %s: %s", resolved_url, exc)
                    continue
                return FetchedPage(parsed=parsed, raw_html=html, url=resolved_url)
        finally:
            FETCH_LATENCY.observe(time.perf_counter() - started)
        raise FetchFailed(name, last_error)

    def close(self) -> None:
        self.session.close()


__all__ = [
    "WikiClient",
    "NameTransform",
    "DEFAULT_NAME_VARIANTS",
    "name_variants",
    "parse_function_list",
    "keep_name",
    "capitalize_first",
    "lower_name",
]
