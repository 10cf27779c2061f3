"""Internal dataclasses representing catalog and cache entities."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Literal, Mapping

Side = Literal["client", "server", "shared"]

SECTION_SEPARATOR = "\n---\n"


@dataclass(frozen=True, slots=True)
class TypeInfo:
    category: str
    side: Side


FUNCTION_TYPES: Mapping[int, TypeInfo] = {
    2: TypeInfo("Lua Keywords", "shared"),
    3: TypeInfo("Standard Lua Functions", "shared"),
    4: TypeInfo("Data Types/Classes", "shared"),
    5: TypeInfo("MTA:SA Shared Functions", "shared"),
    6: TypeInfo("Client Functions", "client"),
    7: TypeInfo("Server Functions", "server"),
    8: TypeInfo("Client Events", "client"),
    9: TypeInfo("Server Events", "server"),
}

UNKNOWN_TYPE = TypeInfo("Unknown", "shared")

CATEGORIES: tuple[str, ...] = (*(info.category for info in FUNCTION_TYPES.values()), UNKNOWN_TYPE.category)


@dataclass(frozen=True, slots=True)
class Item:
    """A catalog entry: one wiki function or event."""

    id: str
    type_code: int
    category: str
    side: Side

    @classmethod
    def from_type_code(cls, item_id: str, type_code: int) -> "Item":
        info = FUNCTION_TYPES.get(type_code, UNKNOWN_TYPE)
        return cls(id=item_id, type_code=type_code, category=info.category, side=info.side)


@dataclass(slots=True)
class Document:
    """Parsed wiki page for a catalog item, as stored in the cache."""

    id: str
    source_url: str
    description: str = ""
    syntax: str = ""
    parameters: str = ""
    returns: str = ""
    examples: str = ""
    related: str = ""
    full_text: str = ""
    embedding: list[float] | None = None
    deprecated: str | None = None
    fetched_at: int = 0

    @property
    def related_ids(self) -> list[str]:
        return [name.strip() for name in self.related.split(",") if name.strip()]

    @property
    def syntax_blocks(self) -> list[str]:
        return [part for part in self.syntax.split(SECTION_SEPARATOR) if part]

    @property
    def example_blocks(self) -> list[str]:
        return [part for part in self.examples.split(SECTION_SEPARATOR) if part]


@dataclass(slots=True)
class CacheEntry:
    """A cached document together with its freshness rule."""

    document: Document
    fetched_at: int

    def is_fresh(self, now: int, max_age_ms: int) -> bool:
        return now - self.fetched_at < max_age_ms


@dataclass(slots=True)
class CacheStats:
    count: int
    approx_size_bytes: int
    db_path: str
    max_age_ms: int


@dataclass(slots=True)
class ParsedDocument:
    """Fields extracted from a wiki page before embedding."""

    name: str
    url: str
    description: str = ""
    syntax: str = ""
    parameters: str = ""
    returns: str = ""
    examples: str = ""
    related: list[str] = field(default_factory=list)
    deprecated: str | None = None

    @property
    def full_text(self) -> str:
        return " ".join(
            [self.description, self.syntax, self.parameters, self.returns, self.examples]
        )

    @property
    def is_incomplete(self) -> bool:
        return not any([self.description, self.syntax, self.parameters, self.returns, self.examples])


@dataclass(slots=True)
class FetchedPage:
    """Result of a successful wiki fetch: parsed fields plus the raw page."""

    parsed: ParsedDocument
    raw_html: str
    url: str


__all__ = [
    "Side",
    "SECTION_SEPARATOR",
    "TypeInfo",
    "FUNCTION_TYPES",
    "CATEGORIES",
    "Item",
    "Document",
    "CacheEntry",
    "CacheStats",
    "ParsedDocument",
    "FetchedPage",
]
