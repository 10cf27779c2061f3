"""Static keyword expansion for the name-scoring fallback."""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path
from types import MappingProxyType
from typing import Any, Mapping

import yaml

AliasTable = Mapping[str, tuple[str, ...]]

BUNDLED_TABLE_PATH = Path(__file__).resolve().parent.parent / "data" / "keyword_aliases.yaml"


class KeywordExpander:
    """Broaden query words with hand-curated function-name prefixes."""

    def __init__(self, aliases: AliasTable) -> None:
        self._aliases = aliases

    @classmethod
    def from_path(cls, path: Path | None = None) -> "KeywordExpander":
        return cls(load_alias_table(path))

    @property
    def aliases(self) -> AliasTable:
        return self._aliases

    def expand(self, query: str) -> set[str]:
        words = query.lower().split()
        expanded = set(words)
        for word in words:
            expanded.update(self._aliases.get(word, ()))
        return expanded


def load_alias_table(path: Path | None = None) -> AliasTable:
    """Read an alias table; ``None`` selects the bundled one."""
    if path is None:
        return _bundled_alias_table()
    return _freeze(yaml.safe_load(path.expanduser().read_text(encoding="utf-8")) or {})


@lru_cache(maxsize=1)
def _bundled_alias_table() -> AliasTable:
    text = BUNDLED_TABLE_PATH.read_text(encoding="utf-8")
    return _freeze(yaml.safe_load(text) or {})


def _freeze(raw: Mapping[str, Any]) -> AliasTable:
    table: dict[str, tuple[str, ...]] = {}
    for key, values in raw.items():
        if isinstance(values, str):
            values = [values]
        table[str(key).lower()] = tuple(str(value).lower() for value in values or ())
    return MappingProxyType(table)


__all__ = ["KeywordExpander", "AliasTable", "load_alias_table"]
