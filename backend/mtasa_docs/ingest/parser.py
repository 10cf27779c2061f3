"""Field extraction from MTA:SA wiki pages."""

from __future__ import annotations

import re
from urllib.parse import unquote

from bs4 import BeautifulSoup, Tag

from mtasa_docs.models.entities import SECTION_SEPARATOR, ParsedDocument
from mtasa_docs.utils.text import normalize

DESCRIPTION_LIMIT = 1000
PARAMETERS_LIMIT = 2000
RETURNS_LIMIT = 500
MAX_SYNTAX_BLOCKS = 3
MIN_EXAMPLE_LENGTH = 21

_HEADING_TAGS = ["h1", "h2", "h3", "h4", "h5", "h6"]

_DEPRECATION_PATTERNS = (
    re.compile(r"You should use (?:predefined variable |the )?(\w+)(?: variable)? instead", re.I),
    re.compile(r"(?:deprecated|obsolete|no longer recommended)[^.]*?(?:use|replaced by|instead use) (\w+)", re.I),
    re.compile(r"predefined variable '?(\w+)'? is", re.I),
)

_SYNTAX_RE = re.compile(r"\bSyntax\b", re.I)
_EXAMPLE_RE = re.compile(r"\bExample", re.I)
_REQUIRED_ARGS_RE = re.compile(r"^\s*Required\s+Arguments", re.I)
_OPTIONAL_ARGS_RE = re.compile(r"^\s*Optional\s+Arguments", re.I)
_ANY_ARGS_RE = re.compile(r"Arguments", re.I)
_RETURNS_RE = re.compile(r"^\s*Returns", re.I)
_SEE_ALSO_RE = re.compile(r"^\s*See\s+Also", re.I)


def parse_documentation(html: str, name: str, url: str) -> ParsedDocument:
    """Extract documentation fields from a wiki page.

    Missing sections come back as empty strings; the page is never rejected
    for being incomplete.
    """
    soup = BeautifulSoup(html, "html.parser")
    root = soup.select_one("#mw-content-text") or soup
    return ParsedDocument(
        name=name,
        url=url,
        description=_description(root),
        syntax=SECTION_SEPARATOR.join(_syntax_blocks(root, name)),
        parameters=_parameters(root),
        returns=_returns(root),
        examples=SECTION_SEPARATOR.join(_example_blocks(root)),
        related=_see_also_links(root),
        deprecated=_deprecation(root.get_text(" ")),
    )


def _description(root: Tag) -> str:
    for paragraph in root.find_all("p"):
        text = normalize(paragraph.get_text(" "))
        if text:
            return text[:DESCRIPTION_LIMIT]
    return ""


def _deprecation(text: str) -> str | None:
    flattened = normalize(text)
    for pattern in _DEPRECATION_PATTERNS:
        match = pattern.search(flattened)
        if match:
            return f"Use {match.group(1)} instead"
    return None


def _syntax_blocks(root: Tag, name: str) -> list[str]:
    blocks: list[str] = []
    heading = _find_heading(root, _SYNTAX_RE, _HEADING_TAGS)
    if heading is not None:
        first = heading.find_next("pre")
        if first is not None:
            code = first.get_text().strip()
            if code:
                blocks.append(code)
    for pre in root.find_all("pre"):
        if len(blocks) >= MAX_SYNTAX_BLOCKS:
            break
        code = pre.get_text().strip()
        if not code or code in blocks:
            continue
        if name in code or "function" in code or "=" in code:
            blocks.append(code)
    return blocks


def _example_blocks(root: Tag) -> list[str]:
    candidates: list[Tag] = list(root.find_all("syntaxhighlight", attrs={"lang": "lua"}))
    candidates.extend(root.select("div.mw-highlight-lang-lua pre"))
    for heading in _find_headings(root, _EXAMPLE_RE, _HEADING_TAGS):
        for element in _section_elements(heading):
            candidates.extend(element.find_all("pre") if element.name != "pre" else [element])
    examples: list[str] = []
    for candidate in candidates:
        code = candidate.get_text().strip()
        if len(code) >= MIN_EXAMPLE_LENGTH and code not in examples:
            examples.append(code)
    return examples


def _parameters(root: Tag) -> str:
    sections: list[str] = []
    for pattern in (_REQUIRED_ARGS_RE, _OPTIONAL_ARGS_RE):
        heading = _find_heading(root, pattern, ["h3"])
        if heading is not None:
            sections.append(_section_text(heading))
    if not sections:
        heading = _find_heading(root, _ANY_ARGS_RE, _HEADING_TAGS)
        if heading is not None:
            sections.append(_section_text(heading))
    return "\n\n".join(section for section in sections if section)[:PARAMETERS_LIMIT]


def _returns(root: Tag) -> str:
    heading = _find_heading(root, _RETURNS_RE, ["h3"]) or _find_heading(root, _RETURNS_RE, _HEADING_TAGS)
    if heading is None:
        return ""
    return _section_text(heading)[:RETURNS_LIMIT]


def _see_also_links(root: Tag) -> list[str]:
    heading = _find_heading(root, _SEE_ALSO_RE, ["h2"])
    if heading is None:
        return []
    related: list[str] = []
    for element in _section_elements(heading):
        for link in element.find_all("a"):
            target = _link_target(link)
            if target and ":" not in target and "/" not in target and target not in related:
                related.append(target)
    return related


def _link_target(link: Tag) -> str | None:
    href = link.get("href") or ""
    if "/wiki/" in href:
        target = href.split("/wiki/", 1)[1].split("#", 1)[0]
        return unquote(target) or None
    title = link.get("title")
    return title.strip() if title else None


# Section helpers --------------------------------------------------------


def _find_heading(root: Tag, pattern: re.Pattern[str], levels: list[str]) -> Tag | None:
    for heading in root.find_all(levels):
        if pattern.search(heading.get_text(" ", strip=True)):
            return heading
    return None


def _find_headings(root: Tag, pattern: re.Pattern[str], levels: list[str]) -> list[Tag]:
    return [heading for heading in root.find_all(levels) if pattern.search(heading.get_text(" ", strip=True))]


def _section_elements(heading: Tag) -> list[Tag]:
    """Siblings after ``heading`` up to the next heading of the same or higher rank."""
    level = int(heading.name[1])
    anchor = _heading_wrapper(heading) or heading
    elements: list[Tag] = []
    for sibling in anchor.find_next_siblings():
        boundary = _as_heading(sibling)
        if boundary is not None and int(boundary.name[1]) <= level:
            break
        elements.append(sibling)
    return elements


def _section_text(heading: Tag) -> str:
    lines = [heading.get_text(" ", strip=True)]
    for element in _section_elements(heading):
        for line in element.get_text("\n").splitlines():
            cleaned = normalize(line)
            if cleaned:
                lines.append(cleaned)
    return "\n".join(lines).strip()


def _heading_wrapper(heading: Tag) -> Tag | None:
    # Newer MediaWiki wraps headings in <div class="mw-heading">.
    parent = heading.parent
    if isinstance(parent, Tag) and parent.name == "div" and "mw-heading" in (parent.get("class") or []):
        return parent
    return None


def _as_heading(element: Tag) -> Tag | None:
    if element.name in _HEADING_TAGS:
        return element
    if element.name == "div" and "mw-heading" in (element.get("class") or []):
        return element.find(_HEADING_TAGS)
    return None


__all__ = ["parse_documentation"]
