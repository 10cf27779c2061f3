"""Markdown rendering of cached documents."""

from __future__ import annotations

from mtasa_docs.models.entities import Document, Item


def format_document(doc: Document, item: Item, include_examples: bool = True) -> str:
    parts = [
        f"# {item.id}\n",
        f"**Category:** {item.category}",
        f"**Side:** {item.side}",
        f"**URL:** {doc.source_url}\n",
    ]
    if doc.deprecated:
        parts.append(f"**DEPRECATED:** {doc.deprecated}\n")
    if doc.description:
        parts.append(f"## Description\n{doc.description}\n")
    if doc.syntax_blocks:
        parts.append("## Syntax")
        parts.extend(_lua_block(block) for block in doc.syntax_blocks)
    if doc.parameters:
        parts.append(f"## Parameters\n{doc.parameters}\n")
    if doc.returns:
        parts.append(f"## Returns\n{doc.returns}\n")
    if include_examples and doc.example_blocks:
        parts.append("## Examples\n")
        for index, example in enumerate(doc.example_blocks, start=1):
            parts.append(f"### Example {index}")
            parts.append(_lua_block(example))
    if doc.related:
        parts.append(f"## Related Functions\n{doc.related}\n")
    return "\n".join(parts)


def format_examples(doc: Document) -> str:
    """Render only the code examples; empty string when there are none."""
    if not doc.example_blocks:
        return ""
    parts = [f"# {doc.id} - Code Examples\n"]
    for index, example in enumerate(doc.example_blocks, start=1):
        parts.append(f"## Example {index}")
        parts.append(_lua_block(example))
    return "\n".join(parts)


def _lua_block(code: str) -> str:
    return f"```lua\n{code}\n```\n"


__all__ = ["format_document", "format_examples"]
