"""Plain-text helpers for documentation payloads."""

from typing import Any


def extract_plain_text(nodes: Any) -> str:
    """Flatten a rich abstract (list of inline nodes) into plain text.

    Text and code nodes contribute their content, nested ``inlineContent`` is
    walked recursively and anything else is ignored. Never raises.
    """
    if not isinstance(nodes, (list, tuple)):
        return ""

    parts = []
    for node in nodes:
        if isinstance(node, str):
            parts.append(node)
            continue
        if not isinstance(node, dict):
            continue

        text = node.get("text")
        if isinstance(text, str):
            parts.append(text)
            continue

        code = node.get("code")
        if isinstance(code, str):
            parts.append(code)
            continue

        inline = node.get("inlineContent")
        if inline:
            parts.append(extract_plain_text(inline))

    return "".join(parts).strip()
