from __future__ import annotations

import json
import re
from typing import Any, Iterable, Mapping

from markupsafe import Markup, escape

VOID_ELEMENTS = frozenset({"input", "br", "hr", "img", "meta", "link"})

_ID_UNSAFE = re.compile(r"[^A-Za-z0-9_-]+")


def attributes(values: Mapping[str, Any]) -> Markup:
    """Render an attribute mapping.

    ``None`` and ``False`` drop the attribute, ``True`` renders it bare, lists
    are space-joined (class lists), everything else is escaped text.
    """
    parts: list[str] = []
    for name, value in values.items():
        if value is None or value is False:
            continue
        if value is True:
            parts.append(f" {escape(name)}")
            continue
        if isinstance(value, (list, tuple)):
            value = " ".join(str(item) for item in value if item)
            if not value:
                continue
        parts.append(f' {escape(name)}="{escape(value)}"')
    return Markup("".join(parts))


def tag(name: str, attrs: Mapping[str, Any] | None = None, *content: Any) -> Markup:
    opening = Markup(f"<{name}{attributes(attrs or {})}>")
    if name in VOID_ELEMENTS:
        return opening
    return opening + join(content) + Markup(f"</{name}>")


def join(parts: Iterable[Any]) -> Markup:
    return Markup("").join(part for part in parts if part is not None and part != "")


def dom_id(*parts: str) -> str:
    """Collapse arbitrary text (e.g. ``items[0][name]``) into a DOM-safe id."""
    raw = "_".join(part for part in parts if part)
    return _ID_UNSAFE.sub("_", raw).strip("_")


def json_script(payload: Any, attrs: Mapping[str, Any]) -> Markup:
    encoded = json.dumps(payload, separators=(",", ":"), sort_keys=False, default=str)
    # Neutralize "</script>" and HTML comment openers inside the data block.
    encoded = encoded.replace("<", "\\u003c").replace(">", "\\u003e").replace("&", "\\u0026")
    return Markup(f'<script type="application/json"{attributes(attrs)}>{encoded}</script>')


__all__ = ["attributes", "tag", "join", "dom_id", "json_script", "VOID_ELEMENTS"]
