from __future__ import annotations

import re
from typing import Any, Iterable

_LEADING_HASH = re.compile(r"^#+")
_UNSAFE = re.compile(r"[^a-z0-9_-]+")
_DASHES = re.compile(r"-+")


def normalize_tag(raw: Any) -> str:
    t = str(raw if raw is not None else "").strip().lower()
    t = _LEADING_HASH.sub("", t)
    t = _UNSAFE.sub("-", t)
    t = _DASHES.sub("-", t)
    return t.strip("-")


def uniq_tags(tags: Iterable[Any] | None) -> list[str]:
    """
    Normalize, drop empties, de-duplicate keeping first occurrence.
    """
    out: list[str] = []
    seen: set[str] = set()
    for raw in tags or []:
        t = normalize_tag(raw)
        if not t or t in seen:
            continue
        seen.add(t)
        out.append(t)
    return out
