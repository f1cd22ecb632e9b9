"""Transformer functions and their header line.

Transformer code may start with a header comment carrying its scope, e.g.::

    // @mattr-transformer {"scope": "page", "pageId": "p1"}
    return data.filter(Boolean)

The header is metadata and is stripped from the body shown in state.
"""

from __future__ import annotations

import json
import logging
import re
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Final, Literal

if TYPE_CHECKING:
    from ._models import TransformerFunction

logger = logging.getLogger(__name__)

TRANSFORMER_META_PREFIX: Final = "// @mattr-transformer "


@dataclass(frozen=True, slots=True)
class TransformerMeta:
    scope: Literal["global", "page"] = "global"
    page_id: str | None = None


@dataclass(frozen=True, slots=True)
class ParsedTransformer:
    meta: TransformerMeta
    body: str


def parse_transformer_meta(code: str) -> ParsedTransformer:
    """Split transformer code into header metadata and body.

    A missing or malformed header leaves the code untouched with global scope.
    """
    if not code:
        return ParsedTransformer(meta=TransformerMeta(), body="")
    lines = re.split(r"\r?\n", code)
    first_line = lines[0].strip()
    if not first_line.startswith(TRANSFORMER_META_PREFIX):
        return ParsedTransformer(meta=TransformerMeta(), body=code)

    raw_meta = first_line[len(TRANSFORMER_META_PREFIX) :].strip()
    try:
        parsed = json.loads(raw_meta)
    except ValueError:
        logger.debug("Ignoring malformed transformer header: %r", first_line)
        return ParsedTransformer(meta=TransformerMeta(), body=code)
    if not isinstance(parsed, dict):
        return ParsedTransformer(meta=TransformerMeta(), body=code)

    page_id = parsed.get("pageId")
    meta = TransformerMeta(
        scope="page" if parsed.get("scope") == "page" else "global",
        page_id=page_id if isinstance(page_id, str) else None,
    )
    return ParsedTransformer(meta=meta, body="\n".join(lines[1:]))


def strip_transformer_meta(code: str) -> str:
    return parse_transformer_meta(code).body


def build_transformer_state(func: TransformerFunction) -> dict[str, Any]:
    """State of a transformer; its value is only known at run time."""
    label = func.name or func.id
    body = strip_transformer_meta(func.code)
    return {
        "value": None,
        "funcBody": body,
        "id": label,
        "renderedFunction": body,
        "runBehavior": "throttled",
    }
