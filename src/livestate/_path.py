"""Reference paths into an evaluation context.

A reference such as ``users.data[0].name`` names a root entry of the context
followed by attribute and item accesses.
"""

import logging
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any, Self

from ._value_kind import UNDEFINED

logger = logging.getLogger(__name__)


class PartBase:
    pass


@dataclass(slots=True, frozen=True)
class AttributePart(PartBase):
    name: str


@dataclass(slots=True, frozen=True)
class ItemPart(PartBase):
    key: str | int


def _parse_item_key(key_str: str) -> str | int:
    key_str = key_str.strip()
    if len(key_str) >= 2 and key_str[0] == key_str[-1] and key_str[0] in "'\"":  # noqa: PLR2004
        return key_str[1:-1]
    try:
        return int(key_str)
    except ValueError:
        return key_str


@dataclass(slots=True, frozen=True)
class Reference:
    root: str
    parts: tuple[PartBase, ...]

    def __str__(self) -> str:
        result = self.root
        for part in self.parts:
            match part:
                case AttributePart(name):
                    result += f".{name}"
                case ItemPart(key) if isinstance(key, int):
                    result += f"[{key}]"
                case ItemPart(key):
                    result += f"[{key!r}]"
                case _:
                    msg = f"Unknown part type: {type(part)}"
                    raise TypeError(msg)
        return result

    @classmethod
    def parse(cls, path_str: str) -> Self:  # noqa: C901
        """Parse ``root.attr[0]['key']`` into a Reference.

        Raises:
            ValueError: If the text is not a well-formed reference.

        """
        s = path_str.strip()

        # Extract root by partitioning at the first occurrence of '.' or '['
        root_len = len(s)
        for sep in (".", "["):
            root_candidate, sep_found, _rest = s.partition(sep)
            if sep_found and len(root_candidate) < root_len:
                root_len = len(root_candidate)

        root = s[:root_len]
        if not root.isidentifier():
            msg = f"Invalid reference root: {root!r}"
            raise ValueError(msg)

        s = s[root_len:]

        parts: list[PartBase] = []
        i = 0
        while i < len(s):
            if s[i] == ".":  # Attribute access
                i += 1
                start = i
                while i < len(s) and s[i] not in ".[":
                    i += 1
                name = s[start:i]
                if not name.isidentifier():
                    msg = f"Invalid attribute name {name!r} in {path_str!r}"
                    raise ValueError(msg)
                parts.append(AttributePart(name=name))
            elif s[i] == "[":  # Item access
                i += 1
                start = i
                while i < len(s) and s[i] != "]":
                    i += 1
                if i >= len(s):
                    msg = f"Unclosed '[' in {path_str!r}"
                    raise ValueError(msg)
                parts.append(ItemPart(key=_parse_item_key(s[start:i])))
                i += 1  # Skip the closing ']'
            else:
                msg = f"Unexpected character at position {i}: {s[i]}"
                raise ValueError(msg)

        return cls(root=root, parts=tuple(parts))


def _get_part(current: Any, part: PartBase) -> Any:
    match part:
        case AttributePart(name):
            key: str | int = name
        case ItemPart(item_key):
            key = item_key
        case _:
            msg = f"Unknown part type: {type(part)}"
            raise TypeError(msg)
    if isinstance(current, Mapping):
        if key in current:
            return current[key]
        # Mapping keys are text, items may be written as numbers
        return current.get(str(key), UNDEFINED)
    if isinstance(current, (list, tuple)):
        if isinstance(key, int) or (isinstance(key, str) and key.isdigit()):
            index = int(key)
            return current[index] if 0 <= index < len(current) else UNDEFINED
        if key == "length":
            return len(current)
        return UNDEFINED
    if isinstance(current, str) and key == "length":
        return len(current)
    return UNDEFINED


def get_value_by_reference(context: Mapping[str, Any], reference: Reference) -> Any:
    """Look a reference up in the context.

    Returns UNDEFINED as soon as any step is missing; never raises.
    """
    if reference.root not in context:
        return UNDEFINED
    current = context[reference.root]
    for part in reference.parts:
        current = _get_part(current, part)
        if current is UNDEFINED:
            logger.debug("Reference %s stops at %s", reference, part)
            return UNDEFINED
    return current
