from __future__ import annotations

import json
import logging
import tomllib
from pathlib import Path
from typing import TYPE_CHECKING, Any

import tomli_w
from pydantic import ValidationError

from ._models import AppDocument
from ._value_kind import UNDEFINED

if TYPE_CHECKING:
    from ._targets import StateTarget

logger = logging.getLogger(__name__)


class AppDocumentError(Exception):
    """The app document could not be read or is invalid."""


def load_app_document(path: Path) -> AppDocument:
    """Load an app document from a ``.json`` or ``.toml`` file.

    Raises:
        AppDocumentError: If the file cannot be parsed or does not validate.

    """
    suffix = path.suffix.lower()
    try:
        if suffix == ".json":
            with path.open("r", encoding="utf-8") as f:
                data = json.load(f)
        elif suffix == ".toml":
            with path.open("rb") as f:
                data = tomllib.load(f)
        else:
            msg = f"Unsupported app document format '{suffix}' (expected .json or .toml): {path}"
            raise AppDocumentError(msg)
    except (json.JSONDecodeError, tomllib.TOMLDecodeError) as e:
        msg = f"Invalid app document {path}: {e}"
        raise AppDocumentError(msg) from e
    except OSError as e:
        msg = f"Cannot read app document {path}: {e}"
        raise AppDocumentError(msg) from e

    try:
        document = AppDocument.model_validate(data)
    except ValidationError as e:
        msg = f"Invalid app document {path}:\n{e}"
        raise AppDocumentError(msg) from e

    logger.debug(
        "Loaded %s: %d pages, %d queries, %d widget definitions",
        path,
        len(document.pages),
        len(document.queries),
        len(document.widget_definitions),
    )
    return document


def _json_default(value: Any) -> Any:
    if value is UNDEFINED:
        return None
    if hasattr(value, "model_dump"):
        return value.model_dump(mode="json", by_alias=True)
    if hasattr(value, "isoformat"):
        return value.isoformat()
    return repr(value)


def dumps_state(value: Any, *, indent: int | None = 2) -> str:
    """Serialize a state tree or context as JSON.

    UNDEFINED becomes ``null``; values JSON cannot represent fall back to their repr.
    """
    return json.dumps(value, indent=indent, default=_json_default, ensure_ascii=False)


def dump_targets(targets: list[StateTarget], output: Path, *, indent: int = 2) -> None:
    """Write every target's state to a JSON file keyed by target id."""
    payload = {
        target.id: {
            "label": target.label,
            "group": target.group,
            "description": target.description,
            "state": target.state,
        }
        for target in targets
    }
    output.parent.mkdir(parents=True, exist_ok=True)
    output.write_text(dumps_state(payload, indent=indent) + "\n", encoding="utf-8")


def sample_app_document() -> dict[str, Any]:
    """A small app document showing every section, in camelCase form."""
    return {
        "activePageId": "home",
        "pages": [
            {
                "id": "home",
                "name": "Home",
                "pageMeta": {"title": "Home", "browserTitle": "Home", "url": "home"},
                "widgets": [
                    {
                        "id": "container1",
                        "type": "Container",
                        "children": [
                            {
                                "id": "nameInput",
                                "type": "TextInput",
                                "props": {"label": "Name", "value": "{{ current_user.firstName }}"},
                            },
                            {
                                "id": "agreeBox",
                                "type": "Checkbox",
                                "props": {"label": "I agree", "checked": ""},
                            },
                        ],
                    },
                    {
                        "id": "greeting",
                        "type": "Text",
                        "props": {"value": "Hello {{ current_user.firstName }}"},
                        "hidden": "{{ !agreeBox.checked }}",
                    },
                ],
            },
        ],
        "widgetDefinitions": [
            {
                "type": "TextInput",
                "label": "Text input",
                "category": "inputs",
                "defaultProps": {"placeholder": "Enter value"},
                "fields": [
                    {"key": "label", "type": "text"},
                    {"key": "value", "type": "text", "valueType": "String | Void"},
                ],
            },
            {
                "type": "Checkbox",
                "label": "Checkbox",
                "category": "inputs",
                "fields": [{"key": "checked", "type": "boolean", "valueType": "Boolean | Void"}],
            },
            {"type": "Text", "label": "Text", "category": "presentation"},
            {"type": "Container", "label": "Container", "category": "containers"},
        ],
        "queries": [
            {
                "id": "q1",
                "name": "getUsers",
                "type": "rest",
                "config": {"_builder": {"advanced": {"runOnPageLoad": True, "timeoutMs": 10000}}},
            },
        ],
        "queryRuns": {
            "q1": {
                "status": "success",
                "data": {"statusCode": 200, "users": ["ada", "grace"]},
                "receivedAt": "2024-01-01T00:00:00Z",
            },
        },
        "jsFunctions": [{"id": "t1", "name": "activeUsers", "code": "return getUsers.data.users"}],
        "selection": {"widgetId": "nameInput", "pageId": "home"},
        "currentUser": {"email": "ada@example.com", "firstName": "Ada"},
        "environment": {
            "href": "https://example.com/app/home?tab=profile#section=top",
            "localStorage": {"token": '"abc"', "count": "3"},
            "theme": {"mode": "dark", "primary": "#3ecf8e", "surfacePrimary": "#1c1c1c"},
            "viewport": {"width": 1280, "height": 800},
            "environment": "staging",
        },
    }


def write_sample_app_document(output: Path) -> None:
    """Write :func:`sample_app_document` as TOML."""
    output.parent.mkdir(parents=True, exist_ok=True)
    with output.open("wb") as f:
        tomli_w.dump(sample_app_document(), f)
