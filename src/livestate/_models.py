"""Input models describing the app under construction.

All models accept both camelCase keys (as stored by the builder) and
snake_case field names.
"""

from __future__ import annotations

from datetime import datetime
from enum import StrEnum
from typing import Any, Final, Literal

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from ._value_kind import ValueKind, parse_value_type_tokens


class _BuilderModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
    )


class WidgetSpacing(_BuilderModel):
    height_mode: Literal["auto", "fixed"] | None = None
    height_fx_enabled: bool | None = None
    height_fx: str | None = None
    margin_mode: Literal["normal", "none"] | None = None
    margin_fx_enabled: bool | None = None
    margin_fx: str | None = None


class WidgetInstance(_BuilderModel):
    """One placed widget; ``children`` makes the widget tree."""

    id: str
    type: str
    props: dict[str, Any] = Field(default_factory=dict)
    children: list[WidgetInstance] = Field(default_factory=list)
    hidden: Any = None
    visible_when: str | None = None
    disabled_when: str | None = None
    spacing: WidgetSpacing | None = None


# Editor types whose value type is implied when a field declares none.
FIELD_VALUE_TYPE_FALLBACKS: Final[dict[str, str]] = {
    "boolean": "Boolean",
    "number": "Number",
    "select": "String",
    "text": "String",
    "textarea": "String",
    "json": "Object",
}


class FieldSchema(_BuilderModel):
    key: str
    type: str = ""
    value_type: str | None = None

    @property
    def effective_value_type(self) -> str | None:
        """The declared value type, or the fallback implied by the editor type."""
        return self.value_type or FIELD_VALUE_TYPE_FALLBACKS.get(self.type)

    @property
    def allowed_kinds(self) -> tuple[ValueKind | str, ...]:
        """Allowed runtime kinds; empty means any value is accepted."""
        return parse_value_type_tokens(self.effective_value_type)


class WidgetDefinition(_BuilderModel):
    type: str
    label: str | None = None
    category: str = "inputs"
    default_props: dict[str, Any] = Field(default_factory=dict)
    fields: list[FieldSchema] = Field(default_factory=list)


class PageMeta(_BuilderModel):
    title: str | None = None
    browser_title: str | None = None
    url: str | None = None


class Page(_BuilderModel):
    id: str
    name: str
    page_meta: PageMeta | None = None
    widgets: list[WidgetInstance] = Field(default_factory=list)
    page_globals: list[WidgetInstance] = Field(default_factory=list)


class QueryDescriptor(_BuilderModel):
    id: str
    name: str
    type: str
    config: Any = None


class QueryRunStatus(StrEnum):
    IDLE = "idle"
    RUNNING = "running"
    SUCCESS = "success"
    ERROR = "error"


class QueryRunResult(_BuilderModel):
    status: QueryRunStatus = QueryRunStatus.IDLE
    data: Any = None
    error: str | None = None
    received_at: datetime | None = None


class TransformerFunction(_BuilderModel):
    id: str
    name: str = ""
    code: str = ""


class Selection(_BuilderModel):
    """What the editor currently has selected."""

    widget_id: str | None = None
    global_widget_id: str | None = None
    page_component: bool = False
    page_id: str | None = None


class ThemeTokens(_BuilderModel):
    mode: str = ""
    primary: str = ""
    surface_primary: str = ""


class Viewport(_BuilderModel):
    width: int = 0
    height: int = 0


class EnvironmentFacts(_BuilderModel):
    """Facts about the environment the app runs in.

    Every field is optional; absent facts degrade to empty values.
    """

    local_storage: dict[str, str | None] = Field(default_factory=dict)
    href: str = ""
    theme: ThemeTokens = Field(default_factory=ThemeTokens)
    viewport: Viewport = Field(default_factory=Viewport)
    environment: str = "local"


class AppDocument(_BuilderModel):
    """Everything the state inspector consumes, in one document."""

    pages: list[Page] = Field(default_factory=list)
    active_page_id: str | None = None
    global_widgets: list[WidgetInstance] = Field(default_factory=list)
    page_globals: list[WidgetInstance] = Field(default_factory=list)
    widget_definitions: list[WidgetDefinition] = Field(default_factory=list)
    queries: list[QueryDescriptor] = Field(default_factory=list)
    js_functions: list[TransformerFunction] = Field(default_factory=list)
    query_runs: dict[str, QueryRunResult] = Field(default_factory=dict)
    selection: Selection = Field(default_factory=Selection)
    current_user: dict[str, Any] | None = None
    environment: EnvironmentFacts = Field(default_factory=EnvironmentFacts)

    @property
    def active_page(self) -> Page | None:
        for page in self.pages:
            if page.id == self.active_page_id:
                return page
        return None
