"""Query state synthesis.

Turns a query descriptor and its latest run into the flat, fully defaulted
record shown for ``query.<id>`` targets. The record keeps the legacy field set
so existing expressions against query state keep working.

The query configuration is sparse and loosely typed. It is normalized once into
:class:`QueryConfig`, where every field has an explicit default, and the state
record is then built from that canonical form only.
"""

from __future__ import annotations

import math
from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import StrEnum
from typing import TYPE_CHECKING, Any, Final

from ._models import QueryRunStatus

if TYPE_CHECKING:
    from ._models import QueryDescriptor, QueryRunResult

DEFAULT_NOTIFICATION_DURATION: Final = 4.5

BUILDER_META_KEY: Final = "_builder"


class PluginType(StrEnum):
    SQL = "SqlQueryUnified"
    GRAPHQL = "GraphQLQuery"
    REST = "RestQuery"
    STORAGE = "RetoolStorageQuery"
    STATE = "StateQuery"
    JAVASCRIPT = "JavascriptQuery"


_PLUGIN_TYPES: Final[dict[str, PluginType]] = {
    "sql": PluginType.SQL,
    "mattr_database": PluginType.SQL,
    "graphql": PluginType.GRAPHQL,
    "rest": PluginType.REST,
    "mattr_storage": PluginType.STORAGE,
    "variable": PluginType.STATE,
}

_EDITOR_MODES: Final[dict[str, str]] = {
    "sql": "sql",
    "mattr_database": "sql",
    "graphql": "graphql",
}


def plugin_type_for(query_type: str) -> PluginType:
    """Map a query type to its plugin tag; unknown types are JavaScript."""
    return _PLUGIN_TYPES.get(query_type, PluginType.JAVASCRIPT)


def default_editor_mode(query_type: str) -> str:
    return _EDITOR_MODES.get(query_type, "rest")


def to_number(value: Any, fallback: float = 0) -> float:
    """Read a finite number from a number or numeric string."""
    if isinstance(value, bool):
        return fallback
    if isinstance(value, (int, float)):
        return value if math.isfinite(value) else fallback
    if isinstance(value, str) and value.strip():
        try:
            parsed = float(value)
        except ValueError:
            return fallback
        if not math.isfinite(parsed):
            return fallback
        return int(parsed) if parsed.is_integer() else parsed
    return fallback


def _as_mapping(value: Any) -> Mapping[str, Any]:
    return value if isinstance(value, Mapping) else {}


def _as_str(value: Any, default: str = "") -> str:
    return value if isinstance(value, str) else default


@dataclass(frozen=True, slots=True)
class ResponseOptions:
    """The ``response`` section: notifications and failure condition."""

    notification_duration: float = DEFAULT_NOTIFICATION_DURATION
    failure_condition: str = ""
    notify_on_failure: bool = False
    notify_on_success: bool = False

    @classmethod
    def from_raw(cls, raw: Mapping[str, Any]) -> ResponseOptions:
        return cls(
            notification_duration=to_number(raw.get("notificationDuration"), DEFAULT_NOTIFICATION_DURATION),
            failure_condition=_as_str(raw.get("failureCondition")),
            notify_on_failure=bool(raw.get("notifyOnFailure")),
            notify_on_success=bool(raw.get("notifyOnSuccess")),
        )


@dataclass(frozen=True, slots=True)
class AdvancedOptions:
    """The ``advanced`` section: caching, delays and run behavior."""

    cache_results: bool = False
    disable_condition: str = ""
    page_load_delay_ms: float = 0
    # Shown verbatim as ``runWhenPageLoadsDelay``
    page_load_delay_raw: Any = ""
    timeout_ms: float = 0
    run_after_ms: float = 0
    confirm_before_run: bool = False
    run_on_page_load: bool = False

    @classmethod
    def from_raw(cls, raw: Mapping[str, Any]) -> AdvancedOptions:
        page_load_delay = raw.get("pageLoadDelayMs")
        return cls(
            cache_results=bool(raw.get("cacheResults")),
            disable_condition=_as_str(raw.get("disableCondition")),
            page_load_delay_ms=to_number(page_load_delay, 0),
            page_load_delay_raw=page_load_delay if page_load_delay is not None else "",
            timeout_ms=to_number(raw.get("timeoutMs"), 0),
            run_after_ms=to_number(raw.get("runAfterMs"), 0),
            confirm_before_run=bool(raw.get("confirmBeforeRun")),
            run_on_page_load=bool(raw.get("runOnPageLoad")),
        )


@dataclass(frozen=True, slots=True)
class QueryConfig:
    """Canonical form of a query's configuration object."""

    editor_mode: str = "rest"
    action_type: str = ""
    changeset: Any = ""
    changeset_is_object: bool = False
    changeset_object: str = ""
    error_transformer: str = ""
    transformer: str = ""
    filter_by: Any = ""
    is_imported: bool = False
    playground_query_save_id: Any = None
    playground_query_uuid: Any = ""
    query: str = ""
    table_name: str = ""
    response: ResponseOptions = field(default_factory=ResponseOptions)
    advanced: AdvancedOptions = field(default_factory=AdvancedOptions)

    @classmethod
    def from_raw(cls, raw: Any, query_type: str) -> QueryConfig:
        """Normalize any configuration shape; missing or mistyped keys take defaults."""
        config = _as_mapping(raw)
        meta = _as_mapping(config.get(BUILDER_META_KEY))
        return cls(
            editor_mode=_as_str(config.get("editorMode"), default_editor_mode(query_type)),
            action_type=_as_str(config.get("actionType")),
            changeset=_default_if_none(config.get("changeset"), ""),
            changeset_is_object=bool(config.get("changesetIsObject")),
            changeset_object=_as_str(config.get("changesetObject")),
            error_transformer=_as_str(config.get("errorTransformer")),
            transformer=_as_str(config.get("transformer")),
            filter_by=_default_if_none(config.get("filterBy"), ""),
            is_imported=bool(config.get("isImported")),
            playground_query_save_id=config.get("playgroundQuerySaveId"),
            playground_query_uuid=_default_if_none(config.get("playgroundQueryUuid"), ""),
            query=_as_str(config.get("query")),
            table_name=_as_str(config.get("tableName")),
            response=ResponseOptions.from_raw(_as_mapping(meta.get("response"))),
            advanced=AdvancedOptions.from_raw(_as_mapping(meta.get("advanced"))),
        )


def _default_if_none(value: Any, default: Any) -> Any:
    return default if value is None else value


def _received_at_ms(run: QueryRunResult | None) -> int | None:
    if run is None or run.received_at is None:
        return None
    return int(run.received_at.timestamp() * 1000)


def _status_code(run: QueryRunResult | None) -> int | float | None:
    if run is None or not isinstance(run.data, Mapping):
        return None
    status_code = run.data.get("statusCode")
    if isinstance(status_code, (int, float)) and not isinstance(status_code, bool):
        return status_code
    return None


def build_query_state(query: QueryDescriptor, run: QueryRunResult | None = None) -> dict[str, Any]:
    """Synthesize the state record of one query.

    Args:
        query: The query descriptor; its configuration may be sparse or absent.
        run: The latest run result, if the query has run.

    Returns:
        A flat record in which every field has a defined value.

    """
    config = QueryConfig.from_raw(query.config, query.type)
    response = config.response
    advanced = config.advanced
    received_at = _received_at_ms(run)
    status = run.status if run is not None else QueryRunStatus.IDLE
    error = run.error if run is not None else None

    return {
        "data": {
            "data": run.data if run is not None else None,
            "error": error,
            "message": error,
            "statusCode": _status_code(run),
        },
        "error": error if error is not None else "",
        "actionType": config.action_type,
        "bulkUpdatePrimaryKey": "",
        "cacheKeyTtl": "",
        "changeset": config.changeset,
        "changesetIsObject": config.changeset_is_object,
        "changesetObject": config.changeset_object,
        "confirmationMessage": None,
        "databaseHostOverride": "",
        "databaseNameOverride": "",
        "databasePasswordOverride": "",
        "databaseRoleOverride": "",
        "databaseUsernameOverride": "",
        "databaseWarehouseOverride": "",
        "doNotThrowOnNoOp": False,
        "editorMode": config.editor_mode,
        "enableBulkUpdates": False,
        "enableCaching": advanced.cache_results,
        "enableErrorTransformer": bool(config.error_transformer),
        "enableTransformer": bool(config.transformer),
        "errorTransformer": config.error_transformer,
        "filterBy": config.filter_by,
        "finished": received_at,
        "functionDescription": None,
        "functionParameters": None,
        "id": query.name,
        "isFetching": status == QueryRunStatus.RUNNING,
        "isFunction": False,
        "isImported": config.is_imported,
        "lastReceivedFromResourceAt": received_at,
        "metadata": None,
        "notificationDuration": response.notification_duration,
        "offlineOptimisticResponse": None,
        "offlineQueryType": "None",
        "offlineUserQueryInputs": "",
        "overrideOrgCacheForUserCache": False,
        "playgroundQueryId": None,
        "playgroundQuerySaveId": config.playground_query_save_id,
        "playgroundQueryUuid": config.playground_query_uuid,
        "query": config.query,
        "queryDisabled": advanced.disable_condition,
        "queryDisabledMessage": "",
        "queryFailureConditions": response.failure_condition,
        "queryRefreshTime": "",
        "queryRunOnSelectorUpdate": False,
        "queryRunTime": 0,
        "queryThrottleTime": advanced.page_load_delay_ms,
        "queryTimeout": advanced.timeout_ms,
        "queryTriggerDelay": advanced.run_after_ms,
        "rawData": None,
        "recordId": "",
        "records": "",
        "requestSentTimestamp": received_at,
        "requireConfirmation": advanced.confirm_before_run,
        "resourceNameOverride": "",
        "resourceTypeOverride": None,
        "runWhenModelUpdates": False,
        "runWhenPageLoads": advanced.run_on_page_load,
        "runWhenPageLoadsDelay": advanced.page_load_delay_raw,
        "servedFromCache": False,
        "shouldEnableBatchQuerying": False,
        "shouldUseLegacySql": False,
        "showFailureToaster": response.notify_on_failure,
        "showLatestVersionUpdatedWarning": False,
        "showSuccessToaster": response.notify_on_success,
        "showUpdateSetValueDynamicallyToggle": True,
        "streamResponse": False,
        "successMessage": "",
        "tableName": config.table_name,
        "timestamp": 0,
        "transformer": config.transformer,
        "updateSetValueDynamically": False,
        "workflowId": None,
        "workflowParams": None,
        "workflowRunBodyType": "raw",
        "workflowRunExecutionType": "sync",
        "pluginType": plugin_type_for(query.type).value,
    }
