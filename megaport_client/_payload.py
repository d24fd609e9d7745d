"""Coercion helpers for loosely typed API payloads."""

from __future__ import annotations

from collections.abc import Mapping
from datetime import UTC, datetime
from typing import Any

from megaport_client.errors import MegaportResponseError


def coerce_int(value: Any, default: int = 0) -> int:
    coerced = coerce_optional_int(value)
    return default if coerced is None else coerced


def coerce_optional_int(value: Any) -> int | None:
    if value is None:
        return None

    if isinstance(value, bool):
        return None

    if isinstance(value, int):
        return value

    if isinstance(value, float):
        return int(value)

    if isinstance(value, str):
        try:
            return int(value.strip())
        except ValueError:
            return None

    return None


def coerce_float(value: Any, default: float = 0.0) -> float:
    if isinstance(value, bool) or value is None:
        return default
    if isinstance(value, (int, float)):
        return float(value)
    if isinstance(value, str):
        try:
            return float(value.strip())
        except ValueError:
            return default
    return default


def coerce_str(value: Any, default: str = "") -> str:
    if value is None:
        return default
    if isinstance(value, str):
        return value
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return str(value)
    return default


def coerce_bool(value: Any, default: bool = False) -> bool:
    if isinstance(value, bool):
        return value
    return default


def coerce_mapping(value: Any) -> Mapping[str, Any]:
    if isinstance(value, Mapping):
        return value
    return {}


def coerce_mapping_list(value: Any) -> list[Mapping[str, Any]]:
    if not isinstance(value, list):
        return []
    return [item for item in value if isinstance(item, Mapping)]


def coerce_int_list(value: Any) -> tuple[int, ...]:
    if not isinstance(value, list):
        return ()
    normalized: list[int] = []
    for item in value:
        coerced = coerce_optional_int(item)
        if coerced is not None:
            normalized.append(coerced)
    return tuple(normalized)


def coerce_str_dict(value: Any) -> dict[str, str]:
    """Accept either a plain mapping or a list of ``{"key", "value"}`` tags."""
    if isinstance(value, Mapping):
        return {str(key): coerce_str(item) for key, item in value.items()}
    if isinstance(value, list):
        tags: dict[str, str] = {}
        for item in value:
            if isinstance(item, Mapping) and "key" in item:
                tags[str(item["key"])] = coerce_str(item.get("value"))
        return tags
    return {}


def parse_epoch_millis(value: Any) -> datetime | None:
    millis = coerce_optional_int(value)
    if millis is None or millis <= 0:
        return None
    return datetime.fromtimestamp(millis / 1000, tz=UTC)


def to_epoch_millis(value: datetime) -> int:
    if value.tzinfo is None:
        value = value.replace(tzinfo=UTC)
    return int(value.timestamp() * 1000)


def require_mapping(value: Any, *, context: str) -> Mapping[str, Any]:
    if not isinstance(value, Mapping):
        raise MegaportResponseError(f"{context} payload must be an object")
    return value


def require_list(value: Any, *, context: str) -> list[Any]:
    if not isinstance(value, list):
        raise MegaportResponseError(f"{context} payload must be a list")
    return value
