from __future__ import annotations

from typing import Any

SUPPORTED_SCHEMA_VERSIONS = {1}
REQUIRED_SIMULATION_FIELDS = {"schema_version", "seed", "tick", "rng_state", "rules", "world", "contracts", "event_log"}
REQUIRED_WORLD_FIELDS = {"day", "subphase", "grain_supply", "grain_tier", "unrest", "unrest_tier"}
REQUIRED_CONTRACT_FIELDS = {"contract_id", "contract_type", "deadline_ticks", "status"}
REQUIRED_EVENT_FIELDS = {"event_id", "day", "subphase", "event_type", "severity", "text"}


def _is_json_primitive(value: Any) -> bool:
    return value is None or isinstance(value, (bool, int, float, str))


def _validate_json_value(value: Any, *, field_name: str) -> None:
    if _is_json_primitive(value):
        return
    if isinstance(value, list):
        for item in value:
            _validate_json_value(item, field_name=field_name)
        return
    if isinstance(value, dict):
        for key, nested_value in value.items():
            if not isinstance(key, str):
                raise ValueError(f"{field_name} keys must be strings")
            _validate_json_value(nested_value, field_name=field_name)
        return
    raise ValueError(f"{field_name} must contain only canonical JSON primitives")


def _require_object(value: Any, *, field_name: str) -> dict[str, Any]:
    if not isinstance(value, dict):
        raise ValueError(f"{field_name} must be an object")
    return value


def _require_fields(value: dict[str, Any], required: set[str], *, field_name: str) -> None:
    missing = required - set(value.keys())
    if missing:
        raise ValueError(f"{field_name} missing fields: {sorted(missing)}")


def _validate_rows(rows: Any, required: set[str], *, field_name: str) -> None:
    if not isinstance(rows, list):
        raise ValueError(f"{field_name} must be a list")
    for index, row in enumerate(rows):
        row = _require_object(row, field_name=f"{field_name}[{index}]")
        _require_fields(row, required, field_name=f"{field_name}[{index}]")


def validate_simulation_payload(payload: Any, *, field_prefix: str = "simulation_state") -> None:
    payload = _require_object(payload, field_name=field_prefix)
    _require_fields(payload, REQUIRED_SIMULATION_FIELDS, field_name=field_prefix)

    if payload["schema_version"] not in SUPPORTED_SCHEMA_VERSIONS:
        raise ValueError(f"unsupported simulation schema_version: {payload['schema_version']}")
    for name in ("seed", "tick"):
        if isinstance(payload[name], bool) or not isinstance(payload[name], int):
            raise ValueError(f"{field_prefix}.{name} must be an integer")

    world = _require_object(payload["world"], field_name=f"{field_prefix}.world")
    _require_fields(world, REQUIRED_WORLD_FIELDS, field_name=f"{field_prefix}.world")

    _require_object(payload["rules"], field_name=f"{field_prefix}.rules")

    contracts = _require_object(payload["contracts"], field_name=f"{field_prefix}.contracts")
    _validate_rows(contracts.get("contracts", []), REQUIRED_CONTRACT_FIELDS, field_name=f"{field_prefix}.contracts.contracts")

    event_log = _require_object(payload["event_log"], field_name=f"{field_prefix}.event_log")
    _validate_rows(event_log.get("events", []), REQUIRED_EVENT_FIELDS, field_name=f"{field_prefix}.event_log.events")

    _validate_json_value(payload, field_name=field_prefix)


def validate_save_payload(payload: Any) -> None:
    payload = _require_object(payload, field_name="save payload")
    _require_fields(payload, {"schema_version", "simulation_state", "save_hash"}, field_name="save payload")
    if payload["schema_version"] not in SUPPORTED_SCHEMA_VERSIONS:
        raise ValueError(f"unsupported save schema_version: {payload['schema_version']}")
    if not isinstance(payload["save_hash"], str) or not payload["save_hash"]:
        raise ValueError("save_hash must be a non-empty string")
    metadata = payload.get("metadata", {})
    _require_object(metadata, field_name="metadata")
    _validate_json_value(metadata, field_name="metadata")
    validate_simulation_payload(payload["simulation_state"])
