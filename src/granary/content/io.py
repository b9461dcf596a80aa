from __future__ import annotations

import json
import os
from datetime import datetime, timezone
from pathlib import Path
from tempfile import NamedTemporaryFile
from typing import Any

from loguru import logger

from granary.content.schema import validate_save_payload
from granary.sim.core import Simulation
from granary.sim.hash import save_hash

SCHEMA_VERSION = 1
SNAPSHOT_ID = "world"
CANONICAL_JSON_INDENT = 2
CANONICAL_JSON_SEPARATORS = (",", ": ")


def _build_game_payload(simulation: Simulation, metadata: dict[str, Any] | None) -> dict[str, Any]:
    stamped_metadata = dict(metadata or {})
    stamped_metadata.setdefault("snapshot_id", SNAPSHOT_ID)
    stamped_metadata["saved_at"] = datetime.now(timezone.utc).isoformat()
    payload: dict[str, Any] = {
        "schema_version": SCHEMA_VERSION,
        "simulation_state": simulation.simulation_payload(),
        "metadata": stamped_metadata,
    }
    payload["save_hash"] = save_hash(payload)
    return payload


def _canonical_json(payload: dict[str, Any]) -> str:
    return json.dumps(
        payload,
        indent=CANONICAL_JSON_INDENT,
        separators=CANONICAL_JSON_SEPARATORS,
        sort_keys=True,
    )


def _write_atomic_json(path: str | Path, payload: dict[str, Any]) -> None:
    destination = Path(path)
    destination.parent.mkdir(parents=True, exist_ok=True)
    serialized = _canonical_json(payload)

    temp_path: Path | None = None
    try:
        with NamedTemporaryFile(
            mode="w",
            encoding="utf-8",
            dir=destination.parent,
            delete=False,
            suffix=".tmp",
        ) as temp_file:
            temp_file.write(serialized)
            temp_file.flush()
            os.fsync(temp_file.fileno())
            temp_path = Path(temp_file.name)
        os.replace(temp_path, destination)
    except Exception:
        if temp_path is not None:
            temp_path.unlink(missing_ok=True)
        raise


def _load_game_payload(payload: dict[str, Any]) -> tuple[Simulation, dict[str, Any]]:
    validate_save_payload(payload)

    expected_hash = payload["save_hash"]
    actual_hash = save_hash(payload)
    if expected_hash != actual_hash:
        raise ValueError(
            f"save_hash mismatch while loading save (stored={expected_hash}, recomputed={actual_hash})"
        )

    simulation = Simulation.from_simulation_payload(payload["simulation_state"])
    metadata = payload.get("metadata", {})
    return simulation, metadata if isinstance(metadata, dict) else {}


def save_game_json(path: str | Path, simulation: Simulation, metadata: dict[str, Any] | None = None) -> None:
    """Write a snapshot of the whole aggregate, stamped with ``saved_at``."""
    payload = _build_game_payload(simulation, metadata)
    validate_save_payload(payload)
    _write_atomic_json(path, payload)
    logger.info(f"snapshot saved path={path} tick={simulation.state.tick} hash={payload['save_hash'][:12]}")


def load_game_json(path: str | Path) -> Simulation:
    simulation, _ = load_game_json_with_metadata(path)
    return simulation


def load_game_json_with_metadata(path: str | Path) -> tuple[Simulation, dict[str, Any]]:
    payload = json.loads(Path(path).read_text(encoding="utf-8"))
    simulation, metadata = _load_game_payload(payload)
    logger.info(f"snapshot loaded path={path} tick={simulation.state.tick}")
    return simulation, metadata
