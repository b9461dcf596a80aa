from __future__ import annotations

import hashlib
import json
from typing import Any

from granary.sim.core import Simulation
from granary.sim.world import World


def _digest(payload: Any) -> str:
    encoded = json.dumps(payload, sort_keys=True, separators=(",", ":")).encode("utf-8")
    return hashlib.sha256(encoded).hexdigest()


def world_hash(world: World) -> str:
    return _digest(world.to_dict())


def save_hash(payload: dict[str, Any]) -> str:
    hash_payload = {
        "schema_version": payload["schema_version"],
        "simulation_state": payload["simulation_state"],
    }
    return _digest(hash_payload)


def simulation_hash(simulation: Simulation) -> str:
    return _digest(simulation.simulation_payload())
