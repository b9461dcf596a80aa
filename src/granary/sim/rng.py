from __future__ import annotations

import hashlib
import random
from typing import Any

RNG_SIM_STREAM_NAME = "rng_sim"


def derive_stream_seed(master_seed: int, stream_name: str) -> int:
    """Derive a deterministic child RNG seed from (master_seed, stream_name)."""
    digest = hashlib.sha256(f"{master_seed}:{stream_name}".encode("utf-8")).digest()
    return int.from_bytes(digest[:8], byteorder="big", signed=False)


def sim_stream(master_seed: int) -> random.Random:
    return random.Random(derive_stream_seed(master_seed=master_seed, stream_name=RNG_SIM_STREAM_NAME))


def _json_list_to_tuple(value: Any) -> Any:
    if isinstance(value, list):
        return tuple(_json_list_to_tuple(item) for item in value)
    return value


def rng_state_to_json(rng: random.Random) -> list[Any]:
    version, internal_state, gauss_next = rng.getstate()
    return [version, list(internal_state), gauss_next]


def restore_rng_state(rng: random.Random, payload: Any) -> None:
    if not isinstance(payload, (list, tuple)) or len(payload) != 3:
        raise ValueError("rng_state must be a [version, state, gauss_next] triple")
    rng.setstate(_json_list_to_tuple(payload))
