from __future__ import annotations

import argparse
import time
from pathlib import Path

from loguru import logger

from granary.content.economy import DEFAULT_ECONOMY_RULES, EconomyRules, load_economy_rules_json
from granary.content.io import load_game_json
from granary.sim.core import Simulation

LOG_LEVELS = ("TRACE", "DEBUG", "INFO", "SUCCESS", "WARNING", "ERROR", "CRITICAL")


def resolve_seed(seed: int) -> int:
    """Seed 0 asks for a wall-clock seed; any other value is used as given."""
    if seed != 0:
        return seed
    return time.time_ns()


def add_engine_arguments(parser: argparse.ArgumentParser, *, default_log_level: str) -> None:
    parser.add_argument("--seed", type=int, default=0, help="RNG seed; 0 derives one from the current time.")
    parser.add_argument("--rules", default=None, help="Optional economy rules JSON overriding the defaults.")
    parser.add_argument(
        "--log-level",
        default=default_log_level,
        type=str.upper,
        choices=LOG_LEVELS,
        help="loguru level for diagnostics written to stderr.",
    )


def load_rules(path: str | None) -> EconomyRules:
    if path is None:
        return DEFAULT_ECONOMY_RULES
    return load_economy_rules_json(path)


def load_snapshot_if_present(path: str | None) -> Simulation | None:
    if path is None or not Path(path).exists():
        return None
    logger.info(f"resuming from snapshot path={path}")
    return load_game_json(path)
