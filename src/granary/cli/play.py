from __future__ import annotations

import argparse
import sys
from typing import Callable, Iterable, Sequence

from granary.cli.options import add_engine_arguments, load_rules, load_snapshot_if_present, resolve_seed
from granary.content.io import save_game_json
from granary.logs import configure_logging
from granary.sim.core import Simulation
from granary.sim.events import Event

USAGE_TEXT = "Unknown command. Available: advance, status, quit"
NO_EVENTS_TEXT = "(no events today)"


def render_tick(simulation: Simulation, events: Sequence[Event], write: Callable[[str], None] = print) -> None:
    world = simulation.world
    write(f"Day {world.day} - {world.subphase.value}")
    if not events:
        write(NO_EVENTS_TEXT)
        return
    for event in events:
        write(event.text)


def render_status(simulation: Simulation, write: Callable[[str], None] = print) -> None:
    world = simulation.world
    write(f"Day {world.day} - {world.subphase.value}")
    write(f"Grain: {world.grain_supply} ({world.grain_tier.value})")
    write(f"Unrest: {world.unrest} ({world.unrest_tier.value})")
    write(f"Restricted markets ticks: {world.restricted_markets_ticks}")
    contracts = simulation.ledger.contracts()
    if not contracts:
        write("Contracts: none")
        return
    write("Contracts:")
    for contract in contracts:
        write(
            f"- #{contract.contract_id} {contract.contract_type.value} "
            f"({contract.status.value}), deadline: {contract.deadline_ticks}"
        )


def run_command_loop(
    simulation: Simulation,
    lines: Iterable[str],
    write: Callable[[str], None] = print,
) -> None:
    """Drive the simulation from text commands until ``quit`` or end of input."""
    for raw_line in lines:
        command = raw_line.strip().lower()
        if not command:
            continue
        if command == "advance":
            render_tick(simulation, simulation.advance(), write)
        elif command == "status":
            render_status(simulation, write)
        elif command == "quit":
            return
        else:
            write(USAGE_TEXT)


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="granary-play", description="Turn-by-turn grain and unrest prototype.")
    add_engine_arguments(parser, default_log_level="WARNING")
    parser.add_argument(
        "--load-save",
        default=None,
        help="Snapshot JSON to resume from when it exists; --seed and --rules are then taken from it.",
    )
    parser.add_argument("--save-path", default=None, help="Write a snapshot here when the session ends.")
    return parser


def main(argv: Sequence[str] | None = None) -> int:
    args = _build_parser().parse_args(argv)
    configure_logging(args.log_level)

    simulation = load_snapshot_if_present(args.load_save)
    if simulation is None:
        simulation = Simulation(seed=resolve_seed(args.seed), rules=load_rules(args.rules))

    run_command_loop(simulation, sys.stdin)

    if args.save_path:
        save_game_json(args.save_path, simulation)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
