from __future__ import annotations

import argparse
import threading
from typing import Any, Mapping, Sequence

from flask import Flask, jsonify, render_template, request
from loguru import logger

from granary.cli.options import add_engine_arguments, load_rules, load_snapshot_if_present, resolve_seed
from granary.content.economy import EconomyRules
from granary.content.io import save_game_json
from granary.logs import configure_logging
from granary.sim.core import PlayerAction, Simulation, parse_contract_id
from granary.sim.events import DASHBOARD_EVENT_CAPACITY, EventType
from granary.sim.narrative import situation_summary
from granary.sim.world import World

DEFAULT_HOST = "127.0.0.1"
DEFAULT_PORT = 8080
DASHBOARD_STARTING_UNREST = 5
OPENING_TEXT = "The city stirs as merchants assess the granaries."
OPENING_SEVERITY = 2


def new_dashboard_simulation(seed: int, rules: EconomyRules) -> Simulation:
    world = World(grain_supply=rules.starting_grain, unrest=DASHBOARD_STARTING_UNREST)
    simulation = Simulation(seed=seed, rules=rules, world=world, event_capacity=DASHBOARD_EVENT_CAPACITY)
    simulation.record_event(EventType.OPENING, OPENING_SEVERITY, OPENING_TEXT)
    return simulation


def build_view(simulation: Simulation) -> dict[str, Any]:
    world = simulation.world
    return {
        "tick": simulation.state.tick,
        "world": world.to_dict(),
        "market_multiplier": simulation.market_multiplier(),
        "situation": situation_summary(world.grain_tier, world.unrest_tier),
        "contracts": [
            {**contract.to_dict(), "label": contract.label, "active": contract.is_active}
            for contract in simulation.ledger.contracts()
        ],
        "events": [event.to_dict() for event in reversed(simulation.event_log.entries())],
    }


def parse_action_request(values: Mapping[str, Any]) -> tuple[PlayerAction, int | None]:
    action = PlayerAction.parse(values.get("action"))
    return action, parse_contract_id(values.get("contract_id"))


class SharedSimulation:
    """One simulation served to concurrent requests.

    Every operation holds the lock for its whole duration, snapshot writes
    included, so requests never observe a world mid-tick.
    """

    def __init__(self, simulation: Simulation, *, save_path: str | None = None) -> None:
        self._simulation = simulation
        self._save_path = save_path
        self._lock = threading.Lock()

    def view(self) -> dict[str, Any]:
        with self._lock:
            return build_view(self._simulation)

    def submit(self, action: PlayerAction, contract_id: int | None = None) -> dict[str, Any]:
        with self._lock:
            events = self._simulation.apply_action(action, contract_id)
            logger.info(
                f"action={action.value} contract_id={contract_id} tick={self._simulation.state.tick} "
                f"events={len(events)}"
            )
            if self._save_path:
                save_game_json(self._save_path, self._simulation)
            return build_view(self._simulation)


def create_app(shared: SharedSimulation) -> Flask:
    app = Flask(__name__)
    app.config["SHARED_SIMULATION"] = shared

    @app.get("/")
    def index():
        return render_template("index.html", view=shared.view())

    @app.get("/status")
    def status():
        return render_template("fragments.html", view=shared.view())

    @app.post("/action")
    def action():
        try:
            player_action, contract_id = parse_action_request(request.form)
        except ValueError as exc:
            logger.warning(f"rejected action form: {exc}")
            return str(exc), 400
        return render_template("fragments.html", view=shared.submit(player_action, contract_id))

    @app.get("/api/state")
    def api_state():
        return jsonify(shared.view())

    @app.post("/api/action")
    def api_action():
        values = request.get_json(silent=True)
        if not isinstance(values, dict):
            values = request.form
        try:
            player_action, contract_id = parse_action_request(values)
        except ValueError as exc:
            logger.warning(f"rejected action payload: {exc}")
            return jsonify({"error": str(exc)}), 400
        return jsonify(shared.submit(player_action, contract_id))

    return app


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="granary-dashboard", description="Shared-world grain and unrest dashboard.")
    add_engine_arguments(parser, default_log_level="INFO")
    parser.add_argument("--host", default=DEFAULT_HOST, help="Interface to bind.")
    parser.add_argument("--port", type=int, default=DEFAULT_PORT, help="Port to listen on.")
    parser.add_argument(
        "--save-path",
        default=None,
        help="Snapshot JSON resumed at startup when present and rewritten after every action.",
    )
    parser.add_argument("--log-file", default=None, help="Optional rotating log file.")
    return parser


def main(argv: Sequence[str] | None = None) -> int:
    args = _build_parser().parse_args(argv)
    configure_logging(args.log_level, log_file=args.log_file)

    simulation = load_snapshot_if_present(args.save_path)
    if simulation is None:
        seed = resolve_seed(args.seed)
        simulation = new_dashboard_simulation(seed, load_rules(args.rules))
        logger.info(f"new world seed={seed}")

    app = create_app(SharedSimulation(simulation, save_path=args.save_path))
    logger.info(f"listening on http://{args.host}:{args.port}")
    app.run(host=args.host, port=args.port, threaded=True)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
