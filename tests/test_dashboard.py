import threading
from pathlib import Path

import pytest

from granary.cli.dashboard import (
    OPENING_TEXT,
    SharedSimulation,
    build_view,
    create_app,
    new_dashboard_simulation,
    parse_action_request,
)
from granary.content.economy import DEFAULT_ECONOMY_RULES
from granary.content.io import load_game_json
from granary.sim.core import PlayerAction
from granary.sim.events import DASHBOARD_EVENT_CAPACITY, EventType


def _make_shared(save_path: Path | None = None) -> SharedSimulation:
    simulation = new_dashboard_simulation(seed=5, rules=DEFAULT_ECONOMY_RULES)
    return SharedSimulation(simulation, save_path=str(save_path) if save_path else None)


@pytest.fixture
def client():
    app = create_app(_make_shared())
    app.config["TESTING"] = True
    return app.test_client()


def test_new_dashboard_world_opens_with_event() -> None:
    simulation = new_dashboard_simulation(seed=5, rules=DEFAULT_ECONOMY_RULES)

    assert simulation.world.unrest == 5
    assert simulation.event_log.capacity == DASHBOARD_EVENT_CAPACITY
    [opening] = simulation.event_log.entries()
    assert (opening.event_type, opening.severity, opening.text) == (EventType.OPENING, 2, OPENING_TEXT)


def test_build_view_lists_newest_events_first() -> None:
    simulation = new_dashboard_simulation(seed=5, rules=DEFAULT_ECONOMY_RULES)
    simulation.apply_action(PlayerAction.INVESTIGATE)

    view = build_view(simulation)

    assert view["tick"] == 1
    assert view["events"][-1]["text"] == OPENING_TEXT
    assert view["events"][0]["event_id"] > view["events"][-1]["event_id"]
    assert view["world"]["subphase"] == "Evening"
    assert isinstance(view["situation"], str)


def test_parse_action_request() -> None:
    assert parse_action_request({"action": "accept", "contract_id": "C003"}) == (PlayerAction.ACCEPT, 3)
    assert parse_action_request({"action": "advance"}) == (PlayerAction.ADVANCE, None)
    with pytest.raises(ValueError):
        parse_action_request({})


def test_index_renders_world_and_opening_event(client) -> None:
    response = client.get("/")

    body = response.get_data(as_text=True)
    assert response.status_code == 200
    assert "Black Granary" in body
    assert "Day 1 - Morning" in body
    assert "Unrest: 5 (Calm)" in body
    assert OPENING_TEXT in body


def test_status_fragment_includes_out_of_band_event_log(client) -> None:
    response = client.get("/status")

    body = response.get_data(as_text=True)
    assert response.status_code == 200
    assert 'id="event-log"' in body
    assert "<html" not in body


def test_api_state_returns_json_view(client) -> None:
    payload = client.get("/api/state").get_json()

    assert payload["tick"] == 0
    assert payload["world"]["day"] == 1
    assert payload["world"]["unrest"] == 5
    assert payload["market_multiplier"] == 1.0
    assert payload["contracts"] == []
    assert payload["events"][0]["event_type"] == "Opening"


def test_api_action_advances_one_tick(client) -> None:
    response = client.post("/api/action", json={"action": "advance"})

    payload = response.get_json()
    assert response.status_code == 200
    assert payload["tick"] == 1
    assert payload["world"]["subphase"] == "Evening"
    assert "Time passes under mounting pressure." in [event["text"] for event in payload["events"]]


def test_form_action_returns_fragment(client) -> None:
    response = client.post("/action", data={"action": "investigate"})

    body = response.get_data(as_text=True)
    assert response.status_code == 200
    assert "[You] investigate rumors around the supply routes." in body
    assert "Day 1 - Evening" in body


def test_bad_form_action_is_rejected_without_ticking(client) -> None:
    response = client.post("/action", data={"action": "bribe"})

    assert response.status_code == 400
    assert "unknown action" in response.get_data(as_text=True)
    assert client.get("/api/state").get_json()["tick"] == 0


def test_bad_contract_id_is_rejected_as_json(client) -> None:
    response = client.post("/api/action", json={"action": "accept", "contract_id": "abc"})

    assert response.status_code == 400
    assert "contract_id" in response.get_json()["error"]
    assert client.get("/api/state").get_json()["tick"] == 0


def test_accepting_unknown_contract_still_ticks(client) -> None:
    payload = client.post("/api/action", json={"action": "accept", "contract_id": "C042"}).get_json()

    assert payload["tick"] == 1
    assert all(event["event_type"] != "PlayerAction" for event in payload["events"])


def test_wrong_method_is_not_allowed(client) -> None:
    assert client.get("/action").status_code == 405
    assert client.post("/api/state").status_code == 405


def test_submit_persists_snapshot(tmp_path: Path) -> None:
    save_path = tmp_path / "world.json"
    shared = _make_shared(save_path)

    shared.submit(PlayerAction.ADVANCE)

    resumed = load_game_json(save_path)
    assert resumed.state.tick == 1
    assert resumed.world.unrest == shared.view()["world"]["unrest"]
    assert resumed.event_log.capacity == DASHBOARD_EVENT_CAPACITY


def test_concurrent_submissions_are_serialised() -> None:
    shared = _make_shared()

    threads = [threading.Thread(target=shared.submit, args=(PlayerAction.ADVANCE,)) for _ in range(10)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    view = shared.view()
    assert view["tick"] == 10
    assert (view["world"]["day"], view["world"]["subphase"]) == (6, "Morning")
    time_passes = [event for event in view["events"] if event["event_type"] == "TimePasses"]
    assert len(time_passes) == 10
