from __future__ import annotations

from fastapi.testclient import TestClient

from raichess.engine.board import STARTPOS_FEN, STARTPOS_PLACEMENT
from raichess.protocol.http.app import create_app


def _client() -> TestClient:
    return TestClient(create_app(synchronous_engine=True))


def _new_game(client: TestClient, **cfg) -> str:
    r = client.post("/api/games", json=cfg) if cfg else client.post("/api/games")
    assert r.status_code == 200
    body = r.json()
    assert body["placement"]
    return body["game_id"]


def test_healthz_echoes_request_id() -> None:
    client = _client()
    r = client.get("/healthz")
    assert r.status_code == 200
    assert r.json() == {"status": "ok"}
    assert r.headers["x-request-id"]

    r = client.get("/healthz", headers={"x-request-id": "abc-123"})
    assert r.headers["x-request-id"] == "abc-123"


def test_new_game_state() -> None:
    client = _client()
    gid = _new_game(client)
    r = client.get(f"/api/games/{gid}/state")
    assert r.status_code == 200
    state = r.json()
    assert state["game_id"] == gid
    assert state["placement"] == STARTPOS_PLACEMENT
    assert state["side_to_move"] == "white"
    assert state["phase"] == "idle"
    assert state["in_check"] is False
    assert state["result"] is None
    assert state["config"] == {
        "vs_ai": True,
        "ai_color": "black",
        "ai_skill": "casual",
        "self_play": False,
    }


def test_select_lists_targets() -> None:
    client = _client()
    gid = _new_game(client, vs_ai=False)
    r = client.post(f"/api/games/{gid}/select", json={"square": "e2"})
    assert r.status_code == 200
    state = r.json()
    assert state["phase"] == "selected"
    assert state["selected"] == "e2"
    assert state["legal_targets"] == ["e3", "e4"]

    r = client.post(f"/api/games/{gid}/select", json={"square": "z9"})
    assert r.status_code == 400
    assert r.json()["error"]["code"] == "bad_request"


def test_move_gets_engine_reply() -> None:
    client = _client()
    gid = _new_game(client, ai_skill="beginner")
    r = client.post(f"/api/games/{gid}/move", json={"move": "e2e4"})
    assert r.status_code == 200
    state = r.json()
    assert state["side_to_move"] == "white"
    assert state["last_move"] != "e2e4"
    assert state["phase"] == "idle"


def test_engine_opens_as_white() -> None:
    client = _client()
    gid = _new_game(client, ai_color="white", ai_skill="beginner")
    state = client.get(f"/api/games/{gid}/state").json()
    assert state["side_to_move"] == "black"
    assert state["last_move"] is not None


def test_illegal_and_malformed_moves() -> None:
    client = _client()
    gid = _new_game(client, vs_ai=False)
    r = client.post(f"/api/games/{gid}/move", json={"move": "e2e5"})
    assert r.status_code == 400
    assert r.json()["error"]["message"] == "illegal move"

    r = client.post(f"/api/games/{gid}/move", json={"move": "zz"})
    assert r.status_code == 400

    state = client.get(f"/api/games/{gid}/state").json()
    assert state["placement"] == STARTPOS_PLACEMENT


def test_unknown_game_is_404() -> None:
    r = _client().get("/api/games/nope/state")
    assert r.status_code == 404
    err = r.json()["error"]
    assert err["code"] == "not_found"
    assert err["type"] == "client_error"
    assert err["request_id"]


def test_promotion_flow() -> None:
    client = _client()
    gid = _new_game(client, vs_ai=False)
    r = client.post(f"/api/games/{gid}/position", json={"fen": "4k3/P7/8/8/8/8/8/4K3 w - - 0 1"})
    assert r.status_code == 200

    state = client.post(f"/api/games/{gid}/move", json={"move": "a7a8"}).json()
    assert state["phase"] == "pending_promotion"
    assert state["pending_promotion"] == {"from_sq": "a7", "to_sq": "a8", "color": "white"}

    r = client.post(f"/api/games/{gid}/move", json={"move": "e1e2"})
    assert r.status_code == 409
    assert r.json()["error"]["code"] == "conflict"

    state = client.post(f"/api/games/{gid}/promotion", json={"piece": "rook"}).json()
    assert state["placement"] == "R3k3/8/8/8/8/8/8/4K3"
    assert state["side_to_move"] == "black"
    assert state["in_check"] is True

    r = client.post(f"/api/games/{gid}/promotion", json={"piece": "queen"})
    assert r.status_code == 409


def test_promotion_in_move_string() -> None:
    client = _client()
    gid = _new_game(client, vs_ai=False)
    client.post(f"/api/games/{gid}/position", json={"fen": "4k3/P7/8/8/8/8/8/4K3 w - - 0 1"})
    state = client.post(f"/api/games/{gid}/move", json={"move": "a7a8n"}).json()
    assert state["placement"] == "N3k3/8/8/8/8/8/8/4K3"
    assert state["pending_promotion"] is None


def test_position_import() -> None:
    client = _client()
    gid = _new_game(client, vs_ai=False)
    state = client.post(f"/api/games/{gid}/position", json={"fen": "garbage w"}).json()
    assert state["placement"] == STARTPOS_PLACEMENT
    assert state["side_to_move"] == "white"

    state = client.post(
        f"/api/games/{gid}/position", json={"fen": "7k/6Q1/6K1/8/8/8/8/8 b - - 0 1"}
    ).json()
    assert state["phase"] == "game_over"
    assert state["result"] == {"kind": "checkmate", "winner": "white"}

    r = client.post(f"/api/games/{gid}/move", json={"move": "h8g8"})
    assert r.status_code == 409

    r = client.post(f"/api/games/{gid}/position", json={"fen": "   "})
    assert r.status_code == 400


def test_reset_and_config() -> None:
    client = _client()
    gid = _new_game(client, vs_ai=False)
    client.post(f"/api/games/{gid}/move", json={"move": "d2d4"})
    state = client.post(f"/api/games/{gid}/reset").json()
    assert state["placement"] == STARTPOS_PLACEMENT
    assert state["last_move"] is None

    state = client.post(f"/api/games/{gid}/config", json={"ai_skill": "expert"}).json()
    assert state["config"]["ai_skill"] == "expert"
    assert state["config"]["vs_ai"] is False

    r = client.post(f"/api/games/{gid}/config", json={"ai_skill": "wizard"})
    assert r.status_code == 422


def test_search_endpoint() -> None:
    client = _client()
    gid = _new_game(client)
    r = client.post(f"/api/games/{gid}/search", json={"depth": 2, "time_limit": 10})
    assert r.status_code == 200
    body = r.json()
    assert set(body) == {"best_move", "score", "depth", "nodes", "qnodes", "time_ms", "iters"}
    assert body["depth"] == 2
    assert len(body["best_move"]) == 4
    assert [it["depth"] for it in body["iters"]] == [1, 2]

    # Search is advisory; the game does not move
    state = client.get(f"/api/games/{gid}/state").json()
    assert state["placement"] == STARTPOS_PLACEMENT


def test_search_validation_envelope() -> None:
    client = _client()
    gid = _new_game(client)
    r = client.post(f"/api/games/{gid}/search", json={"depth": 9})
    assert r.status_code == 422
    err = r.json()["error"]
    assert err["code"] == "unprocessable_entity"
    assert err["message"] == "Validation error"
    assert any(fe["field"].endswith("depth") for fe in err["field_errors"])


def test_perft_endpoint() -> None:
    client = _client()
    r = client.post("/api/perft", json={"fen": STARTPOS_FEN, "depth": 2})
    assert r.status_code == 200
    assert r.json() == {"nodes": 400}

    assert client.post("/api/perft", json={"depth": 2}).status_code == 400
    assert client.post("/api/perft", json={"fen": STARTPOS_FEN, "depth": 9}).status_code == 400
    assert client.post("/api/perft", json={"fen": STARTPOS_FEN, "depth": "x"}).status_code == 400


def test_delete_game() -> None:
    client = _client()
    gid = _new_game(client)
    r = client.delete(f"/api/games/{gid}")
    assert r.status_code == 200
    assert r.json() == {"deleted": True}
    assert client.get(f"/api/games/{gid}/state").status_code == 404
    assert client.delete(f"/api/games/{gid}").status_code == 404
