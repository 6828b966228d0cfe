import re

from lucky_draw.models.game import GameStatus
from lucky_draw.realtime import game_channel


def _join(client, name="Mina"):
    resp = client.post("/api/player", json={"player_name": name})
    assert resp.status_code == 200
    return resp.get_json()["data"]


def test_player_session_lifecycle(client):
    first = client.get("/api/player").get_json()["data"]
    assert re.fullmatch(r"session_\d+_[a-z0-9]{13}", first["session_id"])
    assert first["player_name"] is None
    assert first["popup_seen"] is False

    assert client.get("/api/player").get_json()["data"]["session_id"] == first["session_id"]

    joined = _join(client, "  Mina  ")
    assert joined["player_name"] == "Mina"

    client.post("/api/player/popup-seen")
    assert client.get("/api/player").get_json()["data"]["popup_seen"] is True

    client.delete("/api/player")
    cleared = client.get("/api/player").get_json()["data"]
    assert cleared["player_name"] is None
    assert cleared["session_id"] != first["session_id"]


def test_player_name_length_is_validated(client):
    for name in ("A", "ABCDEFGHIJK"):
        resp = client.post("/api/player", json={"player_name": name})
        body = resp.get_json()
        assert resp.status_code == 400
        assert body["success"] is False
        assert body["error"]["code"] == "validation_error"
        assert "player_name" in body["error"]["details"]


def test_game_state_by_invite_code_is_case_insensitive(client, make_game):
    game = make_game(total_slots=12)

    resp = client.get(f"/api/games/{game.invite_code.lower()}")

    assert resp.status_code == 200
    data = resp.get_json()["data"]
    assert data["game"]["id"] == game.id
    assert [p["slot_number"] for p in data["prizes"]] == list(range(1, 13))
    assert data["stats"] == {
        "total_slots": 12,
        "drawn_slots": 0,
        "remaining_slots": 12,
        "participants": 0,
        "prize_winners": 0,
        "prize_count": 0,
        "remaining_prizes": 0,
    }
    assert data["my_draw"] is None
    assert data["sprite_config"]["columns"] == 10


def test_unknown_and_reserved_invite_codes(client):
    assert client.get("/api/games/ZZZZZZ").status_code == 404
    assert client.get("/api/games/admin").status_code == 404


def test_draw_via_api(client, make_game):
    game = make_game()
    _join(client)

    resp = client.post(f"/api/games/{game.invite_code}/draw", json={"slot_number": 5})

    assert resp.status_code == 201
    body = resp.get_json()
    assert body["success"] is True
    assert body["data"]["slot_number"] == 5
    assert body["data"]["is_winner"] is False

    state = client.get(f"/api/games/{game.invite_code}").get_json()["data"]
    assert state["my_draw"]["player_name"] == "Mina"
    assert state["stats"]["drawn_slots"] == 1
    assert state["stats"]["participants"] == 1

    slot = client.get(f"/api/games/{game.invite_code}/slots/5").get_json()["data"]
    assert slot["prize"]["is_drawn"] is True
    assert slot["draw"]["player_name"] == "Mina"

    mine = client.get(f"/api/games/{game.invite_code}/my-draw").get_json()["data"]
    assert mine["prize_id"] == slot["prize"]["id"]


def test_second_draw_is_rejected_with_envelope(client, make_game):
    game = make_game()
    _join(client)
    client.post(f"/api/games/{game.invite_code}/draw", json={"slot_number": 1})

    resp = client.post(f"/api/games/{game.invite_code}/draw", json={"slot_number": 2})

    assert resp.status_code == 409
    error = resp.get_json()["error"]
    assert error["code"] == "ALREADY_PARTICIPATED"
    assert error["details"]["success"] is False


def test_draw_without_name(client, make_game):
    game = make_game()

    resp = client.post(f"/api/games/{game.invite_code}/draw", json={"slot_number": 1})

    assert resp.status_code == 400
    assert resp.get_json()["error"]["code"] == "NO_PLAYER_NAME"


def test_draw_when_game_not_started(client, make_game):
    game = make_game(status=GameStatus.WAITING.value)
    _join(client)

    resp = client.post(f"/api/games/{game.invite_code}/draw", json={"slot_number": 1})

    assert resp.status_code == 409
    assert resp.get_json()["error"]["code"] == "GAME_NOT_ACTIVE"


def test_two_players_cannot_take_the_same_slot(app, make_game):
    game = make_game()
    first, second = app.test_client(), app.test_client()
    _join(first, "Mina")
    _join(second, "Joon")

    assert first.post(f"/api/games/{game.invite_code}/draw", json={"slot_number": 3}).status_code == 201
    resp = second.post(f"/api/games/{game.invite_code}/draw", json={"slot_number": 3})

    assert resp.status_code == 409
    assert resp.get_json()["error"]["code"] == "ALREADY_DRAWN"
    assert second.post(f"/api/games/{game.invite_code}/draw", json={"slot_number": 4}).status_code == 201


def test_broadcast_is_relayed_to_others(client, make_game, hub):
    game = make_game()
    sid = client.get("/api/player").get_json()["data"]["session_id"]
    mine = hub.subscribe(game_channel(game.id), session_id=sid)
    theirs = hub.subscribe(game_channel(game.id), session_id="someone_else")

    resp = client.post(f"/api/games/{game.id}/broadcast", json={"event": "game_updated", "payload": {"x": 1}})

    assert resp.status_code == 202
    assert mine.pending() == 0
    message = theirs.get(timeout=0)
    assert message.event == "game_updated"
    assert message.payload == {"x": 1}


def test_broadcast_rejects_unknown_events(client, make_game):
    game = make_game()

    resp = client.post(f"/api/games/{game.id}/broadcast", json={"event": "explode"})

    assert resp.status_code == 400


def test_events_endpoint_for_unknown_game(client):
    assert client.get("/api/games/nope/events").status_code == 404


def test_health(client):
    assert client.get("/health").get_json()["data"]["status"] == "ok"


def test_draw_request_name_follows_the_name_rule(client, make_game):
    game = make_game()

    for name in ("A", "X" * 40):
        resp = client.post(f"/api/games/{game.invite_code}/draw", json={"slot_number": 1, "player_name": name})
        assert resp.status_code == 400
        assert "player_name" in resp.get_json()["error"]["details"]

    resp = client.post(f"/api/games/{game.invite_code}/draw", json={"slot_number": 1, "player_name": "  Joon  "})
    assert resp.status_code == 201
    mine = client.get(f"/api/games/{game.invite_code}/my-draw").get_json()["data"]
    assert mine["player_name"] == "Joon"


def test_blank_draw_name_falls_back_to_the_session(client, make_game):
    game = make_game()
    _join(client)

    resp = client.post(f"/api/games/{game.invite_code}/draw", json={"slot_number": 2, "player_name": "   "})

    assert resp.status_code == 201
    assert client.get(f"/api/games/{game.invite_code}/my-draw").get_json()["data"]["player_name"] == "Mina"
