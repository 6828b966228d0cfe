import io
import os

from lucky_draw.services.sprite import default_position
from lucky_draw.services.template_service import clamp_percent


def _create(admin_client, name="Tree", total_slots=20):
    resp = admin_client.post("/api/admin/templates", json={"name": name, "total_slots": total_slots})
    assert resp.status_code == 201, resp.get_json()
    return resp.get_json()["data"]


def _upload(admin_client, template_id, kind, filename="bg.png", content=b"\x89PNG"):
    return admin_client.post(
        f"/api/admin/templates/{template_id}/images/{kind}",
        data={"file": (io.BytesIO(content), filename)},
        content_type="multipart/form-data",
    )


def test_clamp_percent():
    assert clamp_percent(12.345) == 12.35
    assert clamp_percent(-4) == 0
    assert clamp_percent(140) == 100
    assert clamp_percent(None) is None


def test_create_template_with_tree_slots(admin_client):
    template = _create(admin_client)

    assert template["is_default"] is False
    assert template["sprite_config"]["columns"] == 10
    assert len(template["slots"]) == 20
    first = template["slots"][0]
    assert (first["position_top"], first["position_left"]) == default_position(1)
    assert first["offset_x"] == first["offset_y"] == 0

    listed = admin_client.get("/api/admin/templates").get_json()["data"]
    assert [t["id"] for t in listed] == [template["id"]]


def test_update_template_and_sprite_config(admin_client):
    template = _create(admin_client)
    url = f"/api/admin/templates/{template['id']}"

    resp = admin_client.patch(url, json={"name": "Snowy", "sprite_config": {"columns": 8, "cellWidth": 120}})
    data = resp.get_json()["data"]
    assert data["name"] == "Snowy"
    assert data["sprite_config"]["columns"] == 8
    assert data["sprite_config"]["cellWidth"] == 120
    assert data["sprite_config"]["rows"] == 10

    assert admin_client.patch(url, json={"sprite_config": {"columns": 0}}).status_code == 400


def test_sprite_config_with_wrong_types_is_rejected(client, admin_client):
    template = _create(admin_client, total_slots=10)
    url = f"/api/admin/templates/{template['id']}"
    admin_client.post(f"{url}/default")
    game = admin_client.post("/api/admin/games", json={"name": "g", "total_slots": 10}).get_json()["data"]

    for bad in ({"offsetX": "10"}, {"columns": 2.5}):
        resp = admin_client.patch(url, json={"sprite_config": bad})
        assert resp.status_code == 400
        assert "sprite_config" in resp.get_json()["error"]["details"]

    assert admin_client.get(url).get_json()["data"]["sprite_config"]["columns"] == 10
    client.post("/api/player", json={"player_name": "Mina"})
    assert client.get(f"/game/{game['invite_code']}").status_code == 200


def test_only_one_default_template(admin_client):
    a = _create(admin_client, "a")
    b = _create(admin_client, "b")

    admin_client.post(f"/api/admin/templates/{a['id']}/default")
    admin_client.post(f"/api/admin/templates/{b['id']}/default")

    defaults = [t["name"] for t in admin_client.get("/api/admin/templates").get_json()["data"] if t["is_default"]]
    assert defaults == ["b"]


def test_update_slot_rounds_and_clamps(admin_client):
    template = _create(admin_client)
    slot = template["slots"][4]

    resp = admin_client.patch(
        f"/api/admin/templates/{template['id']}/slots/{slot['id']}",
        json={"position_top": 33.333, "position_left": 150, "offset_x": -6},
    )

    data = resp.get_json()["data"]
    assert data["position_top"] == 33.33
    assert data["position_left"] == 100
    assert data["offset_x"] == -6


def test_save_and_reset_positions(admin_client):
    template = _create(admin_client)
    url = f"/api/admin/templates/{template['id']}/positions"
    moved = [{"id": s["id"], "position_top": 10, "position_left": 90.126} for s in template["slots"][:2]]

    slots = admin_client.put(url, json={"slots": moved}).get_json()["data"]
    assert (slots[0]["position_top"], slots[0]["position_left"]) == (10, 90.13)
    assert slots[2]["position_top"] == default_position(3)[0]

    slots = admin_client.post(f"{url}/reset").get_json()["data"]
    assert (slots[0]["position_top"], slots[0]["position_left"]) == default_position(1)


def test_slot_of_another_template_is_not_found(admin_client):
    a = _create(admin_client, "a")
    b = _create(admin_client, "b")

    resp = admin_client.patch(
        f"/api/admin/templates/{a['id']}/slots/{b['slots'][0]['id']}", json={"offset_x": 1}
    )

    assert resp.status_code == 404


def test_image_upload_replaces_previous_object(app, admin_client):
    template = _create(admin_client)
    root = app.config["UPLOAD_FOLDER"]

    first = _upload(admin_client, template["id"], "background").get_json()["data"]["background_image"]
    second = _upload(admin_client, template["id"], "background", "bg2.jpg").get_json()["data"]["background_image"]

    assert first != second
    assert not os.path.exists(os.path.join(root, first[len("/media/"):]))
    assert os.path.exists(os.path.join(root, second[len("/media/"):]))

    assert _upload(admin_client, template["id"], "sprite", "notes.txt").status_code == 400
    assert _upload(admin_client, template["id"], "poster").status_code == 400

    data = admin_client.delete(f"/api/admin/templates/{template['id']}/images/background").get_json()["data"]
    assert data["background_image"] is None
    assert not os.path.exists(os.path.join(root, second[len("/media/"):]))


def test_new_game_uses_default_template_layout(admin_client):
    template = _create(admin_client, total_slots=10)
    slot = template["slots"][0]
    admin_client.patch(
        f"/api/admin/templates/{template['id']}/slots/{slot['id']}",
        json={"position_top": 40, "position_left": 60, "offset_x": 5},
    )
    admin_client.post(f"/api/admin/templates/{template['id']}/default")

    game = admin_client.post("/api/admin/games", json={"name": "g", "total_slots": 12}).get_json()["data"]
    prizes = admin_client.get(f"/api/admin/games/{game['id']}").get_json()["data"]["prizes"]

    assert game["template_id"] == template["id"]
    assert (prizes[0]["position_top"], prizes[0]["position_left"], prizes[0]["offset_x"]) == (40, 60, 5)
    # slots beyond the template fall back to the tree layout
    assert (prizes[11]["position_top"], prizes[11]["position_left"]) == default_position(12)


def test_apply_template_copies_layout(admin_client):
    game = admin_client.post("/api/admin/games", json={"name": "g", "total_slots": 10}).get_json()["data"]
    template = _create(admin_client, total_slots=10)
    slot = template["slots"][1]
    admin_client.patch(
        f"/api/admin/templates/{template['id']}/slots/{slot['id']}",
        json={"position_top": 70, "offset_y": -2},
    )

    resp = admin_client.post(f"/api/admin/games/{game['id']}/template", json={"template_id": template["id"]})

    assert resp.get_json()["data"]["template_id"] == template["id"]
    prizes = admin_client.get(f"/api/admin/games/{game['id']}").get_json()["data"]["prizes"]
    assert (prizes[1]["position_top"], prizes[1]["offset_y"]) == (70, -2)

    resp = admin_client.post(f"/api/admin/games/{game['id']}/template", json={"template_id": "missing"})
    assert resp.status_code == 404


def test_delete_template_detaches_games(admin_client):
    template = _create(admin_client, total_slots=10)
    admin_client.post(f"/api/admin/templates/{template['id']}/default")
    game = admin_client.post("/api/admin/games", json={"name": "g", "total_slots": 10}).get_json()["data"]

    assert admin_client.delete(f"/api/admin/templates/{template['id']}").status_code == 200

    assert admin_client.get(f"/api/admin/templates/{template['id']}").status_code == 404
    detail = admin_client.get(f"/api/admin/games/{game['id']}").get_json()["data"]
    assert detail["game"]["template_id"] is None


def test_game_state_carries_template(client, admin_client):
    template = _create(admin_client, total_slots=10)
    admin_client.patch(f"/api/admin/templates/{template['id']}", json={"sprite_config": {"columns": 5, "rows": 4}})
    admin_client.post(f"/api/admin/templates/{template['id']}/default")
    game = admin_client.post("/api/admin/games", json={"name": "g", "total_slots": 10}).get_json()["data"]

    state = client.get(f"/api/games/{game['invite_code']}").get_json()["data"]

    assert state["template"]["id"] == template["id"]
    assert state["sprite_config"]["columns"] == 5
    assert len(state["template"]["slots"]) == 10
