import io
import os
import re

import pytest
from sqlalchemy import select
from werkzeug.datastructures import FileStorage

from lucky_draw.errors import ValidationError
from lucky_draw.models.game import Game
from lucky_draw.services.admin_game_service import AdminGameService
from lucky_draw.storage import (
    AUDIO_EXTENSIONS,
    LocalStorage,
    S3Storage,
    build_key,
    file_extension,
    remove_object,
    replace_object,
    store_upload,
)


class _FakeS3Client:
    def __init__(self):
        self.objects = {}

    def put_object(self, Bucket, Key, Body, **extra):
        self.objects[(Bucket, Key)] = (Body.read(), extra)

    def delete_object(self, Bucket, Key):
        self.objects.pop((Bucket, Key), None)


def _s3(public_base_url=""):
    storage = S3Storage.__new__(S3Storage)
    storage._bucket = "draw-assets"
    storage._client = _FakeS3Client()
    storage._base = (public_base_url or "https://draw-assets.s3.ap-northeast-2.amazonaws.com").rstrip("/")
    return storage


def _upload(filename, content=b"data", mimetype="application/octet-stream"):
    return FileStorage(stream=io.BytesIO(content), filename=filename, content_type=mimetype)


def test_build_key_and_extension():
    assert re.fullmatch(r"game-1/bgm_\d{13}\.mp3", build_key("game-1", "bgm", "mp3"))
    assert file_extension("Carol.MP3") == "mp3"
    assert file_extension("../../etc/passwd") == ""
    assert file_extension(None) == ""


def test_local_put_and_delete(tmp_path):
    storage = LocalStorage(str(tmp_path))

    url = storage.put("t1/background_1.png", io.BytesIO(b"png"))

    assert url == "/media/t1/background_1.png"
    assert (tmp_path / "t1" / "background_1.png").read_bytes() == b"png"
    assert storage.key_from_url(url) == "t1/background_1.png"
    assert storage.key_from_url("https://elsewhere.example.com/x.png") is None

    storage.delete("t1/background_1.png")
    storage.delete("t1/background_1.png")
    assert not (tmp_path / "t1" / "background_1.png").exists()


def test_local_rejects_escaping_keys(tmp_path):
    with pytest.raises(ValidationError):
        LocalStorage(str(tmp_path)).put("../outside.png", io.BytesIO(b"x"))


def test_store_upload_validates_file(tmp_path):
    storage = LocalStorage(str(tmp_path))

    with pytest.raises(ValidationError):
        store_upload(storage, None, "g", "bgm", AUDIO_EXTENSIONS)
    with pytest.raises(ValidationError):
        store_upload(storage, _upload(""), "g", "bgm", AUDIO_EXTENSIONS)
    with pytest.raises(ValidationError):
        store_upload(storage, _upload("song.exe"), "g", "bgm", AUDIO_EXTENSIONS)


class _BrokenPutStorage(LocalStorage):
    def put(self, key, stream, content_type=None):
        raise OSError("disk full")


def _seed(storage, key, content=b"old"):
    return storage.put(key, io.BytesIO(content))


def test_replaced_object_is_deleted_on_commit(tmp_path, db_session, make_game):
    storage = LocalStorage(str(tmp_path / "media"))
    game = make_game()
    old = _seed(storage, f"{game.id}/bgm_1.mp3")
    db_session.execute(select(Game.id))

    new = store_upload(storage, _upload("b.ogg", b"new"), game.id, "bgm", AUDIO_EXTENSIONS)
    replace_object(db_session, storage, old, new)
    assert os.path.exists(os.path.join(storage.root, storage.key_from_url(old)))

    db_session.commit()

    assert not os.path.exists(os.path.join(storage.root, storage.key_from_url(old)))
    assert os.path.exists(os.path.join(storage.root, storage.key_from_url(new)))


def test_rollback_keeps_old_object_and_drops_new_one(tmp_path, db_session, make_game):
    storage = LocalStorage(str(tmp_path / "media"))
    game = make_game()
    old = _seed(storage, f"{game.id}/bgm_1.mp3")
    db_session.execute(select(Game.id))

    new = store_upload(storage, _upload("b.ogg", b"new"), game.id, "bgm", AUDIO_EXTENSIONS)
    replace_object(db_session, storage, old, new)
    db_session.rollback()

    assert os.path.exists(os.path.join(storage.root, storage.key_from_url(old)))
    assert not os.path.exists(os.path.join(storage.root, storage.key_from_url(new)))


def test_failed_put_leaves_current_object_alone(tmp_path, db_session, make_game):
    storage = _BrokenPutStorage(str(tmp_path / "media"))
    game = make_game()
    old = LocalStorage.put(storage, f"{game.id}/bgm_1.mp3", io.BytesIO(b"old"))
    game.bgm_url = old
    db_session.commit()

    with pytest.raises(OSError):
        AdminGameService().upload_bgm(db_session, storage, game.id, _upload("b.mp3"))
    db_session.rollback()

    assert os.path.exists(os.path.join(storage.root, storage.key_from_url(old)))
    assert db_session.get(Game, game.id).bgm_url == old


def test_removal_waits_for_commit(tmp_path, db_session, make_game):
    storage = LocalStorage(str(tmp_path / "media"))
    game = make_game()
    game.bgm_url = _seed(storage, f"{game.id}/bgm_1.mp3")
    db_session.commit()
    path = os.path.join(storage.root, storage.key_from_url(game.bgm_url))

    AdminGameService().remove_bgm(db_session, storage, game.id)
    assert os.path.exists(path)
    db_session.rollback()
    assert os.path.exists(path)

    AdminGameService().remove_bgm(db_session, storage, game.id)
    db_session.commit()
    assert not os.path.exists(path)


def test_s3_urls_and_objects():
    storage = _s3()

    url = store_upload(storage, _upload("carol.mp3", b"la", "audio/mpeg"), "g1", "bgm", AUDIO_EXTENSIONS)

    assert url.startswith("https://draw-assets.s3.ap-northeast-2.amazonaws.com/g1/bgm_")
    key = storage.key_from_url(url)
    body, extra = storage._client.objects[("draw-assets", key)]
    assert body == b"la"
    assert extra["ContentType"] == "audio/mpeg"

    remove_object(storage, url)
    assert storage._client.objects == {}


def test_s3_custom_public_base():
    storage = _s3("https://cdn.example.com/")

    assert storage.public_url("a/b.png") == "https://cdn.example.com/a/b.png"
    assert storage.key_from_url("https://cdn.example.com/a/b.png") == "a/b.png"
    assert storage.key_from_url("/media/a/b.png") is None


def test_media_route_serves_local_uploads(app, client):
    storage = LocalStorage(app.config["UPLOAD_FOLDER"])
    url = storage.put("t/sprite_1.png", io.BytesIO(b"img"))

    resp = client.get(url)

    assert resp.status_code == 200
    assert resp.data == b"img"
    assert client.get("/media/t/missing.png").status_code == 404
