"""Object storage for uploaded template images and background music.

Two backends share one interface: files under ``UPLOAD_FOLDER`` served from
``/media/<key>``, or an S3 bucket addressed through boto3.
"""

from __future__ import annotations

import logging
import os
import shutil
import time
from functools import partial
from typing import IO, Protocol

from flask import Flask
from sqlalchemy.orm import Session
from werkzeug.datastructures import FileStorage
from werkzeug.utils import safe_join, secure_filename

from lucky_draw.db import run_after_commit, run_after_rollback
from lucky_draw.errors import ValidationError

logger = logging.getLogger(__name__)

IMAGE_EXTENSIONS = frozenset({"png", "jpg", "jpeg", "gif", "webp", "svg"})
AUDIO_EXTENSIONS = frozenset({"mp3", "ogg", "wav", "m4a"})


class Storage(Protocol):
    def put(self, key: str, stream: IO[bytes], content_type: str | None = None) -> str: ...

    def delete(self, key: str) -> None: ...

    def public_url(self, key: str) -> str: ...

    def key_from_url(self, url: str | None) -> str | None: ...


def _key_after(prefix: str, url: str | None) -> str | None:
    if not url or not prefix or not url.startswith(prefix):
        return None
    key = url[len(prefix):].lstrip("/")
    return key or None


class LocalStorage:
    def __init__(self, root: str, url_prefix: str = "/media") -> None:
        self._root = os.path.abspath(root)
        self._prefix = url_prefix.rstrip("/")

    @property
    def root(self) -> str:
        return self._root

    def _path(self, key: str) -> str:
        path = safe_join(self._root, key)
        if path is None:
            raise ValidationError("Invalid storage key", details={"key": key})
        return path

    def put(self, key: str, stream: IO[bytes], content_type: str | None = None) -> str:
        path = self._path(key)
        os.makedirs(os.path.dirname(path), exist_ok=True)
        with open(path, "wb") as fh:
            shutil.copyfileobj(stream, fh)
        return self.public_url(key)

    def delete(self, key: str) -> None:
        try:
            os.remove(self._path(key))
        except FileNotFoundError:
            logger.info("Storage object already gone: %s", key)

    def public_url(self, key: str) -> str:
        return f"{self._prefix}/{key}"

    def key_from_url(self, url: str | None) -> str | None:
        return _key_after(self._prefix + "/", url)


class S3Storage:
    def __init__(self, bucket: str, region: str, public_base_url: str = "") -> None:
        import boto3

        self._bucket = bucket
        self._client = boto3.client("s3", region_name=region)
        self._base = (public_base_url or f"https://{bucket}.s3.{region}.amazonaws.com").rstrip("/")

    def put(self, key: str, stream: IO[bytes], content_type: str | None = None) -> str:
        extra = {"CacheControl": "max-age=3600"}
        if content_type:
            extra["ContentType"] = content_type
        self._client.put_object(Bucket=self._bucket, Key=key, Body=stream, **extra)
        return self.public_url(key)

    def delete(self, key: str) -> None:
        self._client.delete_object(Bucket=self._bucket, Key=key)

    def public_url(self, key: str) -> str:
        return f"{self._base}/{key}"

    def key_from_url(self, url: str | None) -> str | None:
        return _key_after(self._base + "/", url)


def file_extension(filename: str | None) -> str:
    name = secure_filename(filename or "")
    return name.rsplit(".", 1)[-1].lower() if "." in name else ""


def build_key(owner_id: str, kind: str, extension: str) -> str:
    """``<owner>/<kind>_<epoch ms>.<ext>``"""

    return f"{owner_id}/{kind}_{int(time.time() * 1000)}.{extension}"


def store_upload(
    storage: Storage,
    upload: FileStorage | None,
    owner_id: str,
    kind: str,
    allowed: frozenset[str],
) -> str:
    """Validate and store ``upload`` under a fresh key; returns its public URL."""

    if upload is None or not upload.filename:
        raise ValidationError("No file uploaded", details={"file": ["Missing file"]})

    ext = file_extension(upload.filename)
    if ext not in allowed:
        raise ValidationError(
            "Unsupported file type",
            details={"file": [f"Allowed: {', '.join(sorted(allowed))}"]},
        )

    key = build_key(owner_id, kind, ext)
    url = storage.put(key, upload.stream, upload.mimetype)
    logger.info("Stored %s for %s at %s", kind, owner_id, key)
    return url


def remove_object(storage: Storage, url: str | None) -> None:
    key = storage.key_from_url(url)
    if key:
        storage.delete(key)


def remove_after_commit(session: Session, storage: Storage, url: str | None) -> None:
    """Delete the object once the row that stopped pointing at it is committed."""

    if storage.key_from_url(url):
        run_after_commit(session, partial(remove_object, storage, url))


def replace_object(session: Session, storage: Storage, old_url: str | None, new_url: str) -> None:
    """Keep exactly one of the two objects, whichever the transaction settles on."""

    run_after_rollback(session, partial(remove_object, storage, new_url))
    remove_after_commit(session, storage, old_url)


def init_storage(app: Flask) -> Storage:
    backend = str(app.config.get("STORAGE_BACKEND", "local")).lower()
    storage: Storage
    if backend == "s3":
        storage = S3Storage(
            bucket=str(app.config["S3_BUCKET"]),
            region=str(app.config["AWS_REGION"]),
            public_base_url=str(app.config.get("STORAGE_PUBLIC_BASE_URL") or ""),
        )
    else:
        storage = LocalStorage(str(app.config["UPLOAD_FOLDER"]))
    app.extensions["storage"] = storage
    return storage


def get_storage(app: Flask) -> Storage:
    storage: Storage | None = app.extensions.get("storage")
    if storage is None:
        raise RuntimeError("Storage not initialized")
    return storage
