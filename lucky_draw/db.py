"""SQLAlchemy engine + session management.

Uses a session-per-request pattern. Change notifications queued on a
session are handed to the realtime hub only after that session commits.
"""

from __future__ import annotations

import logging
import os
from typing import Any, Callable

from flask import Flask, g
from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine, make_url
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from lucky_draw.models.base import Base
from lucky_draw.realtime import RealtimeHub

logger = logging.getLogger(__name__)

_PENDING_KEY = "pending_realtime"
_ON_COMMIT_KEY = "on_commit"
_ON_ROLLBACK_KEY = "on_rollback"


def _generate_rds_iam_token(*, host: str, port: int, user: str, region: str) -> str:
    """Generate an RDS IAM auth token to use as the Postgres password."""

    import boto3

    rds = boto3.client("rds", region_name=region)
    return rds.generate_db_auth_token(
        DBHostname=host,
        Port=port,
        DBUsername=user,
        Region=region,
    )


def _enable_sqlite_foreign_keys(engine: Engine) -> None:
    @event.listens_for(engine, "connect")
    def _set_pragma(dbapi_connection: Any, _record: Any) -> None:
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()


def create_app_engine(database_url: str) -> Engine:
    url = make_url(database_url)

    if url.get_backend_name() == "sqlite":
        kwargs: dict[str, Any] = {"connect_args": {"check_same_thread": False}}
        if not url.database or url.database == ":memory:":
            kwargs["poolclass"] = StaticPool
        engine = create_engine(database_url, future=True, **kwargs)
        _enable_sqlite_foreign_keys(engine)
        return engine

    # Postgres without a static password: authenticate with an IAM token.
    if url.get_backend_name() == "postgresql" and not url.password:
        region = os.getenv("AWS_REGION")
        host = url.host
        username = url.username
        database = url.database

        if region and host and username and database:
            import psycopg2

            port = int(url.port or 5432)
            sslmode = (url.query or {}).get("sslmode") or os.getenv("PGSSLMODE") or "require"

            def _creator() -> object:
                token = _generate_rds_iam_token(host=host, port=port, user=username, region=region)
                return psycopg2.connect(
                    host=host,
                    port=port,
                    user=username,
                    password=token,
                    dbname=database,
                    sslmode=sslmode,
                )

            return create_engine(
                "postgresql+psycopg2://",
                creator=_creator,
                pool_pre_ping=True,
                future=True,
            )

    return create_engine(database_url, pool_pre_ping=True, future=True)


def publish_after_commit(
    session: Session,
    channel: str,
    event_name: str,
    payload: dict[str, Any],
    sender: str | None = None,
) -> None:
    """Queue a realtime message; it is sent only if the session commits."""

    session.info.setdefault(_PENDING_KEY, []).append((channel, event_name, payload, sender))


def bind_realtime(session_factory: sessionmaker, hub: RealtimeHub) -> None:
    """Flush queued messages to the hub on commit, drop them on rollback."""

    @event.listens_for(session_factory, "after_commit")
    def _after_commit(session: Session) -> None:
        pending = session.info.pop(_PENDING_KEY, [])
        for channel, event_name, payload, sender in pending:
            hub.publish(channel, event_name, payload, sender=sender)

    @event.listens_for(session_factory, "after_rollback")
    def _after_rollback(session: Session) -> None:
        dropped = session.info.pop(_PENDING_KEY, [])
        if dropped:
            logger.debug("Discarded %d realtime messages after rollback", len(dropped))


def run_after_commit(session: Session, callback: Callable[[], None]) -> None:
    session.info.setdefault(_ON_COMMIT_KEY, []).append(callback)


def run_after_rollback(session: Session, callback: Callable[[], None]) -> None:
    session.info.setdefault(_ON_ROLLBACK_KEY, []).append(callback)


def bind_callbacks(session_factory: sessionmaker) -> None:
    """Run queued callbacks once the transaction outcome is known.

    Commit runs the commit callbacks and drops the rollback ones, and the
    other way round. A failing callback is logged; the transaction is
    already settled by then.
    """

    def _run(session: Session, run_key: str, drop_key: str) -> None:
        session.info.pop(drop_key, None)
        for callback in session.info.pop(run_key, []):
            try:
                callback()
            except Exception:
                logger.exception("Post-transaction callback failed")

    @event.listens_for(session_factory, "after_commit")
    def _after_commit(session: Session) -> None:
        _run(session, _ON_COMMIT_KEY, _ON_ROLLBACK_KEY)

    @event.listens_for(session_factory, "after_rollback")
    def _after_rollback(session: Session) -> None:
        _run(session, _ON_ROLLBACK_KEY, _ON_COMMIT_KEY)


def init_db(app: Flask, hub: RealtimeHub) -> None:
    """Initialize database engine and per-request sessions."""

    engine = create_app_engine(str(app.config["DATABASE_URL"]))
    session_factory = sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)
    bind_realtime(session_factory, hub)
    bind_callbacks(session_factory)

    # Import models so they register with Base.metadata
    from lucky_draw import models  # noqa: F401

    Base.metadata.create_all(bind=engine)

    app.extensions["engine"] = engine
    app.extensions["session_factory"] = session_factory

    @app.before_request
    def _open_session() -> None:
        g.db = session_factory()  # type: ignore[attr-defined]

    @app.teardown_request
    def _close_session(exc: BaseException | None) -> None:
        session: Session | None = getattr(g, "db", None)
        if session is None:
            return

        try:
            if exc is None:
                session.commit()
            else:
                session.rollback()
        finally:
            session.close()


def get_session() -> Session:
    """Get the current request's SQLAlchemy session."""

    session: Session | None = getattr(g, "db", None)
    if session is None:
        raise RuntimeError("Database session not initialized")
    return session
