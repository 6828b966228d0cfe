"""Provision an admin account.

Usage:
  python scripts/create_admin.py admin@example.com --super
  python scripts/create_admin.py host@example.com --game-id <game uuid>

The password is prompted for unless --password is given.
"""

from __future__ import annotations

import argparse
import getpass
import pathlib
import sys

from dotenv import load_dotenv
from sqlalchemy.orm import Session

PROJECT_ROOT = pathlib.Path(__file__).resolve().parents[1]
sys.path.insert(0, str(PROJECT_ROOT))

from lucky_draw.config import resolve_database_url
from lucky_draw.db import create_app_engine
from lucky_draw.errors import AppError
from lucky_draw.models.base import Base
from lucky_draw.services.auth_service import AuthService

from lucky_draw import models  # noqa: F401


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Create an admin account.")
    parser.add_argument("email")
    parser.add_argument("--password", help="omit to be prompted")
    parser.add_argument("--super", dest="is_super", action="store_true", help="may manage every game")
    parser.add_argument("--game-id", help="restrict the admin to one game")
    args = parser.parse_args(argv)

    load_dotenv()
    password = args.password or getpass.getpass("Password: ")

    engine = create_app_engine(resolve_database_url())
    Base.metadata.create_all(bind=engine)

    with Session(engine) as session:
        try:
            admin = AuthService().create_admin(
                session, args.email, password, is_super=args.is_super, game_id=args.game_id
            )
        except AppError as exc:
            print(f"error: {exc.message} {exc.details or ''}".strip(), file=sys.stderr)
            return 1
        session.commit()
        print(f"Created admin {admin.email} ({admin.id})")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
