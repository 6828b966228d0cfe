"""Create database tables in the configured database.

Reads DATABASE_URL (or PG* vars) from .env / environment and creates all
registered ORM tables. The app also does this on startup; run it ahead of a
deploy when the web role has no DDL rights.

Usage:
  python scripts/create_tables.py [--seed-template]
"""

from __future__ import annotations

import argparse
import pathlib
import sys

from dotenv import load_dotenv
from sqlalchemy.orm import Session

PROJECT_ROOT = pathlib.Path(__file__).resolve().parents[1]
sys.path.insert(0, str(PROJECT_ROOT))

from lucky_draw.config import resolve_database_url
from lucky_draw.db import create_app_engine
from lucky_draw.models.base import Base
from lucky_draw.repositories.template_repository import TemplateRepository
from lucky_draw.services.template_service import TemplateService

# Import models so they register with Base.metadata
from lucky_draw import models  # noqa: F401


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description=__doc__.splitlines()[0])
    parser.add_argument(
        "--seed-template",
        action="store_true",
        help="create a default 100-slot tree template if no default exists",
    )
    args = parser.parse_args(argv)

    load_dotenv()
    env_local = PROJECT_ROOT / ".env.local"
    if env_local.exists():
        load_dotenv(dotenv_path=env_local, override=True)

    engine = create_app_engine(resolve_database_url())
    Base.metadata.create_all(bind=engine)
    print("Tables created (or already exist).")

    if args.seed_template:
        with Session(engine) as session:
            if TemplateRepository().get_default(session) is None:
                service = TemplateService()
                template = service.create_template(session, "Christmas tree")
                service.set_default(session, template.id)
                session.commit()
                print(f"Seeded default template {template.id}")
            else:
                print("Default template already present.")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
