"""
Migration tests: the Alembic revisions build the same schema the models
declare, including the delete rules on the foreign keys.
"""
import asyncio
from pathlib import Path

import pytest
from alembic import command
from alembic.config import Config
from sqlalchemy import create_engine, inspect

from cms_admin.database import Base

ROOT = Path(__file__).resolve().parents[1]


def _alembic_config(db_path: Path) -> Config:
    cfg = Config(str(ROOT / "alembic.ini"))
    cfg.set_main_option("script_location", str(ROOT / "alembic"))
    cfg.set_main_option("sqlalchemy.url", f"sqlite+aiosqlite:///{db_path}")
    cfg.attributes["configure_logger"] = False
    return cfg


def _foreign_keys(inspector, table: str) -> dict[str, str | None]:
    return {
        fk["referred_table"]: fk.get("options", {}).get("ondelete")
        for fk in inspector.get_foreign_keys(table)
    }


@pytest.mark.asyncio
async def test_upgrade_creates_model_tables(tmp_path: Path):
    db_path = tmp_path / "cms.db"
    # env.py drives its own event loop, so it runs off the test's loop.
    await asyncio.to_thread(command.upgrade, _alembic_config(db_path), "head")

    engine = create_engine(f"sqlite:///{db_path}")
    try:
        inspector = inspect(engine)
        tables = set(inspector.get_table_names()) - {"alembic_version"}
        assert tables == set(Base.metadata.tables)

        for name, table in Base.metadata.tables.items():
            columns = {c["name"] for c in inspector.get_columns(name)}
            assert columns == set(table.columns.keys()), name

        assert _foreign_keys(inspector, "articles") == {"users": "CASCADE", "categories": "RESTRICT"}
        assert _foreign_keys(inspector, "article_tags") == {"articles": "CASCADE", "tags": "CASCADE"}
        assert inspector.get_pk_constraint("article_tags")["constrained_columns"] == ["article_id", "tag_id"]
    finally:
        engine.dispose()


@pytest.mark.asyncio
async def test_downgrade_drops_everything(tmp_path: Path):
    db_path = tmp_path / "cms.db"
    cfg = _alembic_config(db_path)
    await asyncio.to_thread(command.upgrade, cfg, "head")
    await asyncio.to_thread(command.downgrade, cfg, "base")

    engine = create_engine(f"sqlite:///{db_path}")
    try:
        assert set(inspect(engine).get_table_names()) == {"alembic_version"}
    finally:
        engine.dispose()
