from pathlib import Path

from alembic import command
from alembic.config import Config
from sqlalchemy import Text, create_engine, inspect

from repair_desk.models.ticket_log import RepairTicketLog

API_DIR = Path(__file__).resolve().parents[1]


def _upgrade() -> None:
    cfg = Config()
    cfg.set_main_option("script_location", str(API_DIR / "alembic"))
    command.upgrade(cfg, "head")


def test_initial_migration_matches_model_indexes(tmp_path, monkeypatch):
    url = f"sqlite:///{tmp_path / 'migrated.db'}"
    monkeypatch.setenv("DATABASE_URL", url)
    _upgrade()

    engine = create_engine(url)
    try:
        insp = inspect(engine)

        links = {ix["name"]: ix for ix in insp.get_indexes("line_oa_links")}
        assert links["ix_line_oa_links_line_user_id"]["unique"]
        assert ["line_user_id"] not in [uc["column_names"] for uc in insp.get_unique_constraints("line_oa_links")]

        tickets = {ix["name"]: ix for ix in insp.get_indexes("repair_tickets")}
        assert tickets["ix_repair_tickets_ticket_code"]["unique"]

        log_columns = {col["name"]: col for col in insp.get_columns("repair_ticket_logs")}
        assert isinstance(log_columns["from_value"]["type"], Text)
        assert isinstance(log_columns["to_value"]["type"], Text)
        assert isinstance(RepairTicketLog.__table__.c.to_value.type, Text)
    finally:
        engine.dispose()
