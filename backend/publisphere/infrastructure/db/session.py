from collections.abc import Generator
from time import perf_counter

from sqlalchemy import create_engine
from sqlalchemy import event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker

from publisphere.core.config import settings
from publisphere.infrastructure.observability.metrics import observe_db_query

_OBSERVED_OPERATIONS = {"select", "insert", "update", "delete"}


def _statement_operation(statement: str) -> str:
    verb = statement.lstrip().split(None, 1)[0].lower() if statement.strip() else ""
    return verb if verb in _OBSERVED_OPERATIONS else "other"


def instrument_engine(bind: Engine) -> Engine:
    """Feed per-statement timings into the db query histogram, labelled by SQL verb."""

    @event.listens_for(bind, "before_cursor_execute")
    def _before_cursor_execute(conn, cursor, statement, parameters, context, executemany):
        conn.info.setdefault("query_started_at_stack", []).append(perf_counter())

    @event.listens_for(bind, "after_cursor_execute")
    def _after_cursor_execute(conn, cursor, statement, parameters, context, executemany):
        stack = conn.info.get("query_started_at_stack", [])
        if not stack:
            return
        observe_db_query(perf_counter() - stack.pop(-1), operation=_statement_operation(statement))

    return bind


engine = instrument_engine(create_engine(settings.sqlalchemy_database_uri, pool_pre_ping=True))
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def get_db() -> Generator[Session, None, None]:
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
