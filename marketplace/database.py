from fastapi import Request
from sqlmodel import SQLModel, Session, create_engine


class Database:
    """Owns the engine for one process; opened at startup, disposed at shutdown."""

    def __init__(self, url: str, *, echo: bool = False):
        connect_args = {}
        options = {}
        if url.startswith("sqlite"):
            # TestClient and the webhook route hand sessions across threads
            connect_args["check_same_thread"] = False
        else:
            options.update(
                pool_pre_ping=True,      # checks dead connections
                pool_recycle=1800,       # refresh every 30 min
            )

        self.engine = create_engine(
            url,
            echo=echo,
            connect_args=connect_args,
            **options,
        )

    def create_db_and_tables(self):
        from marketplace import models  # noqa: F401  registers every table

        SQLModel.metadata.create_all(self.engine)

    def session(self) -> Session:
        return Session(self.engine, expire_on_commit=False)

    def dispose(self):
        self.engine.dispose()


def get_database(request: Request) -> Database:
    return request.app.state.db


def get_session(request: Request):
    with get_database(request).session() as session:
        yield session
