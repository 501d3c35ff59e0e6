import os
from sqlalchemy import event
from sqlmodel import Session, SQLModel, create_engine

DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./retrievo.db")

connect_args = {"check_same_thread": False} if DATABASE_URL.startswith("sqlite") else {}

engine = create_engine(DATABASE_URL, connect_args=connect_args)


def enable_sqlite_foreign_keys(target_engine):
    # SQLite ignores ON DELETE CASCADE unless foreign keys are switched on per connection
    @event.listens_for(target_engine, "connect")
    def _set_pragma(dbapi_connection, connection_record):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()


if DATABASE_URL.startswith("sqlite"):
    enable_sqlite_foreign_keys(engine)


def create_db_and_tables(target_engine=engine):
    # import models so they register on SQLModel.metadata
    from app.models import claim, item, notification, user  # noqa: F401

    SQLModel.metadata.create_all(target_engine)


def get_session():
    with Session(engine) as session:
        yield session
