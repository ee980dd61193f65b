"""Engine construction and schema creation"""

from sqlmodel import SQLModel, create_engine

# Registers the tables on SQLModel.metadata
import sophub.crud.models  # noqa: F401


def make_engine(db_url: str):
    return create_engine(db_url, echo=False)


def init_db(engine) -> None:
    SQLModel.metadata.create_all(engine)


def reset_db(engine) -> None:
    """Drop and recreate every table."""
    SQLModel.metadata.drop_all(engine)
    SQLModel.metadata.create_all(engine)
