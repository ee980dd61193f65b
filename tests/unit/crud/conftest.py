"""Shared fixtures for crud unit tests"""

import pytest
from sqlalchemy import create_engine
from sqlmodel import SQLModel, Session

from sophub.core.models import ParsedSOP, Step, StepType
from sophub.crud.models import SOP


@pytest.fixture(name="engine")
def engine_fixture():
    """In-memory SQLite engine with all tables created."""
    engine = create_engine("sqlite://", connect_args={"check_same_thread": False})
    SQLModel.metadata.create_all(engine)
    yield engine
    SQLModel.metadata.drop_all(engine)


@pytest.fixture(name="session")
def session_fixture(engine):
    """Fresh session per test; changes are not committed."""
    with Session(engine) as s:
        yield s


@pytest.fixture(name="parsed")
def parsed_fixture():
    """A two-step parse result with a decision step."""
    return ParsedSOP(
        title="Reset a Password",
        objectives="User can log in again.",
        logins_prerequisites="Admin console access",
        steps=[
            Step(title="Find user", content="Search by email.", order=0),
            Step(title="Locked out?", content="Unlock first.", order=1, type=StepType.decision),
        ],
    )


@pytest.fixture(name="sop")
def sop_fixture(session):
    """A minimal SOP persisted to the session."""
    s = SOP(title="Test SOP", content=[])
    session.add(s)
    session.flush()
    return s
