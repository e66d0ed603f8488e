import random
from pathlib import Path

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import sessionmaker

import assessment_api.models.db  # noqa: F401
from assessment_api.app import app
from assessment_api.database import Base, get_db, make_engine
from assessment_api.services.extraction_service import get_extraction_client
from assessment_api.services.question_service import DbQuestionSource
from assessment_api.services.result_service import DbResultSink
from assessment_api.services.session_service import SessionRegistry, get_session_registry


@pytest.fixture
def session_factory(tmp_path: Path):
    engine = make_engine(f"sqlite:///{tmp_path / 'assessments.db'}")
    Base.metadata.create_all(bind=engine)
    yield sessionmaker(autocommit=False, autoflush=False, bind=engine)
    engine.dispose()


@pytest.fixture
def db(session_factory):
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def rng() -> random.Random:
    return random.Random(7)


@pytest.fixture
def registry(session_factory) -> SessionRegistry:
    return SessionRegistry(DbQuestionSource(session_factory), DbResultSink(session_factory))


@pytest.fixture
def extraction_client():
    """Replaced per test through ``app.dependency_overrides``."""
    return None


@pytest.fixture
def client(session_factory, registry, extraction_client):
    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_session_registry] = lambda: registry
    if extraction_client is not None:
        app.dependency_overrides[get_extraction_client] = lambda: extraction_client
    yield TestClient(app)
    app.dependency_overrides.clear()
