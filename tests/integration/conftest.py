"""
Integration test fixtures. Overrides get_db for API tests with a throwaway
sqlite file and installs a ProgressService bound to the same database.
"""
import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from progress_engine.models import Platform
from progress_engine.verification import SolvedProblemsSource


class StaticSolvedSource(SolvedProblemsSource):
    """Platform reader that answers from a fixed list."""

    def __init__(self, solved):
        self.solved = list(solved)

    async def solved_by_user(self, username):
        return self.solved


@pytest.fixture
def testing_session_local(tmp_path):
    """
    File-backed so the request session and the progress writer (which runs in
    a worker thread) use separate connections.
    """
    from api.config import Base
    import api.models  # noqa: F401
    engine = create_engine(f"sqlite:///{tmp_path / 'test.db'}", connect_args={"check_same_thread": False})
    Base.metadata.create_all(engine)
    yield sessionmaker(autocommit=False, autoflush=False, bind=engine)
    engine.dispose()


@pytest.fixture
def override_get_db(testing_session_local):
    def _get_db():
        db = testing_session_local()
        try:
            yield db
        finally:
            db.close()

    return _get_db


@pytest.fixture
def progress_service(testing_session_local):
    """Service without background refresh; LeetCode answers with "two-sum" solved."""
    from api.config import Settings
    from api.services.progress_service import ProgressService, set_progress_service
    service = ProgressService(
        testing_session_local,
        settings=Settings(SYNC_REFRESH_INTERVAL=0, SYNC_RETRY_BASE_DELAY=0, TOAST_TTL_SECONDS=60),
        sources={Platform.LEETCODE: StaticSolvedSource(["two-sum"])},
    )
    set_progress_service(service)
    yield service
    set_progress_service(None)


@pytest.fixture
def seeded(testing_session_local, progress_service):
    """Starter curriculum plus a daily challenge (dp1) for the service's today."""
    from scripts.seed_curriculum import seed
    db = testing_session_local()
    try:
        seed(db, progress_service.today())
    finally:
        db.close()
    return progress_service.today()


@pytest.fixture
def api_client(override_get_db, progress_service):
    """FastAPI TestClient with the test DB and progress service installed."""
    from fastapi.testclient import TestClient
    from api.api import app
    from api.config import get_db
    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as client:
        yield client
    app.dependency_overrides.clear()


@pytest.fixture
def add_user(testing_session_local):
    """Insert an account directly (admins and blocked users cannot self-register)."""
    from api.models.models import User
    from api.utils.jwt import get_password_hash

    def _add(email, password="pass123", **fields):
        db = testing_session_local()
        try:
            user = User(email=email, hashed_password=get_password_hash(password), **fields)
            db.add(user)
            db.commit()
            db.refresh(user)
            return user.id
        finally:
            db.close()

    return _add


@pytest.fixture
def student(api_client, seeded):
    """Registered (and logged-in) student on a seeded database."""
    response = api_client.post(
        "/auth/register",
        json={"email": "neo@example.com", "password": "pass123", "confirm_password": "pass123", "name": "Neo"},
    )
    assert response.status_code == 200
    return api_client
