import os

os.environ.setdefault("SECRET_KEY", "test-secret-key")
os.environ.setdefault("DATABASE_URL", "sqlite:///./test_branches.db")

import pytest
from fastapi.testclient import TestClient
from sqlmodel import SQLModel, Session, create_engine

import models  # noqa: F401  (registers tables)
from core.database import get_session
from core.security import create_access_token, get_password_hash
from main import app
from models import AdminUser, Branch


@pytest.fixture
def engine(tmp_path):
    engine = create_engine(
        f"sqlite:///{tmp_path / 'branches.db'}",
        connect_args={"check_same_thread": False},
    )
    SQLModel.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session(engine):
    with Session(engine) as session:
        yield session


@pytest.fixture
def client(engine):
    def override_get_session():
        with Session(engine) as session:
            yield session

    app.dependency_overrides[get_session] = override_get_session
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def make_user(session):
    def _make_user(email, role="manager", password="secret"):
        user = AdminUser(email=email, password_hash=get_password_hash(password), full_name=email.split("@")[0], role=role)
        session.add(user)
        session.commit()
        session.refresh(user)
        return user
    return _make_user


@pytest.fixture
def make_branch(session):
    def _make_branch(name, manager, region="Casablanca-Settat", city="Casablanca"):
        branch = Branch(name=name, manager=manager, region=region, city=city, country="Morocco")
        session.add(branch)
        session.commit()
        session.refresh(branch)
        return branch
    return _make_branch


@pytest.fixture
def auth_headers():
    def _auth_headers(email):
        return {"Authorization": f"Bearer {create_access_token(data={'sub': email})}"}
    return _auth_headers
