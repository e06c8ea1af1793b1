from decimal import Decimal

import pytest
from fastapi.testclient import TestClient

from marketplace.config import Settings
from marketplace.main import create_app
from marketplace.models.project import Project
from marketplace.models.user import User
from marketplace.utils.token import create_access_token

from support import WEBHOOK_SECRET, FakeGateway


@pytest.fixture
def settings(tmp_path):
    return Settings(
        _env_file=None,
        env="test",
        log_level="WARNING",
        secret_key="test-secret-key",
        database_url=f"sqlite:///{tmp_path / 'marketplace.db'}",
        payment_webhook_secret=WEBHOOK_SECRET,
    )


@pytest.fixture
def gateway():
    return FakeGateway()


@pytest.fixture
def client(settings, gateway):
    with TestClient(create_app(settings, gateway)) as c:
        yield c


@pytest.fixture
def db(client):
    return client.app.state.db


@pytest.fixture
def session(db):
    with db.session() as session:
        yield session


@pytest.fixture
def make_user(session):
    def _make_user(name="user", role="user", can_login=True):
        user = User(
            name=name,
            email=f"{name.lower()}@example.com",
            role=role,
            can_login=can_login,
        )
        session.add(user)
        session.commit()
        session.refresh(user)
        return user

    return _make_user


@pytest.fixture
def make_project(session):
    def _make_project(author, price="2500", title="Landing page design", is_active=True):
        project = Project(
            title=title,
            description="A responsive landing page",
            category="design",
            price=Decimal(price),
            author_id=author.id,
            is_active=is_active,
        )
        session.add(project)
        session.commit()
        session.refresh(project)
        return project

    return _make_project


@pytest.fixture
def auth_headers(settings):
    def _auth_headers(user):
        token = create_access_token({"user_id": user.id}, settings)
        return {"Authorization": f"Bearer {token}"}

    return _auth_headers


@pytest.fixture
def seller(make_user):
    return make_user("Seller")


@pytest.fixture
def buyer(make_user):
    return make_user("Buyer")


@pytest.fixture
def admin(make_user):
    return make_user("Admin", role="admin")


@pytest.fixture
def project(make_project, seller):
    return make_project(seller)


@pytest.fixture
def placed_order(client, auth_headers, buyer, project):
    """A PENDING order created through the API."""
    r = client.post("/orders", json={"itemId": project.id}, headers=auth_headers(buyer))
    assert r.status_code == 201
    return r.json()["order"]


