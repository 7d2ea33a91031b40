"""
tests/conftest.py - sobe a API com o Firestore em memória.
"""
import os

os.environ["TEST_MODE"] = "1"
os.environ["JWT_SECRET"] = "segredo-de-teste-monetize-speed-0001"
os.environ["WEBHOOK_SECRET"] = "webhook-de-teste"

import pytest

import api_monetize
from app.services import database


@pytest.fixture(autouse=True)
def banco_limpo():
    database.reset_db()
    yield
    database.reset_db()


@pytest.fixture
def client():
    api_monetize.app.config["TESTING"] = True
    with api_monetize.app.test_client() as c:
        yield c


def registrar(client, email="ana@example.com", password="segredo1", name="Ana"):
    r = client.post("/api/auth/register", json={"email": email, "password": password, "name": name})
    assert r.status_code == 201
    return r.get_json()


@pytest.fixture
def usuario(client):
    return registrar(client)


@pytest.fixture
def auth_headers(usuario):
    return {"Authorization": f"Bearer {usuario['token']}"}
