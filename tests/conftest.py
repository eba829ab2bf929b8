import pytest
from fastapi.testclient import TestClient

from academia.api import create_app
from academia.config import Settings


@pytest.fixture
def settings(tmp_path):
    """Settings pointing at an isolated SQLite file with a cheap bcrypt cost."""
    return Settings(
        database_url=f"sqlite:///{tmp_path / 'academia.db'}",
        session_secret="test-secret",
        bcrypt_rounds=4,
    )


@pytest.fixture
def app(settings):
    return create_app(settings)


@pytest.fixture
def client(app):
    # Entering the client runs the lifespan, which bootstraps the database.
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def admin_client(client):
    resp = client.post("/api/login", json={"usuario": "admin", "senha": "admin123"})
    assert resp.status_code == 200
    return client


@pytest.fixture
def enrollment():
    return {
        "nome": "Maria Souza",
        "cpf": "123.456.789-00",
        "email": "maria@example.com",
        "telefone": "(11) 98888-7777",
        "dataNascimento": "1990-04-12",
        "sexo": "F",
        "endereco": "Rua das Flores, 10",
        "plano": "mensal",
        "dataMatricula": "2024-03-01",
        "objetivo": "condicionamento",
        "observacoes": "",
    }
