from academia.bootstrap import bootstrap
from academia.config import Settings
from academia.database import create_db_engine, normalize_database_url
from academia.services import MemberStore


def test_bootstrap_seeds_single_admin(settings):
    store = MemberStore(create_db_engine(settings.database_url))
    assert bootstrap(store, settings)
    assert bootstrap(store, settings)

    admin = store.get_admin("admin")
    assert admin is not None
    assert admin.senha.startswith("$2")
    with store.SessionLocal() as session:
        assert session.query(type(admin)).count() == 1
    store.close()


def test_bootstrap_logs_default_credentials(settings, caplog):
    store = MemberStore(create_db_engine(settings.database_url))
    with caplog.at_level("WARNING"):
        bootstrap(store, settings)
    assert "Admin criado" in caplog.text
    store.close()


def test_bootstrap_survives_unreachable_database(tmp_path):
    settings = Settings(
        database_url=f"sqlite:///{tmp_path / 'missing' / 'academia.db'}",
        bcrypt_rounds=4,
    )
    store = MemberStore(create_db_engine(settings.database_url))
    assert bootstrap(store, settings) is False


def test_app_starts_without_database(tmp_path, enrollment):
    from fastapi.testclient import TestClient

    from academia.api import create_app

    settings = Settings(
        database_url=f"sqlite:///{tmp_path / 'missing' / 'academia.db'}",
        bcrypt_rounds=4,
    )
    with TestClient(create_app(settings)) as client:
        resp = client.post("/api/alunos/cadastrar", json=enrollment)
        assert resp.status_code == 500
        assert resp.json() == {"erro": "Erro ao cadastrar aluno"}


def test_postgres_scheme_is_normalized():
    assert normalize_database_url("postgres://u:p@db/app") == "postgresql://u:p@db/app"
    assert normalize_database_url("sqlite:///academia.db") == "sqlite:///academia.db"
