"""Database setup for storing gym enrollments."""

from datetime import datetime

from sqlalchemy import create_engine, Column, Integer, String, DateTime, func
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker, declarative_base

Base = declarative_base()


class Member(Base):
    """SQLAlchemy model for an enrollment submitted through the public form."""

    __tablename__ = "alunos"

    id = Column(Integer, primary_key=True, index=True)
    nome = Column(String, nullable=False)
    cpf = Column(String, nullable=False)
    email = Column(String, nullable=False)
    telefone = Column(String, nullable=False)
    data_nascimento = Column(String, nullable=False)
    sexo = Column(String, nullable=False)
    endereco = Column(String)
    plano = Column(String, nullable=False)
    data_matricula = Column(String, nullable=False)
    objetivo = Column(String)
    observacoes = Column(String)
    data_cadastro = Column(
        DateTime,
        default=datetime.utcnow,
        server_default=func.current_timestamp(),
        nullable=False,
    )


def normalize_database_url(url: str) -> str:
    """Accept the ``postgres://`` scheme handed out by most hosting providers."""
    if url.startswith("postgres://"):
        return "postgresql://" + url[len("postgres://"):]
    return url


def create_db_engine(url: str, ssl: bool | None = None) -> Engine:
    """Create the engine (and its connection pool) for ``url``.

    SQLite connections are shared with the worker threads that run the
    blocking queries, so the same-thread check is disabled. PostgreSQL
    connections require SSL unless ``ssl`` is explicitly false or the
    server is local.
    """
    url = normalize_database_url(url)
    connect_args = {}
    if url.startswith("sqlite"):
        connect_args["check_same_thread"] = False
    elif url.startswith("postgresql"):
        local = "@localhost" in url or "@127.0.0.1" in url
        if ssl or (ssl is None and not local):
            connect_args["sslmode"] = "require"
    return create_engine(url, future=True, connect_args=connect_args, pool_pre_ping=True)


def create_session_factory(engine: Engine) -> sessionmaker:
    return sessionmaker(bind=engine, autoflush=False, autocommit=False, future=True)


def init_db(engine: Engine) -> None:
    """Create database tables if they do not exist."""
    # Registers the admins table on Base.metadata.
    from .models import admin  # noqa: F401

    Base.metadata.create_all(bind=engine)
