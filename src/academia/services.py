"""Store handle wrapping every statement the API issues."""

from __future__ import annotations

import logging
from typing import Any, Dict, List

from prometheus_client import Counter
from sqlalchemy import delete, select
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from .database import Member, create_session_factory, init_db
from .errors import ApiError
from .models.admin import Admin


logger = logging.getLogger(__name__)

ENROLLMENT_COUNTER = Counter(
    "member_enrollments_total", "Total member enrollments stored"
)
DELETION_COUNTER = Counter(
    "member_deletions_total", "Total member delete statements executed"
)

MEMBER_FIELDS = (
    "nome",
    "cpf",
    "email",
    "telefone",
    "data_nascimento",
    "sexo",
    "endereco",
    "plano",
    "data_matricula",
    "objetivo",
    "observacoes",
)


def _handle_service_error(session: Session, exc: Exception, message: str) -> None:
    """Rollback transaction and raise a generic API error for service errors."""
    session.rollback()
    logger.exception("service layer error", exc_info=exc)
    raise ApiError(status_code=500, message=message) from exc


class MemberStore:
    """Blocking store operations; each call runs one statement in its own session."""

    def __init__(self, engine: Engine, session_factory: sessionmaker | None = None) -> None:
        self.engine = engine
        self.SessionLocal = session_factory or create_session_factory(engine)

    def create_tables(self) -> None:
        init_db(self.engine)

    def close(self) -> None:
        self.engine.dispose()

    def add_member(self, fields: Dict[str, Any]) -> Member:
        """Insert one enrollment; values are stored exactly as given."""
        session: Session = self.SessionLocal()
        try:
            member = Member(**{name: fields.get(name) for name in MEMBER_FIELDS})
            session.add(member)
            session.commit()
            session.refresh(member)
            ENROLLMENT_COUNTER.inc()
            logger.info("member %s enrolled", member.id)
            return member
        except Exception as exc:
            _handle_service_error(session, exc, "Erro ao cadastrar aluno")
        finally:
            session.close()

    def list_members(self) -> List[Member]:
        """Return every member, most recent enrollment first."""
        session: Session = self.SessionLocal()
        try:
            stmt = select(Member).order_by(Member.data_cadastro.desc(), Member.id.desc())
            return list(session.scalars(stmt).all())
        except Exception as exc:
            _handle_service_error(session, exc, "Erro ao buscar alunos")
        finally:
            session.close()

    def delete_member(self, member_id: int) -> int:
        """Delete a member by id and return the number of rows removed."""
        session: Session = self.SessionLocal()
        try:
            result = session.execute(delete(Member).where(Member.id == member_id))
            session.commit()
            DELETION_COUNTER.inc()
            logger.info("delete member %s removed %s row(s)", member_id, result.rowcount)
            return result.rowcount
        except Exception as exc:
            _handle_service_error(session, exc, "Erro ao excluir aluno")
        finally:
            session.close()

    def get_admin(self, username: str) -> Admin | None:
        session: Session = self.SessionLocal()
        try:
            return session.scalars(select(Admin).where(Admin.usuario == username)).first()
        finally:
            session.close()

    def has_admin(self) -> bool:
        session: Session = self.SessionLocal()
        try:
            return session.scalars(select(Admin.id).limit(1)).first() is not None
        finally:
            session.close()

    def add_admin(self, username: str, password_hash: str) -> Admin:
        session: Session = self.SessionLocal()
        try:
            admin = Admin(usuario=username, senha=password_hash)
            session.add(admin)
            session.commit()
            session.refresh(admin)
            return admin
        except SQLAlchemyError:
            session.rollback()
            raise
        finally:
            session.close()
