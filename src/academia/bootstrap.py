"""Startup tasks: schema creation and the default administrator."""

import logging

from sqlalchemy.exc import SQLAlchemyError

from .auth import hash_password
from .config import Settings
from .services import MemberStore


logger = logging.getLogger(__name__)


def bootstrap(store: MemberStore, settings: Settings) -> bool:
    """Create tables and seed the default admin when no admin exists.

    Database errors are logged and swallowed so the server can still start;
    requests then fail with their own generic errors until the database is
    reachable. Returns whether initialization completed.
    """
    try:
        store.create_tables()
        if not store.has_admin():
            password_hash = hash_password(
                settings.default_admin_password, rounds=settings.bcrypt_rounds
            )
            store.add_admin(settings.default_admin_username, password_hash)
            logger.warning(
                "Admin criado - Usuário: %s | Senha: %s",
                settings.default_admin_username,
                settings.default_admin_password,
            )
        logger.info("Banco de dados inicializado")
        return True
    except SQLAlchemyError:
        logger.exception("Erro ao inicializar banco")
        return False
