from sqlalchemy import Column, Integer, String

from ..database import Base


class Admin(Base):
    """SQLAlchemy model for administrator credentials."""

    __tablename__ = "admins"

    id = Column(Integer, primary_key=True, index=True)
    usuario = Column(String, unique=True, index=True, nullable=False)
    senha = Column(String, nullable=False)
