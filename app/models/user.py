import uuid

from sqlalchemy import Column, DateTime, String
from app.database import Base, utcnow


def _new_user_id() -> str:
    return uuid.uuid4().hex


class User(Base):
    __tablename__ = "users"

    id = Column(String(32), primary_key=True, default=_new_user_id)
    username = Column(String(30), unique=True, nullable=False, index=True)
    password = Column(String, nullable=False)
    created_at = Column(DateTime, nullable=False, default=utcnow)
