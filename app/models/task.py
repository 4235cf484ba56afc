from sqlalchemy import Boolean, Column, DateTime, ForeignKey, Integer, String
from app.database import Base, utcnow

class Task(Base):
    __tablename__ = "tasks"

    id = Column(Integer, primary_key=True)
    owner_id = Column(String(32), ForeignKey("users.id"), nullable=False, index=True)
    title = Column(String, nullable=False)
    completed = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime, nullable=False, default=utcnow)
    updated_at = Column(DateTime, nullable=False, default=utcnow)
