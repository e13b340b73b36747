"""SQLAlchemy ORM models"""

from sqlalchemy import Column, DateTime, Text
from sqlalchemy.orm import declarative_base
from sqlalchemy.sql import func

Base = declarative_base()


class AppState(Base):
    """Key-value row holding one JSON blob"""

    __tablename__ = "app_state"

    key = Column(Text, primary_key=True)
    value = Column(Text, nullable=False)
    updated_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now(), onupdate=func.now())
