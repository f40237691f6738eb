from sqlalchemy import Column, DateTime, Integer
from sqlalchemy.orm import declarative_base

from regdesk.utils.clock import utcnow

Base = declarative_base()


class BaseModel:
    """Columns shared by every table: surrogate key and row creation time."""

    id = Column(Integer, primary_key=True, autoincrement=True)
    created_at = Column(DateTime, default=utcnow, nullable=False)
