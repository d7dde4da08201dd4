from sqlalchemy import Column, DateTime, JSON, String, func
from .base import Base


class CartSnapshot(Base):
    __tablename__ = "cart_snapshot"

    session_key = Column(String(191), primary_key=True)
    items = Column(JSON, nullable=False)
    updated_at = Column(DateTime, nullable=False, server_default=func.now(), onupdate=func.now())
