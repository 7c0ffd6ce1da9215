from sqlalchemy import Column, String, Text, Integer, DateTime, func
from sqlalchemy.orm import relationship

from recipe_catalog.db.base import Base


class Restaurant(Base):
    __tablename__ = "restaurants"

    id = Column(Integer, primary_key=True)
    name = Column(String(255), nullable=False)
    slug = Column(String(255), nullable=False, unique=True)
    description = Column(Text)
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    menus = relationship("Menu", back_populates="restaurant", cascade="all, delete-orphan")
