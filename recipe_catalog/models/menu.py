"""
Menu-related models: menus, the recipes they list, and daily view metrics.
"""
from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Column,
    Date,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    Numeric,
    String,
    Text,
    UniqueConstraint,
    func,
    text,
)
from sqlalchemy.orm import relationship

from recipe_catalog.db.base import Base


class Menu(Base):
    """A restaurant's menu."""
    __tablename__ = "menus"

    id = Column(Integer, primary_key=True)
    restaurant_id = Column(Integer, ForeignKey("restaurants.id", ondelete="CASCADE"), nullable=False)
    name = Column(String(255), nullable=False)
    description = Column(Text)
    is_active = Column(Boolean, nullable=False, default=True, server_default=text("true"))
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    restaurant = relationship("Restaurant", back_populates="menus")
    items = relationship(
        "MenuItem",
        back_populates="menu",
        order_by="MenuItem.display_order",
        cascade="all, delete-orphan",
    )

    __table_args__ = (
        Index("idx_menus_restaurant", "restaurant_id", "is_active"),
    )


class MenuItem(Base):
    """A recipe offered on a menu, with its price and position."""
    __tablename__ = "menu_items"

    id = Column(Integer, primary_key=True)
    menu_id = Column(Integer, ForeignKey("menus.id", ondelete="CASCADE"), nullable=False)
    recipe_id = Column(Integer, ForeignKey("recipes.id", ondelete="CASCADE"), nullable=False)
    price = Column(Numeric(10, 2))
    display_order = Column(Integer, nullable=False, default=0, server_default="0")
    is_available = Column(Boolean, nullable=False, default=True, server_default=text("true"))
    view_count = Column(Integer, nullable=False, default=0, server_default="0")
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    menu = relationship("Menu", back_populates="items")
    recipe = relationship("Recipe", back_populates="menu_items")
    metrics = relationship("MenuItemMetric", back_populates="menu_item", cascade="all, delete-orphan")

    __table_args__ = (
        UniqueConstraint("menu_id", "recipe_id", name="uq_menu_items_menu_recipe"),
        CheckConstraint("price IS NULL OR price >= 0", name="ck_menu_items_price"),
        CheckConstraint("view_count >= 0", name="ck_menu_items_view_count"),
    )


class MenuItemMetric(Base):
    """
    Daily view counter of a menu item.

    One row per (menu_item_id, access_date); recipe_id and restaurant_id are
    copied from the item so reports need no joins.
    """
    __tablename__ = "menu_item_metrics"

    id = Column(Integer, primary_key=True)
    menu_item_id = Column(Integer, ForeignKey("menu_items.id", ondelete="CASCADE"), nullable=False)
    recipe_id = Column(Integer, ForeignKey("recipes.id", ondelete="CASCADE"), nullable=False)
    restaurant_id = Column(Integer, ForeignKey("restaurants.id", ondelete="CASCADE"), nullable=False)
    access_date = Column(Date, nullable=False)
    view_count = Column(Integer, nullable=False, default=1, server_default="1")
    created_at = Column(DateTime, server_default=func.now())

    menu_item = relationship("MenuItem", back_populates="metrics")

    __table_args__ = (
        UniqueConstraint("menu_item_id", "access_date", name="uq_menu_item_metrics_item_date"),
        CheckConstraint("view_count >= 1", name="ck_menu_item_metrics_view_count"),
    )
