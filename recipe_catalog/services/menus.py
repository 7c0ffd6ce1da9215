"""
Menu aggregate operations.

A menu lists recipes of the catalog with a price, a display position and an
availability flag. Items are unique per (menu, recipe): creating a menu
rejects duplicates up front, updating a menu upserts each listed item on that
pair and leaves unlisted items alone.
"""
import logging
from typing import List, Tuple

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from recipe_catalog.core.errors import AppError
from recipe_catalog.db.session import upsert_insert
from recipe_catalog.models.menu import Menu, MenuItem
from recipe_catalog.models.recipe import Recipe
from recipe_catalog.models.restaurant import Restaurant
from recipe_catalog.schemas.menu import MenuCreate

logger = logging.getLogger(__name__)

# Item fields an upsert may overwrite on an existing (menu, recipe) row
UPSERT_ITEM_FIELDS = ("price", "display_order", "is_available")


class MenuService:
    """Create, update and read menus and their items."""

    def __init__(self, db: Session):
        self.db = db

    def get_menu(self, menu_id: int) -> Menu:
        menu = self.db.get(Menu, menu_id)
        if menu is None:
            raise AppError.not_found("Menu", menu_id)
        return menu

    def list_by_restaurant(self, restaurant_id: int) -> List[Menu]:
        """Active menus of a restaurant, newest first."""
        stmt = (
            select(Menu)
            .where(Menu.restaurant_id == restaurant_id, Menu.is_active.is_(True))
            .order_by(Menu.created_at.desc(), Menu.id.desc())
        )
        return list(self.db.execute(stmt).scalars().all())

    def list_items(self, menu_id: int) -> List[Tuple[MenuItem, Recipe]]:
        """
        Available items of an active menu with their recipes.

        Items whose recipe was soft-deleted are hidden.
        """
        menu = self.db.get(Menu, menu_id)
        if menu is None or not menu.is_active:
            raise AppError.not_found("Menu", menu_id)

        stmt = (
            select(MenuItem, Recipe)
            .join(Recipe, Recipe.id == MenuItem.recipe_id)
            .where(
                MenuItem.menu_id == menu_id,
                MenuItem.is_available.is_(True),
                Recipe.is_active.is_(True),
            )
            .order_by(MenuItem.display_order.asc(), MenuItem.created_at.asc(), MenuItem.id.asc())
        )
        return [(row[0], row[1]) for row in self.db.execute(stmt).all()]

    def get_restaurant_item(self, restaurant_id: int, item_id: int) -> Tuple[MenuItem, Recipe]:
        """An available item on one of the restaurant's active menus."""
        stmt = (
            select(MenuItem, Recipe)
            .join(Menu, Menu.id == MenuItem.menu_id)
            .join(Recipe, Recipe.id == MenuItem.recipe_id)
            .where(
                MenuItem.id == item_id,
                Menu.restaurant_id == restaurant_id,
                Menu.is_active.is_(True),
                MenuItem.is_available.is_(True),
                Recipe.is_active.is_(True),
            )
        )
        row = self.db.execute(stmt).first()
        if row is None:
            raise AppError.not_found("Menu item", item_id)
        return row[0], row[1]

    def create_menu(self, data: MenuCreate) -> Menu:
        """
        Create a menu and its items in one transaction.

        All validation happens before the first write.

        Raises:
            AppError: VALIDATION_ERROR for an empty name, a non-positive
                restaurant id, duplicate recipes, negative prices or unknown
                recipes; NOT_FOUND for an unknown restaurant
        """
        values = data.model_dump()
        items = values.get("items") or []
        try:
            if not values["name"] or not values["name"].strip():
                raise AppError.validation("Menu name must not be empty")
            if values["restaurant_id"] <= 0:
                raise AppError.validation("restaurant_id must be a positive integer")
            self._validate_items(items)

            if self.db.get(Restaurant, values["restaurant_id"]) is None:
                raise AppError.not_found("Restaurant", values["restaurant_id"])

            menu = Menu(
                restaurant_id=values["restaurant_id"],
                name=values["name"].strip(),
                description=values.get("description"),
                is_active=True,
            )
            self.db.add(menu)
            self.db.flush()

            for item in items:
                self.db.add(MenuItem(
                    menu_id=menu.id,
                    recipe_id=item["recipe_id"],
                    price=item.get("price"),
                    display_order=item.get("display_order") or 0,
                    is_available=True if item.get("is_available") is None else item["is_available"],
                    view_count=0,
                ))

            self.db.commit()
        except Exception:
            self.db.rollback()
            raise

        self.db.refresh(menu)
        logger.info("Created menu %s for restaurant %s with %s items", menu.id, menu.restaurant_id, len(items))
        return menu

    def update_menu(self, menu_id: int, changes: dict) -> Menu:
        """
        Partially update a menu and upsert the listed items.

        ``changes`` holds only the fields the caller sent
        (``MenuUpdate.model_dump(exclude_unset=True)``), and each item only
        the item fields it sent. An existing (menu, recipe) item gets the sent
        fields overwritten; a new one is inserted with defaults for the rest.
        """
        try:
            menu = self.get_menu(menu_id)

            if "name" in changes and (changes["name"] is None or not changes["name"].strip()):
                raise AppError.validation("Menu name must not be empty")
            if "is_active" in changes and changes["is_active"] is None:
                raise AppError.validation("is_active must be true or false")
            items = changes.get("items") or []
            self._validate_items(items)

            if "name" in changes:
                menu.name = changes["name"].strip()
            if "description" in changes:
                menu.description = changes["description"]
            if "is_active" in changes:
                menu.is_active = changes["is_active"]
            menu.updated_at = func.now()
            self.db.flush()

            for item in items:
                self._upsert_item(menu.id, item)

            self.db.commit()
        except Exception:
            self.db.rollback()
            raise

        self.db.refresh(menu)
        logger.info("Updated menu %s (%s items upserted)", menu.id, len(items))
        return menu

    def _upsert_item(self, menu_id: int, item: dict) -> None:
        table = MenuItem.__table__
        is_available = item.get("is_available")
        stmt = upsert_insert(self.db, table).values(
            menu_id=menu_id,
            recipe_id=item["recipe_id"],
            price=item.get("price"),
            display_order=item.get("display_order") or 0,
            is_available=True if is_available is None else is_available,
            view_count=0,
        )
        overwrite = {field: stmt.excluded[field] for field in UPSERT_ITEM_FIELDS if field in item}
        overwrite["updated_at"] = func.now()
        stmt = stmt.on_conflict_do_update(index_elements=["menu_id", "recipe_id"], set_=overwrite)
        self.db.execute(stmt)

    def _validate_items(self, items: List[dict]) -> None:
        recipe_ids = [item["recipe_id"] for item in items]
        duplicates = sorted({rid for rid in recipe_ids if recipe_ids.count(rid) > 1})
        if duplicates:
            raise AppError.validation(
                "A recipe cannot be listed twice on the same menu",
                details={"recipe_ids": duplicates},
            )

        negative = [item["recipe_id"] for item in items if item.get("price") is not None and item["price"] < 0]
        if negative:
            raise AppError.validation("Price must not be negative", details={"recipe_ids": negative})

        if not recipe_ids:
            return
        found = set(self.db.execute(
            select(Recipe.id).where(Recipe.id.in_(recipe_ids), Recipe.is_active.is_(True))
        ).scalars().all())
        missing = sorted(set(recipe_ids) - found)
        if missing:
            raise AppError.validation("Unknown recipes", details={"recipe_ids": missing})
