"""
Menu item view metrics.

Recording a view bumps the menu item's and the recipe's lifetime counters and
the item's counter for the day, all in one transaction. Daily rows are keyed by
(menu_item_id, access_date) and written with INSERT ... ON CONFLICT DO UPDATE
so concurrent views on the same day never create a second row.
"""
import logging
from datetime import date, datetime
from typing import List, Optional

from sqlalchemy import select, update
from sqlalchemy.orm import Session

from recipe_catalog.core.business_day import get_metrics_date
from recipe_catalog.core.errors import AppError
from recipe_catalog.db.session import upsert_insert
from recipe_catalog.models.menu import MenuItem, MenuItemMetric
from recipe_catalog.models.recipe import Recipe

logger = logging.getLogger(__name__)


class MenuMetricsService:
    """Record menu item views and query their daily series."""

    def __init__(self, db: Session):
        self.db = db

    def record_view(
        self,
        menu_item_id: int,
        recipe_id: int,
        restaurant_id: int,
        viewed_at: Optional[datetime] = None,
    ) -> date:
        """
        Record one view of a menu item.

        Args:
            menu_item_id: Viewed menu item
            recipe_id: Recipe listed by the item
            restaurant_id: Restaurant owning the item's menu
            viewed_at: Moment of the view, defaults to now

        Returns:
            The access date the view was counted on
        """
        access_date = get_metrics_date(viewed_at)
        try:
            result = self.db.execute(
                update(MenuItem)
                .where(MenuItem.id == menu_item_id)
                .values(view_count=MenuItem.view_count + 1, updated_at=MenuItem.updated_at)
                .execution_options(synchronize_session=False)
            )
            if result.rowcount == 0:
                raise AppError.not_found("Menu item", menu_item_id)

            result = self.db.execute(
                update(Recipe)
                .where(Recipe.id == recipe_id)
                .values(view_count=Recipe.view_count + 1, updated_at=Recipe.updated_at)
                .execution_options(synchronize_session=False)
            )
            if result.rowcount == 0:
                raise AppError.not_found("Recipe", recipe_id)

            table = MenuItemMetric.__table__
            stmt = upsert_insert(self.db, table).values(
                menu_item_id=menu_item_id,
                recipe_id=recipe_id,
                restaurant_id=restaurant_id,
                access_date=access_date,
                view_count=1,
            )
            stmt = stmt.on_conflict_do_update(
                index_elements=["menu_item_id", "access_date"],
                set_={"view_count": table.c.view_count + 1},
            )
            self.db.execute(stmt)

            self.db.commit()
        except Exception:
            self.db.rollback()
            raise

        logger.debug("Recorded view of menu item %s on %s", menu_item_id, access_date)
        return access_date

    def get_metrics(
        self,
        menu_item_id: int,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
    ) -> List[MenuItemMetric]:
        """
        Daily rows of a menu item, newest first.

        Bounds are inclusive and compare dates only; a missing bound leaves
        that side open.
        """
        if start_date is not None and end_date is not None and start_date > end_date:
            raise AppError.validation(
                "startDate must not be after endDate",
                details={"startDate": start_date.isoformat(), "endDate": end_date.isoformat()},
            )
        if self.db.get(MenuItem, menu_item_id) is None:
            raise AppError.not_found("Menu item", menu_item_id)

        stmt = select(MenuItemMetric).where(MenuItemMetric.menu_item_id == menu_item_id)
        if start_date is not None:
            stmt = stmt.where(MenuItemMetric.access_date >= start_date)
        if end_date is not None:
            stmt = stmt.where(MenuItemMetric.access_date <= end_date)
        stmt = stmt.order_by(MenuItemMetric.access_date.desc())

        return list(self.db.execute(stmt).scalars().all())
