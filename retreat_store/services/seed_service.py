"""Idempotent bootstrap of the admin account, teams and sample products."""
import logging

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from retreat_store.config import get_settings
from retreat_store.models.base import UserRole
from retreat_store.models.product import Product
from retreat_store.models.team import Team
from retreat_store.models.user import User
from retreat_store.utils.passwords import hash_password

logger = logging.getLogger(__name__)

# name, description, price, category, stock
SAMPLE_PRODUCTS = [
    ("Coffee", "Hot coffee", 500, "beverage", 20),
    ("Snacks", "Various snacks", 300, "food", 15),
    ("Prayer Request", "Special prayer request", 200, "service", 999),
    ("Souvenir", "Retreat souvenir", 1000, "item", 10),
]


class SeedService:
    """Creates whatever initial data is missing. Safe to run on every start."""

    def __init__(self, db: AsyncSession):
        self.db = db
        self.settings = get_settings()

    async def ensure_initial_data(self) -> dict:
        created = {"admin": False, "teams": 0, "products": 0}

        admin = await self.db.execute(select(User.id).where(User.username == self.settings.admin_username))
        if admin.scalar_one_or_none() is None:
            self.db.add(User(
                username=self.settings.admin_username,
                password_hash=hash_password(self.settings.admin_password),
                role=UserRole.ADMIN.value,
                balance=0,
            ))
            created["admin"] = True
            logger.info(f"Created admin account '{self.settings.admin_username}'")

        existing = await self.db.execute(select(Team.name))
        existing_names = set(existing.scalars().all())
        for name in self.settings.seed_team_names:
            if name not in existing_names:
                self.db.add(Team(name=name))
                created["teams"] += 1

        if self.settings.seed_sample_products:
            count = await self.db.execute(select(func.count(Product.id)))
            if count.scalar_one() == 0:
                for name, description, price, category, stock in SAMPLE_PRODUCTS:
                    self.db.add(Product(
                        name=name,
                        description=description,
                        price=price,
                        category=category,
                        stock_quantity=stock,
                        initial_stock=stock,
                        is_active=True,
                    ))
                    created["products"] += 1

        await self.db.commit()
        logger.info(f"Initial data check complete: {created}")
        return created
