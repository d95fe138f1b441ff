# bistro/init_db.py
"""
Bootstrap the database.

- creates all tables
- inserts the default reservation_settings row (if none exists)
- optionally seeds a small demo menu

Idempotent: safe to run on every deploy.
"""

import json
import logging
import sys

from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker

from .models.generated import Base, MenuItems, ReservationSettings, RestaurantSettings
from .services.slots.calendar import DEFAULT_BUSINESS_HOURS

logger = logging.getLogger(__name__)


DEMO_MENU = [
    {"id": "spring-rolls", "name": "Spring Rolls", "price": 6.50, "category": "starters"},
    {"id": "pho-bo", "name": "Pho Bo", "price": 12.50, "category": "mains"},
    {"id": "bun-cha", "name": "Bun Cha", "price": 13.90, "category": "mains"},
    {"id": "iced-coffee", "name": "Iced Coffee", "price": 4.20, "category": "drinks"},
]


# ======================================================
# SCHEMA
# ======================================================

def create_tables(engine: Engine) -> None:
    Base.metadata.create_all(bind=engine)
    logger.info("Tables created")


# ======================================================
# SEED
# ======================================================

def seed_defaults(db: Session, with_demo_menu: bool = False) -> None:
    if db.query(ReservationSettings).first() is None:
        db.add(ReservationSettings())
        logger.info("Default reservation settings inserted")

    if db.query(RestaurantSettings).first() is None:
        db.add(RestaurantSettings(business_hours=json.dumps(DEFAULT_BUSINESS_HOURS)))
        logger.info("Default restaurant settings inserted")

    if with_demo_menu and db.query(MenuItems).first() is None:
        for idx, item in enumerate(DEMO_MENU):
            db.add(MenuItems(sort_order=idx, **item))
        logger.info(f"Demo menu inserted: {len(DEMO_MENU)} items")

    db.commit()


def init_db(engine: Engine, with_demo_menu: bool = False) -> None:
    create_tables(engine)
    db = sessionmaker(bind=engine)()
    try:
        seed_defaults(db, with_demo_menu=with_demo_menu)
    finally:
        db.close()


def main() -> None:
    from .database import engine

    logging.basicConfig(level=logging.INFO)
    init_db(engine, with_demo_menu="--demo" in sys.argv[1:])
    print("Database initialised")


if __name__ == "__main__":
    main()
