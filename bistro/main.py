# bistro/main.py

import logging

from fastapi import FastAPI
from redis.exceptions import RedisError
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from .config import settings
from .database import engine
from .redis_client import redis_client
from .routers import availability, menu, orders, reservations
from .routers import settings as settings_router

logging.basicConfig(level=settings.log_level)
logger = logging.getLogger(__name__)

app = FastAPI(title="Bistro API")

app.include_router(availability.router)
app.include_router(reservations.router)
app.include_router(orders.router)
app.include_router(menu.router)
app.include_router(settings_router.router)


@app.get("/health")
def health():
    try:
        with engine.connect() as conn:
            conn.execute(text("SELECT 1"))
        database = True
    except SQLAlchemyError as e:
        logger.error(f"Health check: database unreachable: {e}")
        database = False

    redis_ok = None
    if redis_client is not None:
        try:
            redis_ok = bool(redis_client.ping())
        except RedisError as e:
            logger.error(f"Health check: redis unreachable: {e}")
            redis_ok = False

    return {"database": database, "redis": redis_ok}


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "bistro.main:app",
        host="0.0.0.0",
        port=8000,
    )
