import logging

from fastapi import Request
from pymongo import MongoClient
from pymongo.database import Database

from src import config

logger = logging.getLogger(__name__)


def open_client() -> MongoClient:
    if not config.MONGO_URI or not config.DB_NAME:
        raise RuntimeError("Set DATABASE_URL and MONGO_DB_NAME in your .env")
    logger.info("Opening MongoDB client for database %s", config.DB_NAME)
    return MongoClient(config.MONGO_URI)


def close_client(client: MongoClient) -> None:
    logger.info("Closing MongoDB client")
    client.close()


def ping(db: Database) -> None:
    db.command("ping")


# FastAPI dependency: the database opened by the app lifespan
def get_db(request: Request) -> Database:
    return request.app.state.db
