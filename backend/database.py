from fastapi import Request
from motor.motor_asyncio import AsyncIOMotorClient

from config.env import MONGO_URI


def connect_db(app):
    if not MONGO_URI:
        raise RuntimeError("MONGODB_URI not set")

    client = AsyncIOMotorClient(MONGO_URI)
    app.state.mongo_client = client
    app.state.db = client.get_default_database()
    return app.state.db


def close_db(app):
    client = getattr(app.state, "mongo_client", None)
    if client is not None:
        client.close()
    app.state.mongo_client = None
    app.state.db = None


def get_db(request: Request):
    db = getattr(request.app.state, "db", None)
    if db is None:
        raise RuntimeError("Database is not connected")
    return db
