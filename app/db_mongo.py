# app/db_mongo.py
from functools import lru_cache

from pymongo import MongoClient, ASCENDING

from app import config


@lru_cache(maxsize=1)
def get_client() -> MongoClient:
    # One pooled client per process; transactions need a replica set
    return MongoClient(config.MONGODB_URI, serverSelectionTimeoutMS=config.MONGODB_TIMEOUT_MS)


def get_db():
    return get_client()[config.MONGODB_DB]


def ensure_indexes(db):
    # Recipes are looked up by owner when the user document is out of reach
    db.recipes.create_index([("creator", ASCENDING)])
    db.users.create_index([("recipes", ASCENDING)])
