# app/dependencies.py
from app import config
from app.db_mongo import get_client
from app.services.recipe_store import RecipeStore


def get_store() -> RecipeStore:
    return RecipeStore(get_client(), config.MONGODB_DB)
