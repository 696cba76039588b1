# app/services/recipe_store.py
import logging
from typing import Any, Callable, Dict, List, Optional

from pymongo import MongoClient, ReturnDocument
from pymongo.errors import PyMongoError

from app.errors import (
    CreateFailed,
    DeleteFailed,
    Forbidden,
    NotFound,
    StoreUnavailable,
    UpdateFailed,
)
from app.models import Recipe
from app.services.image_files import discard_image
from app.utils.object_ids import parse_object_id

log = logging.getLogger("recipes_api.store")


def _is_owner(creator, requester_id: str) -> bool:
    requester = parse_object_id(requester_id)
    return requester is not None and parse_object_id(creator) == requester


class RecipeStore:
    """
    Recipes and their owners' back-references.

    Writes touching both a recipe and its creator's ``recipes`` array run in one
    transaction: either both documents change or neither does. Failures are not
    retried here; callers see them as the matching ``RecipeError``.
    """

    def __init__(self, client: MongoClient, db_name: str):
        self.client = client
        self.db = client[db_name]

    def get_recipe(self, recipe_id: str) -> Recipe:
        oid = parse_object_id(recipe_id)
        if oid is None:
            raise NotFound()
        try:
            doc = self.db.recipes.find_one({"_id": oid})
        except PyMongoError as e:
            log.exception("recipe lookup failed")
            raise StoreUnavailable() from e
        if not doc:
            raise NotFound()
        return Recipe.from_doc(doc)

    def get_recipes_for_user(self, user_id: str) -> List[Recipe]:
        # A missing user and a user without recipes are reported the same way
        not_found = NotFound("Could not find recipes for the provided user id.")
        oid = parse_object_id(user_id)
        if oid is None:
            raise not_found
        try:
            user = self.db.users.find_one({"_id": oid})
            refs = (user or {}).get("recipes") or []
            if not refs:
                raise not_found
            docs = {d["_id"]: d for d in self.db.recipes.find({"_id": {"$in": refs}})}
        except PyMongoError as e:
            log.exception("fetching recipes for user %s failed", user_id)
            raise StoreUnavailable("Fetching recipes failed, please try again later.") from e

        recipes = [Recipe.from_doc(docs[ref]) for ref in refs if ref in docs]
        if not recipes:
            raise not_found
        return recipes

    def create_recipe(
        self,
        title: str,
        description: str,
        address: str,
        image_path: str,
        creator_id: str,
    ) -> Recipe:
        creator = parse_object_id(creator_id)
        if creator is None:
            raise NotFound("Could not find user for provided id.")
        try:
            user = self.db.users.find_one({"_id": creator}, {"_id": 1})
        except PyMongoError as e:
            log.exception("creator lookup failed")
            raise CreateFailed() from e
        if not user:
            raise NotFound("Could not find user for provided id.")

        doc: Dict[str, Any] = {
            "title": title,
            "description": description,
            "address": address,
            "image": image_path,
            "creator": creator,
        }
        try:
            with self.client.start_session() as session:
                with session.start_transaction():
                    res = self.db.recipes.insert_one(doc, session=session)
                    pushed = self.db.users.update_one(
                        {"_id": creator},
                        {"$push": {"recipes": res.inserted_id}},
                        session=session,
                    )
                    if pushed.matched_count != 1:
                        # Creator vanished between lookup and write; abort both
                        log.warning("creator %s vanished during create, aborting", creator_id)
                        raise CreateFailed()
        except PyMongoError as e:
            log.exception("create transaction aborted")
            raise CreateFailed() from e

        doc["_id"] = res.inserted_id
        log.info("recipe created", extra={"recipe_id": str(res.inserted_id)})
        return Recipe.from_doc(doc)

    def update_recipe(self, recipe_id: str, title: str, description: str, requester_id: str) -> Recipe:
        oid = parse_object_id(recipe_id)
        if oid is None:
            raise NotFound("Could not find recipe for this id.")
        try:
            doc = self.db.recipes.find_one({"_id": oid})
        except PyMongoError as e:
            log.exception("recipe lookup failed")
            raise UpdateFailed() from e
        if not doc:
            raise NotFound("Could not find recipe for this id.")

        if not _is_owner(doc.get("creator"), requester_id):
            raise Forbidden("You are not allowed to edit this recipe.")

        try:
            # Same owner in the filter so a concurrent delete or reassignment misses
            updated = self.db.recipes.find_one_and_update(
                {"_id": oid, "creator": doc.get("creator")},
                {"$set": {"title": title, "description": description}},
                return_document=ReturnDocument.AFTER,
            )
        except PyMongoError as e:
            log.exception("recipe update failed")
            raise UpdateFailed() from e
        if updated is None:
            raise NotFound("Could not find recipe for this id.")
        return Recipe.from_doc(updated)

    def delete_recipe(
        self,
        recipe_id: str,
        requester_id: str,
        schedule: Optional[Callable[..., Any]] = None,
    ) -> Recipe:
        """
        Remove a recipe and its id from the creator's list, then its image.

        The image goes after the commit and outside the transaction; when
        ``schedule`` is given (``BackgroundTasks.add_task``) removal is handed to
        it instead of running inline. A failed removal is only logged.
        """
        oid = parse_object_id(recipe_id)
        if oid is None:
            raise NotFound("Could not find recipe for this id.")
        try:
            doc = self.db.recipes.find_one({"_id": oid})
            creator = self.db.users.find_one({"_id": doc.get("creator")}) if doc else None
        except PyMongoError as e:
            log.exception("recipe lookup failed")
            raise DeleteFailed() from e
        if not doc:
            raise NotFound("Could not find recipe for this id.")

        creator_id = creator["_id"] if creator else doc.get("creator")
        if not _is_owner(creator_id, requester_id):
            raise Forbidden("You are not allowed to delete this recipe.")
        if creator is None:
            log.warning("recipe %s has no creator document", recipe_id)

        try:
            with self.client.start_session() as session:
                with session.start_transaction():
                    self.db.recipes.delete_one({"_id": oid}, session=session)
                    self.db.users.update_one(
                        {"_id": creator_id},
                        {"$pull": {"recipes": oid}},
                        session=session,
                    )
        except PyMongoError as e:
            log.exception("delete transaction aborted")
            raise DeleteFailed() from e

        image = doc.get("image")
        if schedule is not None:
            schedule(discard_image, image)
        else:
            discard_image(image)
        return Recipe.from_doc(doc)
