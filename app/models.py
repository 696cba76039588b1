# app/models.py
from typing import Any, Dict, List

from pydantic import BaseModel, Field


class Recipe(BaseModel):
    id: str
    title: str
    description: str
    address: str
    image: str
    creator: str

    @classmethod
    def from_doc(cls, doc: Dict[str, Any]) -> "Recipe":
        # Mongo keeps the key as _id and ObjectIds; the API exposes plain strings
        return cls(
            id=str(doc["_id"]),
            title=doc.get("title", ""),
            description=doc.get("description", ""),
            address=doc.get("address", ""),
            image=doc.get("image", ""),
            creator=str(doc.get("creator", "")),
        )


class RecipeUpdate(BaseModel):
    title: str = Field(min_length=1)
    description: str = Field(min_length=5)


class RecipeResponse(BaseModel):
    recipe: Recipe


class RecipeListResponse(BaseModel):
    recipes: List[Recipe]


class MessageResponse(BaseModel):
    message: str
