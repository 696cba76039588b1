# app/routers/recipes.py
from __future__ import annotations

from fastapi import APIRouter, BackgroundTasks, Depends, File, Form, UploadFile, status

from app import config
from app.auth import get_requester_id
from app.dependencies import get_store
from app.models import MessageResponse, RecipeListResponse, RecipeResponse, RecipeUpdate
from app.services.image_files import discard_image, save_image
from app.services.recipe_store import RecipeStore

router = APIRouter(prefix=config.API_PREFIX, tags=["recipes"])


@router.get("/user/{user_id}", response_model=RecipeListResponse)
def recipes_by_user(user_id: str, store: RecipeStore = Depends(get_store)) -> RecipeListResponse:
    return RecipeListResponse(recipes=store.get_recipes_for_user(user_id))


@router.get("/{recipe_id}", response_model=RecipeResponse)
def recipe_by_id(recipe_id: str, store: RecipeStore = Depends(get_store)) -> RecipeResponse:
    return RecipeResponse(recipe=store.get_recipe(recipe_id))


@router.post("", response_model=RecipeResponse, status_code=status.HTTP_201_CREATED)
def create_recipe(
    title: str = Form(..., min_length=1),
    description: str = Form(..., min_length=5),
    address: str = Form(..., min_length=1),
    image: UploadFile = File(...),
    requester_id: str = Depends(get_requester_id),
    store: RecipeStore = Depends(get_store),
) -> RecipeResponse:
    image_path = save_image(image, config.UPLOAD_DIR)
    try:
        recipe = store.create_recipe(title, description, address, image_path, requester_id)
    except Exception:
        # Nothing references the upload if the recipe was not stored
        discard_image(image_path)
        raise
    return RecipeResponse(recipe=recipe)


@router.patch("/{recipe_id}", response_model=RecipeResponse)
def update_recipe(
    recipe_id: str,
    body: RecipeUpdate,
    requester_id: str = Depends(get_requester_id),
    store: RecipeStore = Depends(get_store),
) -> RecipeResponse:
    recipe = store.update_recipe(recipe_id, body.title, body.description, requester_id)
    return RecipeResponse(recipe=recipe)


@router.delete("/{recipe_id}", response_model=MessageResponse)
def delete_recipe(
    recipe_id: str,
    background_tasks: BackgroundTasks,
    requester_id: str = Depends(get_requester_id),
    store: RecipeStore = Depends(get_store),
) -> MessageResponse:
    store.delete_recipe(recipe_id, requester_id, schedule=background_tasks.add_task)
    return MessageResponse(message="Deleted recipe.")
