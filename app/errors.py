# app/errors.py
import logging

from fastapi import Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

log = logging.getLogger("recipes_api.errors")


class RecipeError(Exception):
    """Base for every failure the API reports as ``{"message": ...}``."""

    status_code = 500
    default_message = "An unknown error occurred!"

    def __init__(self, message: str | None = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class ValidationFailed(RecipeError):
    status_code = 422
    default_message = "Invalid inputs passed, please check your data."


class NotFound(RecipeError):
    status_code = 404
    default_message = "Could not find a recipe for the provided id."


class Forbidden(RecipeError):
    status_code = 401
    default_message = "You are not allowed to change this recipe."


class Unauthenticated(RecipeError):
    status_code = 401
    default_message = "Authentication failed!"


class StoreUnavailable(RecipeError):
    default_message = "Something went wrong, could not find a recipe."


class CreateFailed(RecipeError):
    default_message = "Creating recipe failed, please try again."


class UpdateFailed(RecipeError):
    default_message = "Something went wrong, could not update recipe."


class DeleteFailed(RecipeError):
    default_message = "Something went wrong, could not delete recipe."


def _message(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"message": message})


async def recipe_error_handler(request: Request, exc: RecipeError):
    return _message(exc.status_code, exc.message)


async def validation_error_handler(request: Request, exc: RequestValidationError):
    return _message(ValidationFailed.status_code, ValidationFailed.default_message)


async def http_error_handler(request: Request, exc: StarletteHTTPException):
    if exc.status_code == 404 and exc.detail == "Not Found":
        return _message(404, "Could not find this route.")
    return _message(exc.status_code, str(exc.detail))


async def unhandled_error_handler(request: Request, exc: Exception):
    log.error("unhandled error on %s %s", request.method, request.url.path, exc_info=exc)
    return _message(500, RecipeError.default_message)


def register_error_handlers(app) -> None:
    app.add_exception_handler(RecipeError, recipe_error_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)
    app.add_exception_handler(StarletteHTTPException, http_error_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)
