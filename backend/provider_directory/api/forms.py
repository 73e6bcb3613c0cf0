"""Reading JSON or multipart bodies into the shared input schemas."""
from contextlib import asynccontextmanager
from typing import AsyncIterator, Type, TypeVar

from fastapi import Request
from fastapi.exceptions import RequestValidationError
from pydantic import BaseModel, ValidationError
from starlette.datastructures import UploadFile

from provider_directory.core.errors import InvalidInput
from provider_directory.storage.local_storage import LocalStorage

ModelT = TypeVar("ModelT", bound=BaseModel)


async def read_payload(request: Request, file_field: str) -> tuple[dict, list[UploadFile]]:
    """
    Return (fields, files) from a JSON or form body.

    Only files under `file_field` (or `file_field[]`) are collected; empty
    file inputs are skipped.
    """
    content_type = request.headers.get("content-type", "")
    if content_type.startswith("application/json"):
        try:
            body = await request.json()
        except ValueError:
            raise InvalidInput("Malformed JSON body")
        if not isinstance(body, dict):
            raise InvalidInput("Request body must be a JSON object")
        return body, []

    form = await request.form()
    fields: dict = {}
    files: list[UploadFile] = []
    for key, value in form.multi_items():
        if isinstance(value, UploadFile):
            if key in (file_field, f"{file_field}[]") and value.filename:
                files.append(value)
        else:
            fields[key] = value
    return fields, files


def validate_payload(model: Type[ModelT], data: dict) -> ModelT:
    """Validate once at the boundary; failures become the standard 400 body"""
    try:
        return model.model_validate(data)
    except ValidationError as exc:
        raise RequestValidationError(exc.errors())


@asynccontextmanager
async def stored_uploads(storage: LocalStorage, files: list[UploadFile]) -> AsyncIterator[list[str]]:
    """Store the files; if the block that uses them fails, remove them again"""
    paths = await storage.save_files(files)
    try:
        yield paths
    except Exception:
        storage.discard(paths)
        raise
