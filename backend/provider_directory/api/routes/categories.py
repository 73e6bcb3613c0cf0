from fastapi import APIRouter

from provider_directory.core.taxonomy import categories_payload

router = APIRouter(tags=["categories"])


@router.get("/categories")
async def list_categories():
    """The fixed category/subcategory taxonomy"""
    return {"categories": categories_payload()}
