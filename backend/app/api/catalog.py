"""Class and inspection item catalog API endpoints (admin only)."""

from fastapi import APIRouter, Depends, status

from backend.app.api.deps import get_catalog_service, require_admin
from backend.app.core.responses import success_response
from backend.app.schemas.catalog import (
    ClassCreate,
    ClassResponse,
    ClassUpdate,
    ItemCreate,
    ItemResponse,
    ItemUpdate,
)
from backend.app.schemas.common import ApiResponse
from backend.app.services.catalog import CatalogService

router = APIRouter(tags=["catalog"], dependencies=[Depends(require_admin)])


# Classes

@router.get("/classes", response_model=ApiResponse[list[ClassResponse]])
async def list_classes(service: CatalogService = Depends(get_catalog_service)):
    return success_response(await service.list_classes(), "Classes retrieved successfully")


@router.post("/classes", response_model=ApiResponse[ClassResponse], status_code=status.HTTP_201_CREATED)
async def create_class(class_data: ClassCreate, service: CatalogService = Depends(get_catalog_service)):
    return success_response(await service.create_class(class_data), "Class created successfully")


@router.get("/classes/{class_id}", response_model=ApiResponse[ClassResponse])
async def get_class(class_id: str, service: CatalogService = Depends(get_catalog_service)):
    return success_response(await service.get_class(class_id), "Class retrieved successfully")


@router.patch("/classes/{class_id}", response_model=ApiResponse[ClassResponse])
async def update_class(
    class_id: str,
    class_update: ClassUpdate,
    service: CatalogService = Depends(get_catalog_service),
):
    return success_response(await service.update_class(class_id, class_update), "Class updated successfully")


@router.delete("/classes/{class_id}", response_model=ApiResponse[None])
async def delete_class(class_id: str, service: CatalogService = Depends(get_catalog_service)):
    """Delete a class that has no reports."""
    await service.delete_class(class_id)
    return success_response(None, "Class deleted successfully")


# Items

@router.get("/items", response_model=ApiResponse[list[ItemResponse]])
async def list_items(service: CatalogService = Depends(get_catalog_service)):
    items = await service.list_items()
    return success_response([ItemResponse.model_validate(i) for i in items], "Items retrieved successfully")


@router.post("/items", response_model=ApiResponse[ItemResponse], status_code=status.HTTP_201_CREATED)
async def create_item(item_data: ItemCreate, service: CatalogService = Depends(get_catalog_service)):
    item = await service.create_item(item_data)
    return success_response(ItemResponse.model_validate(item), "Item created successfully")


@router.get("/items/{item_id}", response_model=ApiResponse[ItemResponse])
async def get_item(item_id: str, service: CatalogService = Depends(get_catalog_service)):
    item = await service.get_item(item_id)
    return success_response(ItemResponse.model_validate(item), "Item retrieved successfully")


@router.patch("/items/{item_id}", response_model=ApiResponse[ItemResponse])
async def update_item(
    item_id: str,
    item_update: ItemUpdate,
    service: CatalogService = Depends(get_catalog_service),
):
    item = await service.update_item(item_id, item_update)
    return success_response(ItemResponse.model_validate(item), "Item updated successfully")


@router.delete("/items/{item_id}", response_model=ApiResponse[None])
async def delete_item(item_id: str, service: CatalogService = Depends(get_catalog_service)):
    """Delete an item no report references."""
    await service.delete_item(item_id)
    return success_response(None, "Item deleted successfully")
