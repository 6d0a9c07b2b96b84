"""Class and inspection item catalog management."""

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator

from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from backend.app.core.exceptions import (
    ClassNotFoundError,
    DuplicateNameError,
    ItemInUseError,
    ItemNotFoundError,
    PersistenceError,
)
from backend.app.db.gateway import ReportGateway
from backend.app.models.item import Item
from backend.app.models.report import Report
from backend.app.models.school_class import SchoolClass
from backend.app.schemas.catalog import ClassCreate, ClassResponse, ClassUpdate, ItemCreate, ItemUpdate
from backend.app.utils.dates import local_now

logger = logging.getLogger(__name__)


class CatalogService:
    """CRUD over classes and inspection items, refusing to drop entries reports still use."""

    def __init__(self, gateway: ReportGateway):
        self.gateway = gateway

    @asynccontextmanager
    async def _unit_of_work(self, operation: str, kind: str, name: str = "") -> AsyncIterator[None]:
        """Commit once; a unique-name race becomes DuplicateNameError."""
        try:
            async with self.gateway.transaction():
                yield
        except IntegrityError as e:
            raise DuplicateNameError(kind, name) from e
        except SQLAlchemyError as e:
            logger.exception(f"[CATALOG] {operation} failed")
            raise PersistenceError(operation, e) from e

    # Classes

    async def _class_response(self, school_class: SchoolClass) -> ClassResponse:
        return ClassResponse(
            id=school_class.id,
            name=school_class.name,
            description=school_class.description,
            student_count=len(school_class.students),
            report_count=await self.gateway.count_reports(Report.class_id == school_class.id),
            created_at=school_class.created_at,
            updated_at=school_class.updated_at,
        )

    async def _require_class(self, class_id: str) -> SchoolClass:
        school_class = await self.gateway.get_class(class_id)
        if school_class is None:
            raise ClassNotFoundError(class_id)
        return school_class

    async def list_classes(self) -> list[ClassResponse]:
        return [await self._class_response(c) for c in await self.gateway.list_classes()]

    async def get_class(self, class_id: str) -> ClassResponse:
        return await self._class_response(await self._require_class(class_id))

    async def create_class(self, data: ClassCreate) -> ClassResponse:
        name = data.name.strip()
        if await self.gateway.find_class_by_name(name) is not None:
            raise DuplicateNameError("class", name)

        async with self._unit_of_work("create_class", "class", name):
            school_class = await self.gateway.add(SchoolClass(name=name, description=data.description))

        logger.info(f"[CATALOG] Class created: {school_class.id} ({name})")
        return await self.get_class(school_class.id)

    async def update_class(self, class_id: str, data: ClassUpdate) -> ClassResponse:
        school_class = await self._require_class(class_id)
        name = data.name.strip() if data.name is not None else school_class.name
        if name != school_class.name and await self.gateway.find_class_by_name(name) is not None:
            raise DuplicateNameError("class", name)

        async with self._unit_of_work("update_class", "class", name):
            school_class.name = name
            if data.description is not None:
                school_class.description = data.description
            school_class.updated_at = local_now()

        return await self.get_class(class_id)

    async def delete_class(self, class_id: str) -> None:
        """Delete a class with no reports; its students become unassigned."""
        school_class = await self._require_class(class_id)
        if await self.gateway.count_reports(Report.class_id == class_id):
            raise ItemInUseError("class", class_id)

        async with self._unit_of_work("delete_class", "class"):
            for student in school_class.students:
                student.class_id = None
            await self.gateway.delete(school_class)

        logger.info(f"[CATALOG] Class deleted: {class_id}")

    # Items

    async def _require_item(self, item_id: str) -> Item:
        item = await self.gateway.get_item(item_id)
        if item is None:
            raise ItemNotFoundError(item_id)
        return item

    async def list_items(self) -> list[Item]:
        return await self.gateway.list_items()

    async def get_item(self, item_id: str) -> Item:
        return await self._require_item(item_id)

    async def create_item(self, data: ItemCreate) -> Item:
        name = data.name.strip()
        if await self.gateway.find_item_by_name(name) is not None:
            raise DuplicateNameError("item", name)

        async with self._unit_of_work("create_item", "item", name):
            item = await self.gateway.add(Item(name=name, description=data.description))

        logger.info(f"[CATALOG] Item created: {item.id} ({name})")
        return item

    async def update_item(self, item_id: str, data: ItemUpdate) -> Item:
        item = await self._require_item(item_id)
        name = data.name.strip() if data.name is not None else item.name
        if name != item.name and await self.gateway.find_item_by_name(name) is not None:
            raise DuplicateNameError("item", name)

        async with self._unit_of_work("update_item", "item", name):
            item.name = name
            if data.description is not None:
                item.description = data.description
            item.updated_at = local_now()

        return item

    async def delete_item(self, item_id: str) -> None:
        """Delete an item unless a report references it (checked against the report_items index)."""
        item = await self._require_item(item_id)
        if await self.gateway.item_is_referenced(item_id):
            raise ItemInUseError("item", item_id)

        async with self._unit_of_work("delete_item", "item"):
            await self.gateway.delete(item)

        logger.info(f"[CATALOG] Item deleted: {item_id}")
