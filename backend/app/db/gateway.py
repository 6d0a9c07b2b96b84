"""Persistence gateway: typed reads and writes over the report entity set."""

from contextlib import asynccontextmanager
from typing import Any, AsyncIterator

from sqlalchemy import ColumnElement, exists, func, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from backend.app.models.approval import ReportApproval
from backend.app.models.item import Item
from backend.app.models.report import Report, ReportItem
from backend.app.models.review import ReportReview
from backend.app.models.school_class import SchoolClass
from backend.app.models.user import Student, User


def _report_detail_options():
    return (
        selectinload(Report.reporter).selectinload(User.student_profile).selectinload(Student.school_class),
        selectinload(Report.school_class),
        selectinload(Report.approval).selectinload(ReportApproval.cs_student),
        selectinload(Report.approval).selectinload(ReportApproval.cp_student),
        selectinload(Report.reviews).selectinload(ReportReview.admin),
    )


class ReportGateway:
    """
    Query interface the lifecycle and aggregation engines are written against.

    All writes happen inside ``transaction()``: the unit of work commits once on
    success and rolls back entirely on any exception.
    """

    def __init__(self, db: AsyncSession):
        self.db = db

    @asynccontextmanager
    async def transaction(self) -> AsyncIterator["ReportGateway"]:
        try:
            yield self
            await self.db.commit()
        except BaseException:
            await self.db.rollback()
            raise

    # Users / students

    async def get_user(self, user_id: str) -> User | None:
        result = await self.db.execute(
            select(User)
            .where(User.id == user_id)
            .options(selectinload(User.student_profile).selectinload(Student.school_class))
        )
        return result.scalar_one_or_none()

    async def find_student(self, user_id: str) -> Student | None:
        result = await self.db.execute(
            select(Student)
            .where(Student.user_id == user_id)
            .options(selectinload(Student.user), selectinload(Student.school_class))
        )
        return result.scalar_one_or_none()

    async def list_students(self, *conditions: ColumnElement[bool]) -> list[Student]:
        result = await self.db.execute(
            select(Student)
            .join(User, User.id == Student.user_id)
            .where(*conditions)
            .options(selectinload(Student.user), selectinload(Student.school_class))
            .order_by(User.name.asc())
        )
        return list(result.scalars().all())

    async def count_students(self, *conditions: ColumnElement[bool]) -> int:
        result = await self.db.execute(
            select(func.count(Student.id)).join(User, User.id == Student.user_id).where(*conditions)
        )
        return result.scalar_one()

    # Reports

    async def find_report(
        self,
        *conditions: ColumnElement[bool],
        for_update: bool = False,
        with_details: bool = False,
    ) -> Report | None:
        query = select(Report).where(*conditions).order_by(Report.created_at.desc()).limit(1)
        if with_details:
            query = query.options(*_report_detail_options())
        else:
            query = query.options(selectinload(Report.approval), selectinload(Report.reporter))
        if for_update:
            query = query.with_for_update()
        result = await self.db.execute(query.execution_options(populate_existing=True))
        return result.scalar_one_or_none()

    async def get_report(self, report_id: str, *, for_update: bool = False, with_details: bool = False) -> Report | None:
        return await self.find_report(Report.id == report_id, for_update=for_update, with_details=with_details)

    async def create_report(self, **data: Any) -> Report:
        report = Report(**data)
        self.db.add(report)
        await self.db.flush()
        return report

    async def index_report_items(self, report_id: str, item_ids: set[str]) -> None:
        """Record which catalog items a report references."""
        if not item_ids:
            return
        result = await self.db.execute(select(Item.id).where(Item.id.in_(item_ids)))
        for item_id in result.scalars().all():
            self.db.add(ReportItem(report_id=report_id, item_id=item_id))
        await self.db.flush()

    async def add_review(self, review: ReportReview) -> ReportReview:
        self.db.add(review)
        await self.db.flush()
        return review

    async def update_report_status(self, report: Report, status: str) -> Report:
        report.status = status
        await self.db.flush()
        return report

    async def upsert_approval(self, report_id: str, patch: dict[str, Any]) -> ReportApproval:
        approval = await self.db.get(ReportApproval, report_id, populate_existing=True)
        if approval is None:
            approval = ReportApproval(report_id=report_id)
            self.db.add(approval)
        for field, value in patch.items():
            setattr(approval, field, value)
        await self.db.flush()
        await self.db.refresh(approval)
        return approval

    async def count_reports(self, *conditions: ColumnElement[bool]) -> int:
        result = await self.db.execute(select(func.count(Report.id)).where(*conditions))
        return result.scalar_one()

    async def list_reports(
        self,
        *conditions: ColumnElement[bool],
        newest_first: bool = True,
        offset: int | None = None,
        limit: int | None = None,
        with_details: bool = True,
    ) -> list[Report]:
        order = Report.created_at.desc() if newest_first else Report.created_at.asc()
        query = select(Report).where(*conditions).order_by(order)
        if with_details:
            query = query.options(*_report_detail_options())
        if offset:
            query = query.offset(offset)
        if limit is not None:
            query = query.limit(limit)
        result = await self.db.execute(query)
        return list(result.scalars().all())

    # Catalog

    async def list_items(self) -> list[Item]:
        result = await self.db.execute(select(Item).order_by(Item.name.asc()))
        return list(result.scalars().all())

    async def get_item(self, item_id: str) -> Item | None:
        return await self.db.get(Item, item_id)

    async def find_item_by_name(self, name: str) -> Item | None:
        result = await self.db.execute(select(Item).where(Item.name == name))
        return result.scalar_one_or_none()

    async def item_is_referenced(self, item_id: str) -> bool:
        result = await self.db.execute(select(exists().where(ReportItem.item_id == item_id)))
        return bool(result.scalar())

    async def reports_with_item(self, item_id: str, *conditions: ColumnElement[bool]) -> list[Report]:
        query = (
            select(Report)
            .join(ReportItem, ReportItem.report_id == Report.id)
            .where(ReportItem.item_id == item_id, *conditions)
            .options(selectinload(Report.reporter), selectinload(Report.school_class))
            .order_by(Report.created_at.desc())
        )
        result = await self.db.execute(query)
        return list(result.scalars().all())

    async def list_classes(self) -> list[SchoolClass]:
        result = await self.db.execute(
            select(SchoolClass)
            .options(selectinload(SchoolClass.students))
            .order_by(SchoolClass.name.asc())
        )
        return list(result.scalars().all())

    async def get_class(self, class_id: str) -> SchoolClass | None:
        result = await self.db.execute(
            select(SchoolClass)
            .where(SchoolClass.id == class_id)
            .options(selectinload(SchoolClass.students).selectinload(Student.user))
        )
        return result.scalar_one_or_none()

    async def find_class_by_name(self, name: str) -> SchoolClass | None:
        result = await self.db.execute(select(SchoolClass).where(SchoolClass.name == name))
        return result.scalar_one_or_none()

    async def count_classes(self) -> int:
        result = await self.db.execute(select(func.count(SchoolClass.id)))
        return result.scalar_one()

    async def add(self, entity: Any) -> Any:
        self.db.add(entity)
        await self.db.flush()
        return entity

    async def delete(self, entity: Any) -> None:
        await self.db.delete(entity)
        await self.db.flush()
