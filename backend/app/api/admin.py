"""Administrative dashboard API endpoints."""

from datetime import date

from fastapi import APIRouter, Depends, Query

from backend.app.api.deps import get_aggregation_service, require_admin
from backend.app.core.responses import success_response
from backend.app.schemas.common import ApiResponse
from backend.app.schemas.dashboard import (
    AdminOverview,
    AdminReportList,
    DailyDigest,
    ItemDetails,
    ItemTrends,
    ItemUsageOverview,
    OrganizedWeeks,
    RepresentativeOverview,
    WeekReports,
    WeeklyDigest,
)
from backend.app.services.aggregation import AggregationService

router = APIRouter(prefix="/admin", tags=["admin"], dependencies=[Depends(require_admin)])


@router.get("/overview", response_model=ApiResponse[AdminOverview])
async def admin_overview(service: AggregationService = Depends(get_aggregation_service)):
    return success_response(await service.admin_overview(), "Dashboard data retrieved successfully")


@router.get("/reports", response_model=ApiResponse[AdminReportList])
async def all_reports(
    status: str = Query(default="all", description="all, pending, approved or rejected"),
    search: str | None = None,
    page: int = Query(default=1, ge=1),
    limit: int | None = Query(default=None, ge=1, le=100),
    service: AggregationService = Depends(get_aggregation_service),
):
    """Every class's reports, paginated, with overall status counts."""
    listing = await service.all_reports(status=status, search=search, page=page, limit=limit)
    return success_response(listing, "All reports fetched successfully")


@router.get("/digest/daily", response_model=ApiResponse[DailyDigest])
async def daily_digest(
    day: date | None = Query(default=None, description="Defaults to today"),
    service: AggregationService = Depends(get_aggregation_service),
):
    return success_response(await service.daily_digest(day), "Daily digest retrieved successfully")


@router.get("/digest/weekly", response_model=ApiResponse[WeeklyDigest])
async def weekly_digest(
    reference_date: date | None = Query(default=None, description="Any day of the wanted week"),
    service: AggregationService = Depends(get_aggregation_service),
):
    return success_response(await service.weekly_digest(reference_date), "Weekly digest retrieved successfully")


@router.get("/weeks", response_model=ApiResponse[OrganizedWeeks])
async def organized_by_week(
    search: str | None = None,
    lookback_days: int | None = Query(default=None, ge=1),
    service: AggregationService = Depends(get_aggregation_service),
):
    """Reports grouped into weeks, newest first."""
    weeks = await service.organized_by_week(lookback_days=lookback_days, search=search)
    return success_response(weeks, "Weekly reports retrieved successfully")


@router.get("/weeks/{week_start}", response_model=ApiResponse[WeekReports])
async def week_reports(
    week_start: date,
    service: AggregationService = Depends(get_aggregation_service),
):
    return success_response(await service.week_reports(week_start), "Week reports retrieved successfully")


@router.get("/items/stats", response_model=ApiResponse[ItemUsageOverview])
async def item_usage_stats(service: AggregationService = Depends(get_aggregation_service)):
    return success_response(await service.item_usage_stats(), "Item statistics retrieved successfully")


@router.get("/items/{item_id}/details", response_model=ApiResponse[ItemDetails])
async def item_details(item_id: str, service: AggregationService = Depends(get_aggregation_service)):
    return success_response(await service.item_details(item_id), "Item details retrieved successfully")


@router.get("/items/{item_id}/trends", response_model=ApiResponse[ItemTrends])
async def item_trends(
    item_id: str,
    days: int = Query(default=7, ge=1, le=365),
    service: AggregationService = Depends(get_aggregation_service),
):
    return success_response(await service.item_trends(item_id, days), "Item trends retrieved successfully")


@router.get("/representatives", response_model=ApiResponse[RepresentativeOverview])
async def representative_stats(
    search: str | None = None,
    department: str | None = None,
    service: AggregationService = Depends(get_aggregation_service),
):
    """Active CS, CP, CC and WS representatives with report counts."""
    overview = await service.representative_stats(search=search, department=department)
    return success_response(overview, "Representatives retrieved successfully")
