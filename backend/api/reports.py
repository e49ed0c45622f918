from fastapi import APIRouter, Depends, Query

from auth import require_admin
from schemas import ReportSummary
from services import reports_service

router = APIRouter(prefix="/api/reports", tags=["reports"], dependencies=[Depends(require_admin)])


@router.get("/summary", response_model=ReportSummary)
async def read_summary(days: int = Query(default=30, ge=1, le=365)) -> ReportSummary:
    return await reports_service.get_summary(days)
