from fastapi import APIRouter

from teamdeck.api.deps import CurrentUser, SessionDep
from teamdeck.schemas.stats import DashboardStats
from teamdeck.services import stats as stats_service

router = APIRouter()


@router.get("/dashboard", response_model=DashboardStats)
async def read_dashboard_stats(session: SessionDep, current_user: CurrentUser) -> DashboardStats:
    return await stats_service.get_dashboard_stats(session, user=current_user)
