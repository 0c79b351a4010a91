from fastapi import APIRouter, Depends

from app.dependencies.dbDependecies import db_dependency
from app.modules.auth.dependencies import AuthDependencies
from app.modules.auth.schemas import AuthContext
from app.modules.settings.schemas import BusinessDayUpdate, BusinessDaySettings
from app.modules.settings.service import SettingsService

settings_router = APIRouter(prefix="/settings", tags=["Settings"])


@settings_router.get("/business-day", response_model=BusinessDaySettings)
def get_business_day(
    db: db_dependency,
    auth_context: AuthContext = Depends(AuthDependencies.require_any_role())
):
    """
    Current end-of-day cutoff.

    Rows recorded at or after the cutoff count for the next business day.
    A 00:00 cutoff is the plain calendar day.
    """
    return SettingsService(db).get_business_day()


@settings_router.put("/business-day", response_model=BusinessDaySettings)
def update_business_day(
    data: BusinessDayUpdate,
    db: db_dependency,
    auth_context: AuthContext = Depends(AuthDependencies.require_role(["owner"]))
):
    """
    Change the end-of-day cutoff (owner only).

    Past rows are not rewritten; every report buckets by the cutoff in force
    when it is read.
    """
    return SettingsService(db).update_business_day(data, auth_context.user_id)
