"""Admin control surface.

GET  /admin/scheduler        — per-task liveness and feed health
POST /admin/scheduler/start  — start the scheduler (no-op when running)
POST /admin/scheduler/stop   — stop every periodic task
POST /admin/market/refresh   — immediate out-of-band market refresh

Every route requires the X-Admin-Token header.
"""

import hmac
from typing import Annotated

from fastapi import APIRouter, Depends, Header, Request

from config.settings import settings
from src.vt_admin.api.schemas import SchedulerStatusResponse
from src.vt_common.errors import AdminAuthError
from src.vt_common.response import ApiResponse, success_response
from src.vt_market.application.schemas import QuoteItem
from src.vt_scheduler.controller import SchedulerController


def require_admin(
    x_admin_token: Annotated[str | None, Header()] = None,
) -> None:
    expected = settings.ADMIN_TOKEN
    if not expected or not x_admin_token or not hmac.compare_digest(x_admin_token, expected):
        raise AdminAuthError()


def get_scheduler(request: Request) -> SchedulerController:
    return request.app.state.scheduler


router = APIRouter(prefix="/admin", tags=["admin"], dependencies=[Depends(require_admin)])


@router.get("/scheduler")
async def scheduler_status(
    request: Request,
    scheduler: Annotated[SchedulerController, Depends(get_scheduler)],
) -> ApiResponse:
    status = SchedulerStatusResponse.from_status(scheduler.status())
    return success_response(status.model_dump(), request)


@router.post("/scheduler/start")
async def start_scheduler(
    request: Request,
    scheduler: Annotated[SchedulerController, Depends(get_scheduler)],
) -> ApiResponse:
    started = scheduler.start()
    return success_response({"started": started}, request)


@router.post("/scheduler/stop")
async def stop_scheduler(
    request: Request,
    scheduler: Annotated[SchedulerController, Depends(get_scheduler)],
) -> ApiResponse:
    await scheduler.stop()
    return success_response({"running": scheduler.is_running}, request)


@router.post("/market/refresh")
async def force_refresh(
    request: Request,
    scheduler: Annotated[SchedulerController, Depends(get_scheduler)],
) -> ApiResponse:
    quotes = await scheduler.force_refresh()
    items = [QuoteItem.from_quote(q).model_dump() for q in quotes.values()] if quotes else []
    return success_response({"quotes": items}, request)
