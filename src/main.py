"""FastAPI application entry point.

Run with: uvicorn src.main:app --port 8000

The app hosts the economy engine: on startup it validates configuration,
checks PostgreSQL and Redis, wires the services and starts the scheduler.
The chat layer talks to the services on app.state and to the admin routes.
"""

# ruff: noqa: E402  -- uvloop.install() must run before other imports

import uvloop

uvloop.install()

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from dataclasses import dataclass
from datetime import timedelta

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from sqlalchemy import text

from config.settings import Settings, ensure_configured, settings
from src.vt_account.application.achievements import AchievementService
from src.vt_account.infrastructure.persistence import AccountRepository
from src.vt_admin.api.router import router as admin_router
from src.vt_common.database import SessionFactory, async_session_factory, engine
from src.vt_common.errors import AppError
from src.vt_common.middleware import RequestLogMiddleware
from src.vt_common.redis_client import close_redis, get_redis, ping_redis
from src.vt_common.response import error_response
from src.vt_economy.application.service import PropertyService
from src.vt_economy.application.tick import EconomyTick
from src.vt_events.application.service import WorldEventService
from src.vt_leverage.application.service import LeverageService
from src.vt_market.api.router import router as market_router
from src.vt_market.application.feed import MarketFeed
from src.vt_market.infrastructure.price_source import CryptoComparePriceSource
from src.vt_notify.sink import RedisNotificationSink
from src.vt_scheduler.controller import SchedulerController, SchedulerIntervals
from src.vt_trading.application.service import TradingService

logging.basicConfig(
    level=settings.LOG_LEVEL.upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

VERSION = "0.1.0"


@dataclass
class Services:
    price_source: CryptoComparePriceSource
    feed: MarketFeed
    trading: TradingService
    leverage: LeverageService
    properties: PropertyService
    economy: EconomyTick
    events: WorldEventService
    scheduler: SchedulerController


def build_services(cfg: Settings, session_factory: SessionFactory) -> Services:
    accounts = AccountRepository()
    achievements = AchievementService(accounts)
    notifier = RedisNotificationSink(get_redis, channel_prefix=cfg.NOTIFY_CHANNEL_PREFIX)

    source = CryptoComparePriceSource(
        cfg.PRICE_SOURCE_URL,
        currency=cfg.QUOTE_CURRENCY,
        timeout=cfg.FEED_TIMEOUT_SECONDS,
        attempts=cfg.FEED_FETCH_ATTEMPTS,
    )
    feed = MarketFeed(
        source,
        session_factory,
        failure_threshold=cfg.FEED_FAILURE_THRESHOLD,
        short_cache_ttl=cfg.FEED_SHORT_CACHE_SECONDS,
        staleness_ceiling=cfg.FEED_STALENESS_SECONDS,
    )
    trading = TradingService(
        feed,
        cfg.TRADING_FEE,
        account_repo=accounts,
        achievements=achievements,
        volume_min_hold=timedelta(hours=cfg.VOLUME_ELIGIBILITY_HOURS),
    )
    leverage = LeverageService(
        feed,
        session_factory,
        notifier,
        cfg.TRADING_FEE,
        min_leverage=cfg.LEVERAGE_MIN,
        max_leverage=cfg.LEVERAGE_MAX,
        threshold=cfg.LIQUIDATION_THRESHOLD,
        account_repo=accounts,
        achievements=achievements,
    )
    properties = PropertyService(
        min_volume=cfg.MIN_VOL_FOR_REALESTATE,
        resale_factor=cfg.PROPERTY_RESALE_FACTOR,
        repair_multiplier=cfg.REPAIR_COST_MULTIPLIER,
        account_repo=accounts,
        achievements=achievements,
    )
    economy = EconomyTick(
        session_factory,
        notifier,
        rent_cycle_hours=cfg.RENT_CYCLE_HOURS,
        maintenance_chance=cfg.MAINTENANCE_CHANCE,
        decay_rate=cfg.CONDITION_DECAY_RATE,
        account_repo=accounts,
    )
    events = WorldEventService(notifier, chance=cfg.EVENT_CHANCE)
    scheduler = SchedulerController(
        feed,
        leverage,
        economy,
        events,
        SchedulerIntervals(
            market_refresh=cfg.MARKET_UPDATE_SECONDS,
            market_retry=cfg.MARKET_RETRY_SECONDS,
            risk_scan=cfg.RISK_SCAN_SECONDS,
            economy_tick=cfg.ECONOMY_TICK_SECONDS,
            world_event=cfg.EVENT_CHECK_SECONDS,
            health_probe=cfg.HEALTH_PROBE_SECONDS,
        ),
    )
    return Services(source, feed, trading, leverage, properties, economy, events, scheduler)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Startup: config, DB, Redis, scheduler. Shutdown: in reverse."""
    ensure_configured(settings)
    async with engine.connect() as conn:
        await conn.execute(text("SELECT 1"))
    await ping_redis()

    services = build_services(settings, async_session_factory)
    app.state.services = services
    app.state.market_feed = services.feed
    app.state.scheduler = services.scheduler
    services.scheduler.start()
    yield
    await services.scheduler.stop()
    await services.price_source.aclose()
    await engine.dispose()
    await close_redis()


app = FastAPI(
    title=settings.APP_NAME,
    version=VERSION,
    lifespan=lifespan,
)


app.add_middleware(RequestLogMiddleware)


@app.exception_handler(AppError)
async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    if exc.http_status >= 500:
        logger.error("Request %s failed: [%d] %s", request.url.path, exc.code, exc.message)
    resp = error_response(exc.code, exc.message)
    resp.request_id = getattr(request.state, "request_id", resp.request_id)
    return JSONResponse(
        status_code=exc.http_status,
        content=resp.model_dump(),
    )


app.include_router(market_router, prefix="/api/v1")
app.include_router(admin_router, prefix="/api/v1")


@app.get("/health")
async def health(request: Request) -> dict[str, object]:
    scheduler: SchedulerController | None = getattr(request.app.state, "scheduler", None)
    if scheduler is None:
        return {"status": "starting", "version": VERSION}
    feed = scheduler.status().feed
    return {
        "status": "ok" if scheduler.is_running else "degraded",
        "version": VERSION,
        "scheduler_running": scheduler.is_running,
        "feed_last_success": feed.last_success.isoformat() if feed.last_success else None,
        "feed_consecutive_failures": feed.consecutive_failures,
    }
