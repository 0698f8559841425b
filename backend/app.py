from __future__ import annotations

import logging
import os
import time
from datetime import date as date_type
from datetime import datetime, time as dt_time, timezone

from fastapi import Depends, FastAPI, HTTPException, Query, Request
from starlette.middleware.sessions import SessionMiddleware

from .analytics.aggregator import compute_analytics
from .analytics.store import MEAL_LOG_EVENT, RECOMMENDATION_EVENT, get_events, record_event
from .auth.dependencies import require_admin, require_user, require_user_id
from .auth.users import authenticate
from .recommendations.config import DEFAULT_DATA_CONFIG
from .recommendations.data_store import get_menu_item, get_menu_items
from .recommendations.engine import RecommendationPreconditionError, rank_meals
from .recommendations.history import MealLogHistoryProvider
from .recommendations.models import (
    LoginRequest,
    MenuResponse,
    RecommendationItem,
    RecommendationResponse,
)
from .tracking.macros import (
    get_today_summary,
    get_user_preferences,
    get_user_remaining_macros,
    today_iso,
)
from .tracking.models import MealLogRequest, MealLogResponse, MealLogsResponse, TodayResponse
from .tracking.store import delete_meal_log, get_meal_log, get_meal_logs, log_meal

logger = logging.getLogger(__name__)

app = FastAPI(title="Dining Hall Meal Recommendation API", version="1.0.0")
app.add_middleware(
    SessionMiddleware,
    secret_key=os.environ.get("SESSION_SECRET", "dc-menu-secret-change-in-production"),
)

MEAL_PERIODS = ("breakfast", "lunch", "dinner", "brunch", "late_night")

_history_provider = MealLogHistoryProvider()


def _parse_date(value: str | None) -> str:
    if not value:
        return today_iso()
    try:
        return date_type.fromisoformat(value).isoformat()
    except ValueError:
        raise HTTPException(status_code=400, detail="Invalid date, expected YYYY-MM-DD")


async def _recommend(
    user_id: str,
    day: str,
    meal_period: str | None,
    limit: int,
    current_time: datetime,
) -> RecommendationResponse:
    start_time = time.time()

    remaining = get_user_remaining_macros(user_id, day)
    if remaining is None:
        raise HTTPException(status_code=404, detail="User profile not found. Please complete onboarding first")

    preferences = get_user_preferences(user_id)
    if preferences is None:
        raise HTTPException(status_code=404, detail="User preferences not found. Please complete onboarding first")

    # Items without nutrition cannot be macro-scored, so they are not offered
    candidates = [item for item in get_menu_items(day, meal_period) if item.nutrition is not None]
    if not candidates:
        where = f"{meal_period} on {day}" if meal_period else day
        raise HTTPException(status_code=404, detail=f"No menu items with nutrition data found for {where}")

    logger.info(
        "Recommending for user %s: %d candidates, %.0f kcal remaining",
        user_id, len(candidates), remaining.calories,
    )

    try:
        result = await rank_meals(
            user_id,
            remaining,
            preferences,
            candidates,
            _history_provider,
            current_time=current_time,
            limit=limit,
        )
    except RecommendationPreconditionError as exc:
        raise HTTPException(status_code=404, detail=str(exc))

    elapsed_ms = round((time.time() - start_time) * 1000, 1)
    record_event(RECOMMENDATION_EVENT, {
        "user_id": user_id,
        "date": day,
        "meal_period": meal_period,
        "limit": limit,
        "candidates": len(candidates),
        "excluded": result.excluded,
        "results_returned": len(result.recommendations),
        "item_names": [rec.item.name for rec in result.recommendations],
        "response_time_ms": elapsed_ms,
    })

    return RecommendationResponse(
        date=day,
        meal_period=meal_period,
        remaining_macros=remaining,
        recommendations=[RecommendationItem.from_score(rec) for rec in result.recommendations],
    )


# ── Public endpoints ─────────────────────────────────────────────────────


@app.get("/health")
def health() -> dict[str, str]:
    return {"status": "ok"}


@app.get("/menus", response_model=MenuResponse)
def menus(
    date: str | None = None,
    meal_type: str | None = None,
    hall: str | None = None,
) -> MenuResponse:
    day = _parse_date(date)
    return MenuResponse(
        date=day,
        meal_type=meal_type,
        hall=hall,
        items=get_menu_items(day, meal_type, hall=hall),
    )


# ── Auth endpoints ───────────────────────────────────────────────────────


@app.post("/auth/login")
def login(body: LoginRequest, request: Request) -> dict:
    user = authenticate(body.username, body.password)
    if not user:
        raise HTTPException(status_code=401, detail="Invalid credentials")
    request.session["user"] = user
    return {"status": "ok", "user": user}


@app.post("/auth/logout")
def logout(request: Request) -> dict:
    request.session.clear()
    return {"status": "logged_out"}


@app.get("/auth/me")
def auth_me(user: dict = Depends(require_user)) -> dict:
    return user


# ── Tracking endpoints ───────────────────────────────────────────────────


@app.get("/today", response_model=TodayResponse)
def today(user_id: str = Depends(require_user_id)) -> TodayResponse:
    summary = get_today_summary(user_id, today_iso())
    if summary is None:
        raise HTTPException(status_code=404, detail="Profile not found. User has not completed onboarding")
    return summary


@app.post("/meals/log", response_model=MealLogResponse, status_code=201)
def meals_log(
    body: MealLogRequest,
    user_id: str = Depends(require_user_id),
) -> MealLogResponse:
    item = get_menu_item(body.menu_item_id)
    if item is None:
        raise HTTPException(status_code=404, detail="Menu item not found")

    entry = log_meal(user_id, item, servings=body.servings, eaten_at=body.eaten_at, notes=body.notes)
    record_event(MEAL_LOG_EVENT, {"user_id": user_id, "menu_item_id": item.id})
    return MealLogResponse(meal_log=entry)


@app.get("/meals/logs", response_model=MealLogsResponse)
def meals_logs(
    start_date: str | None = None,
    end_date: str | None = None,
    user_id: str = Depends(require_user_id),
) -> MealLogsResponse:
    logs = get_meal_logs(
        user_id,
        start_date=_parse_date(start_date) if start_date else None,
        end_date=_parse_date(end_date) if end_date else None,
    )
    return MealLogsResponse(meal_logs=logs, count=len(logs))


@app.delete("/meals/log/{log_id}")
def meals_log_delete(log_id: str, user_id: str = Depends(require_user_id)) -> dict:
    entry = get_meal_log(log_id)
    if entry is None:
        raise HTTPException(status_code=404, detail="Meal log not found")
    if entry.user_id != user_id:
        raise HTTPException(status_code=403, detail="You do not have permission to delete this meal log")

    delete_meal_log(user_id, log_id)
    logger.info("User %s deleted meal log %s", user_id, log_id)
    return {"success": True, "message": "Meal log deleted"}


# ── Recommendation endpoints ─────────────────────────────────────────────


@app.get("/recommendations/now", response_model=RecommendationResponse)
async def recommendations_now(
    limit: int = Query(default=DEFAULT_DATA_CONFIG.default_limit, ge=1, le=DEFAULT_DATA_CONFIG.max_limit),
    user_id: str = Depends(require_user_id),
) -> RecommendationResponse:
    """'I'm hungry now': rank everything served today."""
    return await _recommend(
        user_id,
        today_iso(),
        meal_period=None,
        limit=limit,
        current_time=datetime.now(timezone.utc),
    )


@app.get("/recommendations/meal/{meal_period}", response_model=RecommendationResponse)
async def recommendations_for_meal(
    meal_period: str,
    limit: int = Query(default=DEFAULT_DATA_CONFIG.default_limit, ge=1, le=DEFAULT_DATA_CONFIG.max_limit),
    date: str | None = None,
    user_id: str = Depends(require_user_id),
) -> RecommendationResponse:
    period = meal_period.lower()
    if period not in MEAL_PERIODS:
        raise HTTPException(
            status_code=400,
            detail=f"Invalid meal period. Must be one of: {', '.join(MEAL_PERIODS)}",
        )

    day = _parse_date(date)
    if day == today_iso():
        current_time = datetime.now(timezone.utc)
    else:
        current_time = datetime.combine(date_type.fromisoformat(day), dt_time.min, tzinfo=timezone.utc)

    return await _recommend(user_id, day, meal_period=period, limit=limit, current_time=current_time)


# ── Admin endpoints ──────────────────────────────────────────────────────


@app.get("/analytics")
def analytics(admin: dict = Depends(require_admin)) -> dict:
    return compute_analytics(get_events())
