from __future__ import annotations

import uuid
from datetime import datetime, timezone

from ..recommendations.models import MenuItem, UserPreferences
from .models import MealLog, UserProfile

_profiles: dict[str, UserProfile] = {}
_preferences: dict[str, UserPreferences] = {}
_meal_logs: list[MealLog] = []


def _seed_profiles() -> None:
    """Pre-seed the demo user's profile on import. The admin has none."""
    _profiles["user"] = UserProfile(
        user_id="user",
        target_calories=2200,
        target_protein_g=160,
        target_carbs_g=240,
        target_fat_g=70,
    )
    _preferences["user"] = UserPreferences(preferences=["chicken"])


# ── Profiles and preferences ─────────────────────────────────────────────


def get_profile(user_id: str) -> UserProfile | None:
    return _profiles.get(user_id)


def save_profile(profile: UserProfile) -> None:
    _profiles[profile.user_id] = profile


def get_preferences(user_id: str) -> UserPreferences | None:
    return _preferences.get(user_id)


def save_preferences(user_id: str, preferences: UserPreferences) -> None:
    _preferences[user_id] = preferences


# ── Meal logs ────────────────────────────────────────────────────────────


def log_meal(
    user_id: str,
    item: MenuItem,
    servings: float = 1.0,
    eaten_at: datetime | None = None,
    notes: str | None = None,
    logged_at: datetime | None = None,
) -> MealLog:
    """Record that ``user_id`` ate ``item``. Name, category and nutrition are copied onto the log."""
    now = datetime.now(timezone.utc)
    entry = MealLog(
        id=str(uuid.uuid4()),
        user_id=user_id,
        menu_item_id=item.id,
        item_name=item.name,
        item_category=item.category,
        nutrition=item.nutrition,
        servings=servings,
        eaten_at=_as_utc(eaten_at or now),
        notes=notes,
        logged_at=_as_utc(logged_at or now),
    )
    _meal_logs.append(entry)
    return entry


def _as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def get_meal_logs(
    user_id: str,
    start_date: str | None = None,
    end_date: str | None = None,
) -> list[MealLog]:
    """Logs for a user, newest first. Dates are inclusive YYYY-MM-DD bounds on ``logged_at``."""
    logs = [log for log in _meal_logs if log.user_id == user_id]
    if start_date:
        logs = [log for log in logs if log.logged_at.date().isoformat() >= start_date]
    if end_date:
        logs = [log for log in logs if log.logged_at.date().isoformat() <= end_date]
    return sorted(logs, key=lambda log: log.logged_at, reverse=True)


def get_meal_log(log_id: str) -> MealLog | None:
    return next((log for log in _meal_logs if log.id == log_id), None)


def delete_meal_log(user_id: str, log_id: str) -> bool:
    """Remove one of the user's logs. Returns False when no such log belongs to them."""
    for index, log in enumerate(_meal_logs):
        if log.id == log_id and log.user_id == user_id:
            del _meal_logs[index]
            return True
    return False


def clear_meal_logs() -> None:
    _meal_logs.clear()


_seed_profiles()
