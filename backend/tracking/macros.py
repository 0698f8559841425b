from __future__ import annotations

from datetime import datetime, timezone

from ..recommendations.config import DEFAULT_DATA_CONFIG, DataConfig
from ..recommendations.models import MacroTargets, UserPreferences
from .models import MealLog, TodayResponse, UserProfile
from .store import get_meal_logs, get_preferences, get_profile

_MACROS = ("calories", "protein_g", "carbs_g", "fat_g")


def today_iso() -> str:
    return datetime.now(timezone.utc).date().isoformat()


def get_targets(profile: UserProfile, config: DataConfig = DEFAULT_DATA_CONFIG) -> MacroTargets:
    """Stored targets, falling back to defaults for any the user left unset."""
    defaults = config.default_targets
    return MacroTargets(
        calories=profile.target_calories or defaults["calories"],
        protein_g=profile.target_protein_g or defaults["protein_g"],
        carbs_g=profile.target_carbs_g or defaults["carbs_g"],
        fat_g=profile.target_fat_g or defaults["fat_g"],
    )


def sum_consumed(logs: list[MealLog]) -> MacroTargets:
    """Servings-weighted nutrition totals for a list of meal logs."""
    totals = dict.fromkeys(_MACROS, 0.0)
    for log in logs:
        if log.nutrition is None:
            continue
        servings = log.servings or 1.0
        for name in _MACROS:
            totals[name] += getattr(log.nutrition, name) * servings
    return MacroTargets(**{name: round(value, 1) for name, value in totals.items()})


def subtract_floored(targets: MacroTargets, consumed: MacroTargets) -> MacroTargets:
    return MacroTargets(**{
        name: round(max(0.0, getattr(targets, name) - getattr(consumed, name)), 1)
        for name in _MACROS
    })


def get_today_summary(
    user_id: str,
    on_date: str | None = None,
    config: DataConfig = DEFAULT_DATA_CONFIG,
) -> TodayResponse | None:
    """Targets, consumed and remaining macros for one day, or ``None`` without a profile."""
    profile = get_profile(user_id)
    if profile is None:
        return None

    day = on_date or today_iso()
    targets = get_targets(profile, config)
    consumed = sum_consumed(get_meal_logs(user_id, start_date=day, end_date=day))
    return TodayResponse(
        date=day,
        targets=targets,
        consumed=consumed,
        remaining=subtract_floored(targets, consumed),
    )


def get_user_remaining_macros(
    user_id: str,
    on_date: str | None = None,
    config: DataConfig = DEFAULT_DATA_CONFIG,
) -> MacroTargets | None:
    """What is left of the user's macro budget for the day, floored at zero."""
    summary = get_today_summary(user_id, on_date, config)
    return summary.remaining if summary else None


def get_user_preferences(user_id: str) -> UserPreferences | None:
    return get_preferences(user_id)
