"""
Scoring components for the meal recommender.

Each scorer maps one menu item plus context to a ``ScoreResult``: a score
in [0, 100] and the human-readable reasons behind it.

* ``score_macros``       – fit against the remaining macro budget
* ``score_preferences``  – dietary restrictions, allergies, likes/dislikes
* ``score_variety``      – penalise repeats from the past week
* ``score_availability`` – is the item being served somewhere
"""
from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Callable

import numpy as np

from .config import (
    DEFAULT_SCORING_CONFIG,
    DEFAULT_VARIETY_CONFIG,
    MacroDimension,
    ScoringConfig,
    VarietyConfig,
)
from .history import HistoryProvider
from .models import (
    MacroTargets,
    MealHistoryEntry,
    MenuItem,
    NutritionFacts,
    ScoreResult,
    UserPreferences,
)

logger = logging.getLogger(__name__)


def round_half_up(value: float) -> int:
    """Round to the nearest integer, halves away from zero for positives."""
    return int(math.floor(value + 0.5))


# ---------------------------------------------------------------------------
# Macro fit
# ---------------------------------------------------------------------------


def _percent_of_remaining(
    nutrition: NutritionFacts,
    remaining: MacroTargets,
    config: ScoringConfig,
) -> np.ndarray:
    """Percent of each remaining macro this item would use, capped."""
    names = [d.name for d in config.dimensions]
    amounts = np.array([getattr(nutrition, n) for n in names], dtype=float)
    left = np.array([getattr(remaining, n) for n in names], dtype=float)

    # Nothing left of a macro counts as 0%, not infinity
    percents = np.zeros_like(amounts)
    np.divide(amounts * 100.0, left, out=percents, where=left > 0)
    return np.minimum(percents, config.percent_cap)


def _dimension_points(percent: float, dim: MacroDimension, config: ScoringConfig) -> float:
    lo, hi = config.ideal_min_percent, config.ideal_max_percent
    if lo <= percent <= hi:
        return dim.weight
    if percent < lo:
        return (percent / lo) * dim.weight
    return max(dim.floor, dim.weight - (percent - hi) / dim.overage_divisor)


def _calorie_reason(percent: float, config: ScoringConfig) -> str:
    shown = round_half_up(percent)
    if config.ideal_min_percent <= percent <= config.ideal_max_percent:
        return f"Perfect calorie fit ({shown}% of remaining)"
    if percent < config.ideal_min_percent:
        return f"Light meal ({shown}% of remaining calories)"
    if percent > 100:
        return f"⚠️ High calories ({shown}% of remaining)"
    return f"Substantial meal ({shown}% of remaining calories)"


def _protein_reason(percent: float, grams: float, config: ScoringConfig) -> str | None:
    shown = round_half_up(grams)
    if config.ideal_min_percent <= percent <= config.ideal_max_percent:
        return f"Excellent protein content ({shown}g)"
    if percent < config.ideal_min_percent:
        return f"⚠️ Low protein ({shown}g)" if percent < 10 else None
    return f"High protein ({shown}g)"


def score_macros(
    nutrition: NutritionFacts | None,
    remaining: MacroTargets,
    config: ScoringConfig = DEFAULT_SCORING_CONFIG,
) -> ScoreResult:
    """Score how well one item fits into what is left of today's macros."""
    if nutrition is None:
        return ScoreResult(score=0, reasoning=["No nutrition data available"])

    percents = _percent_of_remaining(nutrition, remaining, config)
    by_name = {d.name: float(p) for d, p in zip(config.dimensions, percents)}

    total = sum(
        _dimension_points(float(p), dim, config)
        for dim, p in zip(config.dimensions, percents)
    )

    reasoning: list[str] = []
    if "calories" in by_name:
        reasoning.append(_calorie_reason(by_name["calories"], config))
    if "protein_g" in by_name:
        reason = _protein_reason(by_name["protein_g"], nutrition.protein_g, config)
        if reason:
            reasoning.append(reason)

    return ScoreResult(score=round_half_up(total), reasoning=reasoning)


# ---------------------------------------------------------------------------
# Preferences and restrictions
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class RestrictionRule:
    """A hard dietary filter: when ``flag`` is set and ``violates(item)``, exclude."""

    flag: str
    violates: Callable[[MenuItem], bool]
    reason: str


DEFAULT_RESTRICTION_RULES: tuple[RestrictionRule, ...] = (
    RestrictionRule("is_vegan", lambda item: not item.is_vegan, "❌ Not vegan"),
    RestrictionRule("is_vegetarian", lambda item: not item.is_vegetarian, "❌ Not vegetarian"),
    RestrictionRule("is_gluten_free", lambda item: item.contains_gluten, "❌ Contains gluten"),
    RestrictionRule("is_dairy_free", lambda item: item.contains_dairy, "❌ Contains dairy"),
)

# Stored on the profile but not filtered on yet: is_halal, is_kosher,
# is_pescatarian, is_hindu_non_veg. Menu items carry no flag to test them against.


def _keywords(values: list[str]) -> list[str]:
    return [v.lower() for v in values]


def _mentions(keyword: str, *fields: str | None) -> bool:
    return any(f and keyword in f.lower() for f in fields)


def score_preferences(
    item: MenuItem,
    preferences: UserPreferences,
    rules: tuple[RestrictionRule, ...] = DEFAULT_RESTRICTION_RULES,
    config: ScoringConfig = DEFAULT_SCORING_CONFIG,
) -> ScoreResult:
    """
    Score an item against the user's dietary profile.

    A score of 0 means the item must never be shown: it breaks a
    restriction or contains one of the user's allergens.
    """
    for rule in rules:
        if getattr(preferences, rule.flag, False) and rule.violates(item):
            return ScoreResult(score=0, reasoning=[rule.reason])

    allergies = _keywords(preferences.allergies)
    for allergen in allergies:
        if any(allergen in label.lower() for label in item.allergen_info) or _mentions(
            allergen, item.name
        ):
            return ScoreResult(score=0, reasoning=["❌ Contains allergen"])

    if item.contains_nuts and any("nut" in a for a in allergies):
        return ScoreResult(score=0, reasoning=["❌ Contains nuts"])

    score = 100
    reasoning: list[str] = []

    if any(_mentions(d, item.name, item.description) for d in _keywords(preferences.dislikes)):
        score = max(0, score - config.dislike_penalty)
        reasoning.append("⚠️ Contains disliked ingredient")

    if any(
        _mentions(p, item.name, item.description, item.category)
        for p in _keywords(preferences.preferences)
    ):
        score = min(100, score + config.preference_bonus)
        reasoning.append("✨ Matches your preferences")

    if item.is_vegan:
        reasoning.append("🌱 Vegan option")
    elif item.is_vegetarian:
        reasoning.append("🥗 Vegetarian option")

    return ScoreResult(score=max(0, score), reasoning=reasoning)


# ---------------------------------------------------------------------------
# Variety
# ---------------------------------------------------------------------------

VarietyRule = Callable[[MenuItem, list[MealHistoryEntry], VarietyConfig], "ScoreResult | None"]


def _first_word(name: str | None) -> str:
    words = (name or "").lower().split()
    return words[0] if words else ""


def exact_repeat(
    item: MenuItem, history: list[MealHistoryEntry], config: VarietyConfig
) -> ScoreResult | None:
    count = sum(1 for entry in history if entry.item_id == item.id)
    if count == 0:
        return None
    penalty = min(config.exact_penalty_cap, count * config.exact_penalty_step)
    return ScoreResult(score=max(0, 100 - penalty), reasoning=[f"Eaten {count}x this week"])


def similar_name(
    item: MenuItem, history: list[MealHistoryEntry], config: VarietyConfig
) -> ScoreResult | None:
    item_name = item.name.lower()
    item_word = _first_word(item.name)

    def _similar(entry: MealHistoryEntry) -> bool:
        entry_word = _first_word(entry.item_name)
        return bool(
            (item_word and item_word in entry.item_name.lower())
            or (entry_word and entry_word in item_name)
        )

    count = sum(1 for entry in history if _similar(entry))
    if count == 0:
        return None
    penalty = min(config.similar_penalty_cap, count * config.similar_penalty_step)
    return ScoreResult(
        score=max(config.similar_score_floor, 100 - penalty),
        reasoning=[f"Similar item eaten {count}x this week"],
    )


def category_fatigue(
    item: MenuItem, history: list[MealHistoryEntry], config: VarietyConfig
) -> ScoreResult | None:
    # Uncategorised items share the empty category with each other
    count = sum(1 for entry in history if entry.item_category == item.category)
    if count <= config.category_threshold:
        return None
    label = item.category or "Uncategorised"
    return ScoreResult(
        score=config.category_score,
        reasoning=[f"{label} eaten {count}x this week"],
    )


# Checked in order; the first rule that matches decides the score.
DEFAULT_VARIETY_RULES: tuple[VarietyRule, ...] = (exact_repeat, similar_name, category_fatigue)


async def score_variety(
    item: MenuItem,
    user_id: str,
    history_provider: HistoryProvider,
    current_time: datetime | None = None,
    rules: tuple[VarietyRule, ...] = DEFAULT_VARIETY_RULES,
    config: VarietyConfig = DEFAULT_VARIETY_CONFIG,
) -> ScoreResult:
    """
    Score how fresh an item is relative to the user's past week of meals.

    History lookup failures never propagate; they yield a neutral score.
    """
    now = current_time or datetime.now(timezone.utc)
    since = now - timedelta(days=config.history_days)

    try:
        history = await history_provider.get_recent_meal_logs(user_id, since)
    except Exception:
        logger.warning(
            "Meal history lookup failed for user %s, using neutral variety score",
            user_id,
            exc_info=True,
        )
        return ScoreResult(
            score=config.history_unavailable_score,
            reasoning=["Could not check meal history"],
        )

    if history:
        for rule in rules:
            result = rule(item, history, config)
            if result is not None:
                return result

    return ScoreResult(score=100, reasoning=["🆕 New to your rotation"])


# ---------------------------------------------------------------------------
# Availability
# ---------------------------------------------------------------------------


def score_availability(
    item: MenuItem,
    current_time: datetime | None = None,
    config: ScoringConfig = DEFAULT_SCORING_CONFIG,
) -> ScoreResult:
    """Items listed at a dining hall count as servable; ``current_time`` is reserved for opening hours."""
    if item.dining_hall is not None:
        return ScoreResult(
            score=config.available_score,
            reasoning=[f"Available at {item.dining_hall.name}"],
        )
    return ScoreResult(
        score=config.unknown_availability_score,
        reasoning=["Availability unknown"],
    )
