from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime

from .config import (
    DEFAULT_SCORING_CONFIG,
    DEFAULT_VARIETY_CONFIG,
    ScoringConfig,
    VarietyConfig,
)
from .history import HistoryProvider
from .models import MacroTargets, MenuItem, RecommendationScore, UserPreferences
from .scoring import (
    DEFAULT_RESTRICTION_RULES,
    RestrictionRule,
    round_half_up,
    score_availability,
    score_macros,
    score_preferences,
    score_variety,
)

logger = logging.getLogger(__name__)


class RecommendationPreconditionError(ValueError):
    """Raised when the caller has not supplied the user's macro budget or preferences."""


@dataclass
class RankingResult:
    recommendations: list[RecommendationScore] = field(default_factory=list)
    candidates: int = 0
    excluded: int = 0


async def rank_meals(
    user_id: str,
    remaining: MacroTargets | None,
    preferences: UserPreferences | None,
    items: list[MenuItem],
    history_provider: HistoryProvider,
    current_time: datetime | None = None,
    limit: int = 10,
    restriction_rules: tuple[RestrictionRule, ...] = DEFAULT_RESTRICTION_RULES,
    config: ScoringConfig = DEFAULT_SCORING_CONFIG,
    variety_config: VarietyConfig = DEFAULT_VARIETY_CONFIG,
) -> RankingResult:
    """
    Rank candidate menu items for a user, counting the ones dropped on the way.

    Items that break a dietary restriction or contain an allergen are
    dropped entirely. Everything else is ranked by

        0.4 × macro  +  0.3 × preference  +  0.2 × variety  +  0.1 × availability

    Equal totals keep their order from ``items``.
    """
    if remaining is None:
        raise RecommendationPreconditionError("Remaining macros are required; user profile not found")
    if preferences is None:
        raise RecommendationPreconditionError("User preferences are required; preferences not found")
    if limit < 0:
        raise ValueError("limit must be non-negative")

    scored: list[RecommendationScore] = []
    excluded = 0

    # Sequential: one history lookup per candidate, in candidate order
    for item in items:
        macro = score_macros(item.nutrition, remaining, config)
        preference = score_preferences(item, preferences, restriction_rules, config)

        if preference.score == 0:
            excluded += 1
            continue

        variety = await score_variety(
            item, user_id, history_provider, current_time, config=variety_config,
        )
        availability = score_availability(item, current_time, config)

        total = (
            config.macro_weight * macro.score
            + config.preference_weight * preference.score
            + config.variety_weight * variety.score
            + config.availability_weight * availability.score
        )

        scored.append(RecommendationScore(
            item=item,
            total_score=round_half_up(total),
            macro_score=round_half_up(macro.score),
            preference_score=round_half_up(preference.score),
            variety_score=round_half_up(variety.score),
            availability_score=round_half_up(availability.score),
            reasoning=[
                *macro.reasoning,
                *preference.reasoning,
                *variety.reasoning,
                *availability.reasoning,
            ],
        ))

    # sorted() is stable, so ties keep candidate order
    ranked = sorted(scored, key=lambda rec: rec.total_score, reverse=True)[:limit]

    logger.info(
        "Scored %d candidates for user %s: %d excluded, %d returned",
        len(items), user_id, excluded, len(ranked),
    )
    return RankingResult(recommendations=ranked, candidates=len(items), excluded=excluded)


async def recommend_meals(
    user_id: str,
    remaining: MacroTargets | None,
    preferences: UserPreferences | None,
    items: list[MenuItem],
    history_provider: HistoryProvider,
    current_time: datetime | None = None,
    limit: int = 10,
    restriction_rules: tuple[RestrictionRule, ...] = DEFAULT_RESTRICTION_RULES,
    config: ScoringConfig = DEFAULT_SCORING_CONFIG,
    variety_config: VarietyConfig = DEFAULT_VARIETY_CONFIG,
) -> list[RecommendationScore]:
    """The top ``limit`` recommendations from :func:`rank_meals`, best first."""
    result = await rank_meals(
        user_id,
        remaining,
        preferences,
        items,
        history_provider,
        current_time=current_time,
        limit=limit,
        restriction_rules=restriction_rules,
        config=config,
        variety_config=variety_config,
    )
    return result.recommendations
