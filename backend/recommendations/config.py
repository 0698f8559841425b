from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path

from dotenv import load_dotenv

# Load .env from project root
load_dotenv(Path(__file__).resolve().parent.parent.parent / ".env")


@dataclass(frozen=True)
class MacroDimension:
    """Weight and overage decay for one macro in the macro-fit score."""

    name: str
    weight: float
    overage_divisor: float
    floor: float


@dataclass(frozen=True)
class ScoringConfig:
    macro_weight: float = 0.40
    preference_weight: float = 0.30
    variety_weight: float = 0.20
    availability_weight: float = 0.10

    # A single meal should use 20-45% of what is left for the day
    ideal_min_percent: float = 20.0
    ideal_max_percent: float = 45.0
    percent_cap: float = 150.0
    dimensions: tuple[MacroDimension, ...] = (
        MacroDimension("calories", weight=30, overage_divisor=2, floor=0),
        MacroDimension("protein_g", weight=35, overage_divisor=3, floor=20),
        MacroDimension("carbs_g", weight=20, overage_divisor=2, floor=10),
        MacroDimension("fat_g", weight=15, overage_divisor=2, floor=5),
    )

    dislike_penalty: int = 40
    preference_bonus: int = 20

    available_score: int = 100
    unknown_availability_score: int = 50


@dataclass(frozen=True)
class VarietyConfig:
    history_days: int = 7
    exact_penalty_step: int = 20
    exact_penalty_cap: int = 50
    similar_penalty_step: int = 10
    similar_penalty_cap: int = 30
    similar_score_floor: int = 30
    category_threshold: int = 5
    category_score: int = 70
    history_unavailable_score: int = 50


@dataclass(frozen=True)
class DataConfig:
    menu_path: Path = Path(
        os.getenv(
            "MENU_DATA_PATH",
            str(Path(__file__).resolve().parent.parent / "data" / "processed" / "menu_items.json"),
        )
    )
    default_targets: dict[str, float] = field(
        default_factory=lambda: {
            "calories": 2000,
            "protein_g": 150,
            "carbs_g": 250,
            "fat_g": 65,
        }
    )
    default_limit: int = 5
    max_limit: int = 50


DEFAULT_SCORING_CONFIG = ScoringConfig()
DEFAULT_VARIETY_CONFIG = VarietyConfig()
DEFAULT_DATA_CONFIG = DataConfig()
