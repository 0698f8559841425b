from __future__ import annotations

from dataclasses import dataclass, field

from pydantic import BaseModel, Field, field_validator


class LoginRequest(BaseModel):
    username: str = Field(..., min_length=1)
    password: str = Field(..., min_length=1)


class NutritionFacts(BaseModel):
    calories: float = Field(0.0, ge=0)
    protein_g: float = Field(0.0, ge=0)
    carbs_g: float = Field(0.0, ge=0)
    fat_g: float = Field(0.0, ge=0)
    fiber_g: float | None = Field(default=None, ge=0)
    sugar_g: float | None = Field(default=None, ge=0)
    sodium_mg: float | None = Field(default=None, ge=0)


class DiningHall(BaseModel):
    id: str
    name: str
    short_name: str | None = None


class MenuItem(BaseModel):
    id: str
    name: str
    description: str | None = None
    category: str | None = None
    station: str | None = None
    is_vegetarian: bool = False
    is_vegan: bool = False
    contains_gluten: bool = False
    contains_dairy: bool = False
    contains_nuts: bool = False
    allergen_info: list[str] = Field(default_factory=list)
    meal_type: str = "lunch"
    date: str = Field(..., description="Menu day as YYYY-MM-DD")
    dining_hall: DiningHall | None = None
    nutrition: NutritionFacts | None = None


class MacroTargets(BaseModel):
    """A macro budget. Used for daily targets, consumed totals and what remains."""

    calories: float = Field(0.0, ge=0)
    protein_g: float = Field(0.0, ge=0)
    carbs_g: float = Field(0.0, ge=0)
    fat_g: float = Field(0.0, ge=0)


class UserPreferences(BaseModel):
    is_vegetarian: bool = False
    is_vegan: bool = False
    is_pescatarian: bool = False
    is_gluten_free: bool = False
    is_dairy_free: bool = False
    is_halal: bool = False
    is_kosher: bool = False
    is_hindu_non_veg: bool = False
    allergies: list[str] = Field(default_factory=list)
    dislikes: list[str] = Field(default_factory=list)
    preferences: list[str] = Field(default_factory=list)

    @field_validator("allergies", "dislikes", "preferences", mode="after")
    @classmethod
    def _drop_blank_keywords(cls, values: list[str]) -> list[str]:
        """Strip keywords and drop blank ones."""
        return [v.strip() for v in values if v.strip()]


class MealHistoryEntry(BaseModel):
    item_id: str
    item_name: str
    item_category: str | None = None


@dataclass
class ScoreResult:
    """Output of a single scoring component."""

    score: float
    reasoning: list[str] = field(default_factory=list)


class RecommendationScore(BaseModel):
    item: MenuItem
    total_score: int
    macro_score: int
    preference_score: int
    variety_score: int
    availability_score: int
    reasoning: list[str] = Field(default_factory=list)


# ── API response models ──────────────────────────────────────────────────


class RecommendedMenuItem(BaseModel):
    id: str
    name: str
    description: str | None = None
    category: str | None = None
    station: str | None = None
    dining_hall: DiningHall | None = None
    nutrition: NutritionFacts | None = None
    is_vegetarian: bool = False
    is_vegan: bool = False


class ScoreBreakdown(BaseModel):
    macro_score: int
    preference_score: int
    variety_score: int
    availability_score: int


class RecommendationItem(BaseModel):
    item: RecommendedMenuItem
    score: int
    breakdown: ScoreBreakdown
    reasoning: list[str]

    @classmethod
    def from_score(cls, rec: RecommendationScore) -> "RecommendationItem":
        return cls(
            item=RecommendedMenuItem(**rec.item.model_dump(include=set(RecommendedMenuItem.model_fields))),
            score=rec.total_score,
            breakdown=ScoreBreakdown(
                macro_score=rec.macro_score,
                preference_score=rec.preference_score,
                variety_score=rec.variety_score,
                availability_score=rec.availability_score,
            ),
            reasoning=rec.reasoning,
        )


class RecommendationResponse(BaseModel):
    success: bool = True
    date: str
    meal_period: str | None = None
    remaining_macros: MacroTargets
    recommendations: list[RecommendationItem]


class MenuResponse(BaseModel):
    date: str
    meal_type: str | None = None
    hall: str | None = None
    items: list[MenuItem]
