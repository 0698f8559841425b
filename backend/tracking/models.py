from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field

from ..recommendations.models import MacroTargets, NutritionFacts


class UserProfile(BaseModel):
    user_id: str
    target_calories: float | None = Field(default=None, ge=0)
    target_protein_g: float | None = Field(default=None, ge=0)
    target_carbs_g: float | None = Field(default=None, ge=0)
    target_fat_g: float | None = Field(default=None, ge=0)


class MealLogRequest(BaseModel):
    menu_item_id: str = Field(..., min_length=1)
    servings: float = Field(default=1.0, gt=0)
    eaten_at: datetime | None = None
    notes: str | None = Field(default=None, max_length=2000)


class MealLog(BaseModel):
    id: str
    user_id: str
    menu_item_id: str
    item_name: str
    item_category: str | None = None
    nutrition: NutritionFacts | None = None
    servings: float = 1.0
    eaten_at: datetime
    notes: str | None = None
    logged_at: datetime


class MealLogResponse(BaseModel):
    success: bool = True
    meal_log: MealLog


class MealLogsResponse(BaseModel):
    meal_logs: list[MealLog]
    count: int


class TodayResponse(BaseModel):
    date: str
    targets: MacroTargets
    consumed: MacroTargets
    remaining: MacroTargets
