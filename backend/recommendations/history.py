"""History port: the read-only view of a user's recent meals used for variety scoring."""

from __future__ import annotations

from abc import ABC, abstractmethod
from datetime import datetime, timedelta, timezone

from ..tracking.store import get_meal_logs
from .config import DEFAULT_VARIETY_CONFIG
from .models import MealHistoryEntry


class HistoryProvider(ABC):
    """Abstraction over wherever meal logs live."""

    @abstractmethod
    async def get_recent_meal_logs(
        self,
        user_id: str,
        since: datetime,
    ) -> list[MealHistoryEntry]:
        """Return every meal the user logged at or after ``since``."""
        ...


class MealLogHistoryProvider(HistoryProvider):
    """
    History backed by the in-process meal log store.

    Only logs inside ``[since, since + window]`` are returned, so a
    recommendation for a past day never sees meals logged after it.
    """

    def __init__(self, window: timedelta = timedelta(days=DEFAULT_VARIETY_CONFIG.history_days)) -> None:
        self.window = window

    async def get_recent_meal_logs(
        self,
        user_id: str,
        since: datetime,
    ) -> list[MealHistoryEntry]:
        if since.tzinfo is None:
            since = since.replace(tzinfo=timezone.utc)
        until = since + self.window
        return [
            MealHistoryEntry(
                item_id=log.menu_item_id,
                item_name=log.item_name,
                item_category=log.item_category,
            )
            for log in get_meal_logs(user_id)
            if since <= log.logged_at <= until
        ]
