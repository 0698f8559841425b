from __future__ import annotations

import json
from pathlib import Path

import pandas as pd

from .config import DEFAULT_DATA_CONFIG
from .models import MenuItem

_df: pd.DataFrame | None = None


def _load(path: Path) -> pd.DataFrame:
    with path.open(encoding="utf-8") as fh:
        records = json.load(fh)

    df = pd.DataFrame.from_records(records)

    # Missing keys come through as NaN; the models expect None
    df = df.astype(object).where(pd.notna(df), None)

    df["id"] = df["id"].astype(str)
    df["meal_type_lower"] = df["meal_type"].fillna("").str.lower()
    df["hall_keys"] = df["dining_hall"].map(_hall_keys)
    return df


def _hall_keys(hall: dict | None) -> tuple[str, ...]:
    if not hall:
        return ()
    return tuple(str(hall[key]).lower() for key in ("short_name", "name") if hall.get(key))


def get_dataframe() -> pd.DataFrame:
    """Return the in-memory menu DataFrame, loading it on first call."""
    global _df
    if _df is None:
        _df = _load(DEFAULT_DATA_CONFIG.menu_path)
    return _df


def _to_item(row: pd.Series) -> MenuItem:
    data = row.drop(labels=["meal_type_lower", "hall_keys"]).to_dict()
    data["allergen_info"] = data.get("allergen_info") or []
    return MenuItem.model_validate(data)


def get_menu_items(
    date: str,
    meal_type: str | None = None,
    hall: str | None = None,
) -> list[MenuItem]:
    """
    Menu items served on ``date``, optionally for a single meal period.

    ``hall`` matches a dining hall's short name or full name, ignoring case.
    """
    df = get_dataframe()
    mask = df["date"] == date
    if meal_type:
        mask = mask & (df["meal_type_lower"] == meal_type.strip().lower())
    if hall:
        mask = mask & df["hall_keys"].map(lambda keys: hall.strip().lower() in keys)
    return [_to_item(row) for _, row in df.loc[mask].iterrows()]


def get_menu_item(item_id: str) -> MenuItem | None:
    df = get_dataframe()
    matches = df.loc[df["id"] == str(item_id)]
    if matches.empty:
        return None
    return _to_item(matches.iloc[0])
