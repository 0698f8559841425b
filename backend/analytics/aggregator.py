from __future__ import annotations

from collections import Counter
from typing import Any

from .store import MEAL_LOG_EVENT, RECOMMENDATION_EVENT


def compute_analytics(events: list[dict[str, Any]]) -> dict[str, Any]:
    requests = [e for e in events if e["type"] == RECOMMENDATION_EVENT]
    total = len(requests)

    # Average response time
    times = [r["response_time_ms"] for r in requests if "response_time_ms" in r]
    avg_time = round(sum(times) / len(times), 1) if times else 0.0

    # Meal period usage ("now" when no period was requested)
    period_counter: Counter[str] = Counter()
    for r in requests:
        period_counter[r.get("meal_period") or "now"] += 1

    # Most recommended items
    item_counter: Counter[str] = Counter()
    for r in requests:
        for name in r.get("item_names", []) or []:
            item_counter[name] += 1
    top_items = [{"name": n, "count": c} for n, c in item_counter.most_common(10)]

    # Candidate filtering
    candidates = sum(r.get("candidates", 0) for r in requests)
    excluded = sum(r.get("excluded", 0) for r in requests)
    empty_results = sum(1 for r in requests if r.get("results_returned", 0) == 0)

    meal_logs = [e for e in events if e["type"] == MEAL_LOG_EVENT]

    return {
        "total_requests": total,
        "avg_response_time_ms": avg_time,
        "meal_period_usage": dict(period_counter),
        "top_recommended_items": top_items,
        "candidate_stats": {
            "candidates": candidates,
            "excluded": excluded,
            "exclusion_rate": round(excluded / candidates * 100, 1) if candidates else 0.0,
            "empty_results": empty_results,
        },
        "meals_logged": len(meal_logs),
    }
