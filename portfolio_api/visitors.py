"""
Site visit counter kept in a single document.
"""

from __future__ import annotations

from typing import Optional

from portfolio_api.db import VISITORS, DocumentStore, utcnow_iso
from portfolio_api.errors import DuplicateKeyError

# Fixed id so concurrent first visits cannot create two counters.
COUNTER_ID = "site"


def track_visit(store: DocumentStore, ip: Optional[str], user_agent: Optional[str]) -> int:
    now = utcnow_iso()
    visit = {"ip": ip, "user_agent": user_agent, "timestamp": now}

    def count_visit(counter: dict) -> None:
        counter["count"] = counter.get("count", 0) + 1
        counter["last_visited"] = now
        counter.setdefault("visits", []).append(visit)

    counter = store.modify(VISITORS, COUNTER_ID, count_visit)
    if counter is None:
        try:
            counter = store.insert(
                VISITORS,
                {"id": COUNTER_ID, "count": 1, "last_visited": now, "visits": [visit]},
            )
        except DuplicateKeyError:
            counter = store.modify(VISITORS, COUNTER_ID, count_visit)
    return counter["count"]


def visitor_count(store: DocumentStore) -> dict:
    counter = store.get(VISITORS, COUNTER_ID)
    if counter is None:
        return {"success": True, "count": 0, "last_visited": None}
    return {
        "success": True,
        "count": counter["count"],
        "last_visited": counter.get("last_visited"),
    }


def unique_visitors(store: DocumentStore) -> dict:
    counter = store.get(VISITORS, COUNTER_ID)
    if counter is None:
        return {"success": True, "total_visits": 0, "unique_count": 0}
    ips = {visit.get("ip") for visit in counter.get("visits") or []}
    return {
        "success": True,
        "total_visits": counter["count"],
        "unique_count": len(ips),
    }
