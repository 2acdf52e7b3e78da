from datetime import datetime
from typing import Any, Dict, List, Optional

from careerguide.services import collections
from careerguide.services.store import DocumentStore, eq


async def record_activity(
    store: DocumentStore,
    user_id: str,
    type: str,
    title: str,
    description: str = "",
    action_url: Optional[str] = None,
    action_text: Optional[str] = None,
) -> str:
    """Append an entry to the user's activity feed"""
    entry: Dict[str, Any] = {
        "userId": user_id,
        "type": type,
        "title": title,
        "description": description,
        "date": datetime.utcnow().isoformat(),
    }
    if action_url:
        entry["actionUrl"] = action_url
        entry["actionText"] = action_text or "View"
    return await store.add(collections.ACTIVITIES, entry)


async def list_activity(store: DocumentStore, user_id: str, limit: int = 20) -> List[Dict[str, Any]]:
    return await store.query(
        collections.ACTIVITIES,
        filters=[eq("userId", user_id)],
        order_by="date",
        descending=True,
        limit=limit,
    )
