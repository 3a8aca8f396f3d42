"""
Webhook API Endpoints - Receive change notifications from the hosted data service
"""
from typing import Any, Dict

from fastapi import APIRouter, Depends, HTTPException
import logging

from vitrina.api.deps import get_context
from vitrina.context import AppContext
from vitrina.core.state import ENTITIES

logger = logging.getLogger(__name__)

webhook_router = APIRouter(prefix="/webhooks", tags=["webhooks"])

# Database webhook table names -> engine entities
TABLE_ENTITIES = {
    "products": "product",
    "internal_assets": "asset",
    "brand_settings": "settings",
}


def resolve_entity(payload: Dict[str, Any]) -> str:
    """
    Accepts either {"entity": "product"} or a database webhook body
    such as {"type": "UPDATE", "table": "products", ...}.
    """
    entity = payload.get("entity")
    if not entity and payload.get("table"):
        entity = TABLE_ENTITIES.get(payload["table"])
    if entity not in ENTITIES:
        raise HTTPException(status_code=400, detail="Unknown or missing entity")
    return entity


@webhook_router.post("/changes")
async def record_change(payload: Dict[str, Any], ctx: AppContext = Depends(get_context)):
    """
    Change event without a usable payload: the only reaction is a silent
    re-pull of the matching collection.
    """
    entity = resolve_entity(payload)
    notified = ctx.notifier.publish(entity)
    logger.info(f"Change webhook: {entity} ({payload.get('type', 'event')}) -> {notified} subscribers")
    return {"entity": entity, "subscribers": notified}
