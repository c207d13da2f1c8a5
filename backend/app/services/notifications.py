"""
Dependency change broadcasting.

Runs inside the ARQ worker: every committed edge mutation is published on the
project's Redis pub/sub channel so that schedule views and downstream
consumers can refresh. Delivery is best effort; nothing is retried.
"""

import json

from app.logging_config import get_logger

logger = get_logger(__name__)

CHANNEL_PREFIX = "taskgraph:project:"


def channel_for(project_id: str) -> str:
    return f"{CHANNEL_PREFIX}{project_id}"


async def broadcast_dependency_change(
    ctx: dict,
    edge_id: str,
    project_id: str,
    change: str,
) -> int:
    """
    Publish one dependency change event.

    Args:
        ctx: ARQ context; ctx["redis"] is the worker's Redis connection
        edge_id: Dependency that changed
        project_id: Project whose graph changed
        change: created | updated | removed | deactivated | reactivated

    Returns:
        Number of subscribers that received the message
    """
    message = json.dumps({
        "edge_id": edge_id,
        "project_id": project_id,
        "change": change,
    })
    receivers = await ctx["redis"].publish(channel_for(project_id), message)
    logger.debug(
        f"Broadcast '{change}' for dependency {edge_id[:8]}... "
        f"to {receivers} subscriber(s)"
    )
    return receivers
