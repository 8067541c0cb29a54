# app/services/audit_service.py
"""
Audit sink adapter. Appends human-readable action strings to the external
append-only ledger (consensus topic) through its HTTP gateway.

Best-effort only: a ledger failure is logged and swallowed, never surfaced
to the API client. Handlers call record_action(), which schedules the
ledger call as a detached task and returns immediately.

Gateway: POST {AUDIT_LEDGER_URL}  body {"topic_id": ..., "message": ...}
"""

import asyncio
from typing import Optional

import httpx

from app.config import settings
from app.utils.logger import get_logger

logger = get_logger(__name__)

# Strong references to in-flight audit tasks (the loop only keeps weak ones)
_pending_tasks: set[asyncio.Task] = set()


async def log_action(message: str) -> Optional[dict]:
    """
    Submit one action to the ledger.
    Returns the gateway receipt, or None if the sink is disabled or failed.
    """
    if not settings.AUDIT_LEDGER_URL:
        logger.info(f"[AUDIT] {message}")
        return None

    payload = {"topic_id": settings.AUDIT_TOPIC_ID, "message": message}
    headers = {}
    if settings.AUDIT_ACCOUNT_ID:
        headers["X-Account-Id"] = settings.AUDIT_ACCOUNT_ID
    if settings.AUDIT_API_KEY:
        headers["Authorization"] = f"Bearer {settings.AUDIT_API_KEY}"

    try:
        async with httpx.AsyncClient(timeout=settings.AUDIT_TIMEOUT_SECONDS) as client:
            response = await client.post(settings.AUDIT_LEDGER_URL, json=payload, headers=headers)
    except Exception as e:
        logger.error(f"[AUDIT] Failed to record \"{message}\": {e}")
        return None

    if not response.is_success:
        logger.warning(f"[AUDIT] Ledger returned HTTP {response.status_code} for \"{message}\"")
        return None

    # The entry is recorded at this point; the receipt body is informational
    try:
        receipt = response.json() if response.content else {}
    except ValueError:
        receipt = {}
    if not isinstance(receipt, dict):
        receipt = {"receipt": receipt}
    logger.info(f"[AUDIT] Recorded \"{message}\" status={receipt.get('status', 'OK')}")
    return receipt


def _on_task_done(task: asyncio.Task):
    _pending_tasks.discard(task)
    if task.cancelled():
        return
    exc = task.exception()
    if exc is not None:
        logger.error(f"[AUDIT] Background audit task crashed: {exc}")


def record_action(message: str) -> Optional[asyncio.Task]:
    """Fire-and-forget: schedule log_action() without awaiting it."""
    try:
        task = asyncio.get_running_loop().create_task(log_action(message), name="audit-log")
    except RuntimeError:
        logger.warning(f"[AUDIT] No running event loop, entry dropped: {message}")
        return None
    _pending_tasks.add(task)
    task.add_done_callback(_on_task_done)
    return task
