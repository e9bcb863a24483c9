"""Timeout handling for awaited collaborator calls."""

import asyncio
from collections.abc import Awaitable
from typing import TypeVar

from src.alerting.domain.exceptions import CollaboratorTimeoutError
from src.alerting.domain.models import AlertRule
from src.config import EngineConfig

T = TypeVar("T")


async def call_with_timeout(
    awaitable: Awaitable[T], timeout: float, operation: str, condition_id: str | None = None
) -> T:
    """Await a collaborator call, converting a timeout into a CollaboratorTimeoutError."""
    try:
        return await asyncio.wait_for(awaitable, timeout=timeout)
    except asyncio.TimeoutError as e:
        raise CollaboratorTimeoutError(operation, timeout, condition_id=condition_id) from e


def collaborator_timeout(rule: AlertRule, config: EngineConfig) -> float:
    """Per-call budget: the configured ceiling, never longer than the rule's evaluation window."""
    return min(config.collaborator_timeout_seconds, rule.evaluation_window * 60)
