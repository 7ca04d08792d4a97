"""Wire settings, upstream client, cache, registry and dispatcher together once."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import timedelta

from .cache import TaskCacheStore
from .dispatcher import ToolDispatcher
from .handlers import TickTickHandlers
from .registry import ToolRegistry, build_registry
from .settings import Settings
from .upstream import TickTickClient

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Runtime:
    settings: Settings
    client: TickTickClient
    cache: TaskCacheStore
    registry: ToolRegistry
    dispatcher: ToolDispatcher


def build_runtime(
    settings: Settings,
    *,
    client: TickTickClient | None = None,
    cache: TaskCacheStore | None = None,
) -> Runtime:
    client = client or TickTickClient.from_settings(settings)
    if not client.configured:
        logger.warning("runtime event=missing_token env=TICKTICK_ACCESS_TOKEN")
    cache = cache or TaskCacheStore(
        settings.cache_path, ttl=timedelta(hours=settings.cache_ttl_hours)
    )
    handlers = TickTickHandlers(
        client=client,
        cache=cache,
        inbox_project_id=settings.inbox_project_id,
    )
    registry = build_registry(handlers)
    return Runtime(
        settings=settings,
        client=client,
        cache=cache,
        registry=registry,
        dispatcher=ToolDispatcher(registry),
    )
