"""
Type Data Provider.

Fetches ship, module and skill definitions from ESI:
- GET /universe/types/{type_id}/ - Type with dogma attributes and effects
- GET /universe/groups/{group_id}/ - Group, for the type's category
- POST /universe/ids/ - Exact name -> type ID resolution (no auth)

Results are cached per id in an explicit TTLCache with an injectable clock.
A failed lookup is a miss (None / absent key), never an exception.
"""

from __future__ import annotations

import asyncio
import time
from collections.abc import AsyncIterator, Callable, Iterable
from contextlib import asynccontextmanager
from typing import Generic, Optional, Protocol, TypeVar

from ..core.async_client import AsyncESIClient, AsyncESIError
from ..core.config import get_settings
from ..core.constants import GROUP_ENDPOINT, NAMES_TO_IDS_ENDPOINT, TYPE_ENDPOINT
from ..core.logging import get_logger
from ..fitting.slots import classify_slot
from ..models.eve import GroupEntity, TypeEntity
from ..models.fitting import SlotType

logger = get_logger(__name__)

V = TypeVar("V")

Clock = Callable[[], float]


# =============================================================================
# TTL Cache
# =============================================================================


class TTLCache(Generic[V]):
    """
    Key/value cache whose entries expire ttl_seconds after being set.

    The clock is injectable so tests can advance time explicitly.
    """

    def __init__(self, ttl_seconds: float, clock: Clock = time.monotonic) -> None:
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._entries: dict[str, tuple[float, V]] = {}

    def get(self, key: str) -> Optional[V]:
        """Return the cached value, or None if absent or expired."""
        entry = self._entries.get(key)
        if entry is None:
            return None
        expires, value = entry
        if self._clock() >= expires:
            del self._entries[key]
            return None
        return value

    def set(self, key: str, value: V) -> None:
        now = self._clock()
        self._evict_expired(now)
        self._entries[key] = (now + self.ttl_seconds, value)

    def _evict_expired(self, now: float) -> None:
        expired = [key for key, (expires, _) in self._entries.items() if now >= expires]
        for key in expired:
            del self._entries[key]

    def __contains__(self, key: str) -> bool:
        return self.get(key) is not None

    def __len__(self) -> int:
        return len(self._entries)

    def clear(self) -> None:
        self._entries.clear()


# =============================================================================
# Provider Interface
# =============================================================================


class TypeLookup(Protocol):
    """What the fitting flows need from a type data source."""

    async def get_type(self, type_id: int) -> Optional[TypeEntity]: ...

    async def resolve_names(self, names: Iterable[str]) -> dict[str, int]: ...


# =============================================================================
# ESI Provider
# =============================================================================


class TypeDataProvider:
    """
    ESI-backed type data lookups with TTL caching.

    Usage:
        async with AsyncESIClient() as client:
            provider = TypeDataProvider(client)
            rifter = await provider.get_type(587)
    """

    def __init__(
        self,
        client: AsyncESIClient,
        cache: Optional[TTLCache] = None,
        max_concurrency: Optional[int] = None,
    ) -> None:
        settings = get_settings()
        self._client = client
        self._cache: TTLCache = (
            cache if cache is not None else TTLCache(settings.type_cache_ttl_seconds)
        )
        self._semaphore = asyncio.Semaphore(max_concurrency or settings.max_concurrent_lookups)

    async def _fetch(self, endpoint: str) -> Optional[dict]:
        """GET an endpoint under the concurrency bound; errors become None."""
        async with self._semaphore:
            try:
                payload = await self._client.get_safe(endpoint)
            except AsyncESIError as e:
                logger.warning("Lookup %s failed: %s", endpoint, e.message)
                return None
        return payload if isinstance(payload, dict) else None

    async def get_group(self, group_id: int) -> Optional[GroupEntity]:
        """
        Fetch a group.

        Returns:
            GroupEntity, or None if not found
        """
        key = f"group:{group_id}"
        cached = self._cache.get(key)
        if cached is not None:
            return cached

        payload = await self._fetch(GROUP_ENDPOINT.format(group_id=group_id))
        if payload is None:
            logger.debug("Group %d not found", group_id)
            return None

        group = GroupEntity.from_esi(payload)
        self._cache.set(key, group)
        return group

    async def get_type(self, type_id: int) -> Optional[TypeEntity]:
        """
        Fetch a type with its category resolved through its group.

        Returns:
            TypeEntity, or None if not found
        """
        key = f"type:{type_id}"
        cached = self._cache.get(key)
        if cached is not None:
            return cached

        payload = await self._fetch(TYPE_ENDPOINT.format(type_id=type_id))
        if payload is None:
            logger.warning("Type %d could not be resolved", type_id)
            return None

        category_id = payload.get("category_id")
        group_id = payload.get("group_id")
        if category_id is None and group_id is not None:
            group = await self.get_group(group_id)
            category_id = group.category_id if group else None

        entity = TypeEntity.from_esi(payload, category_id=category_id)
        self._cache.set(key, entity)
        return entity

    async def get_types(self, type_ids: Iterable[int]) -> dict[int, TypeEntity]:
        """
        Fetch several types concurrently.

        Returns:
            Dict of type_id -> TypeEntity for the lookups that succeeded
        """
        unique_ids = list(dict.fromkeys(type_ids))
        results = await asyncio.gather(
            *(self.get_type(type_id) for type_id in unique_ids), return_exceptions=True
        )

        found: dict[int, TypeEntity] = {}
        for type_id, result in zip(unique_ids, results):
            if isinstance(result, TypeEntity):
                found[type_id] = result
            elif isinstance(result, Exception):
                logger.error("Error fetching type %d: %s", type_id, result)
        return found

    async def resolve_names(self, names: Iterable[str]) -> dict[str, int]:
        """
        Resolve exact item names to type IDs.

        Args:
            names: Item names (any case)

        Returns:
            Dict of lower-cased name -> type_id for names that resolved
        """
        resolved: dict[str, int] = {}
        pending: list[str] = []
        for name in dict.fromkeys(names):
            cached = self._cache.get(f"name:{name.lower()}")
            if cached is not None:
                resolved[name.lower()] = cached
            else:
                pending.append(name)

        if not pending:
            return resolved

        async with self._semaphore:
            try:
                payload = await self._client.post(NAMES_TO_IDS_ENDPOINT, pending)
            except AsyncESIError as e:
                logger.warning("Name resolution for %d names failed: %s", len(pending), e.message)
                return resolved

        for item in (payload or {}).get("inventory_types") or []:
            lowered = item["name"].lower()
            resolved[lowered] = item["id"]
            self._cache.set(f"name:{lowered}", item["id"])

        missing = [name for name in pending if name.lower() not in resolved]
        if missing:
            logger.info("Unresolved names: %s", ", ".join(missing))
        return resolved

    async def get_module_slot_type(self, type_id: int) -> Optional[SlotType]:
        """
        Classify a type into a slot category.

        Returns:
            SlotType, or None when the type is unknown or unclassifiable
        """
        entity = await self.get_type(type_id)
        if entity is None:
            return None
        return classify_slot(entity.category_id, entity.group_id, entity.effects)


@asynccontextmanager
async def open_type_provider(token: Optional[str] = None) -> AsyncIterator[TypeDataProvider]:
    """Open an ESI client and yield a provider bound to it."""
    async with AsyncESIClient(token=token) as client:
        yield TypeDataProvider(client)
