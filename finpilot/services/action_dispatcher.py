"""
Executes a routed voice action against registered application handlers.

Handlers are registered per endpoint prefix (optionally per HTTP method); the
longest matching prefix wins, so ``/subscriptions/upcoming`` can shadow
``/subscriptions``.
"""
from __future__ import annotations

import inspect
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Dict, List, Optional, Tuple, Union

from loguru import logger
from pydantic import BaseModel

from finpilot.models.voice import VoiceIntentResult

Handler = Callable[[str, Dict[str, Any], str], Union[Any, Awaitable[Any]]]


class DispatchResult(BaseModel):
    success: bool
    data: Any = None
    error: Optional[str] = None


@dataclass(frozen=True)
class _Route:
    prefix: str
    method: Optional[str]
    handler: Handler


class ActionDispatcher:
    def __init__(self) -> None:
        self._routes: List[_Route] = []

    def register(self, prefix: str, handler: Handler, method: Optional[str] = None) -> None:
        """``handler(user_id, parameters, endpoint)`` may be sync or async."""
        self._routes.append(_Route(prefix="/" + prefix.strip("/"), method=method.upper() if method else None, handler=handler))

    def resolve(self, endpoint: str, method: Optional[str]) -> Optional[_Route]:
        clean = "/" + (endpoint or "").strip().strip("/")
        candidates: List[Tuple[int, _Route]] = []
        for r in self._routes:
            if r.method and method and r.method != method.upper():
                continue
            if clean == r.prefix or clean.startswith(r.prefix + "/"):
                # method-specific routes beat catch-alls at equal prefix length
                candidates.append((len(r.prefix) * 2 + (1 if r.method else 0), r))
        if not candidates:
            return None
        return max(candidates, key=lambda c: c[0])[1]

    async def dispatch(self, intent: VoiceIntentResult, user_id: str) -> DispatchResult:
        if not intent.success or not intent.endpoint:
            return DispatchResult(success=False, error=intent.error or "No action to execute")

        route = self.resolve(intent.endpoint, intent.method)
        if route is None:
            logger.warning("No handler for {} {}", intent.method, intent.endpoint)
            return DispatchResult(success=False, error=f"Unknown endpoint: {intent.endpoint}")

        logger.info("Executing {} {} params={}", intent.method, intent.endpoint, intent.parameters)
        try:
            data = route.handler(user_id, dict(intent.parameters), intent.endpoint)
            if inspect.isawaitable(data):
                data = await data
        except (LookupError, ValueError, TypeError) as e:
            logger.warning("Handler for {} failed: {}", intent.endpoint, e)
            return DispatchResult(success=False, error=str(e))
        return DispatchResult(success=True, data=data)
