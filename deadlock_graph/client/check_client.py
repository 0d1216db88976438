from __future__ import annotations

import asyncio
import logging
from typing import Any, Dict, Optional

import aiohttp

from deadlock_graph.core.detector import DetectionResult, Graph
from deadlock_graph.utils.config import settings

log = logging.getLogger(__name__)


class CheckServiceError(RuntimeError):
    def __init__(self, message: str, status: Optional[int] = None, body: str = "") -> None:
        super().__init__(message)
        self.status = status
        self.body = body


def parse_result(data: Dict[str, Any]) -> DetectionResult:
    # older servers wrapped the result: {"deadlock": {"deadlock": ..., "cycle": [...]}}
    inner = data.get("deadlock")
    if isinstance(inner, dict):
        data = inner
    cycle = tuple(data.get("cycle") or ())
    return DetectionResult(deadlock=bool(data.get("deadlock")), cycle=cycle)


class CheckClient:
    """
    Submits graphs to a running deadlock service (POST /check).
    - Reuses an injected aiohttp session, or owns one between start() and stop()
    - Non-2xx replies and connection failures raise CheckServiceError
    """

    def __init__(
        self,
        *,
        api_url: Optional[str] = None,
        timeout_s: float = 5.0,
        session: Optional[aiohttp.ClientSession] = None,
    ) -> None:
        self.api_url = (api_url or settings.base_api_url()).rstrip("/")
        self.timeout_s = timeout_s
        self.session = session
        self._owned_session = False

    async def start(self) -> None:
        if self.session is None:
            self.session = aiohttp.ClientSession(timeout=aiohttp.ClientTimeout(total=self.timeout_s))
            self._owned_session = True

    async def stop(self) -> None:
        if self.session is not None and self._owned_session:
            await self.session.close()
            self.session = None
            self._owned_session = False

    async def __aenter__(self) -> "CheckClient":
        await self.start()
        return self

    async def __aexit__(self, *exc: Any) -> None:
        await self.stop()

    async def _request(self, method: str, path: str, **kwargs: Any) -> Dict[str, Any]:
        if self.session is None:
            await self.start()
        assert self.session is not None

        url = f"{self.api_url}{path}"
        try:
            async with self.session.request(method, url, **kwargs) as resp:
                if resp.status >= 300:
                    body = await resp.text()
                    raise CheckServiceError(f"server error: {resp.status}", status=resp.status, body=body)
                return await resp.json()
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            log.warning("CLIENT: %s %s failed: %s", method, url, e)
            raise CheckServiceError(f"failed to reach {self.api_url}: {e}") from e

    async def check(self, graph: Graph) -> DetectionResult:
        data = await self._request("POST", "/check", json={"graph": dict(graph)})
        result = parse_result(data)
        log.debug("CLIENT: check deadlock=%s cycle=%s", result.deadlock, list(result.cycle))
        return result

    async def health(self) -> Dict[str, Any]:
        return await self._request("GET", "/health")
