"""Prober service - performs one HTTP reachability check per target."""
import logging
import time
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Optional

import httpx

from ..utils.time import utc_now
from .registry import Target

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT_SECONDS = 5.0


class Status(str, Enum):
    """Target status. Stored rows are only ever UP or DOWN."""
    UP = "up"
    DOWN = "down"
    UNKNOWN = "unknown"


@dataclass(frozen=True)
class ProbeResult:
    """Result of a single probe."""
    target_name: str
    status: Status
    observed_at: datetime
    latency_ms: Optional[int] = None
    status_code: Optional[int] = None
    error: Optional[str] = None


class Prober:
    """Issues bounded-timeout GET requests and classifies the outcome.

    Any HTTP response, whatever its status code, counts as UP: the server
    answered. Only transport failures (timeout, refused connection, DNS,
    TLS, malformed URL) are DOWN, and those carry no latency.

    One httpx client is shared by all probes so connection pools and the
    SSL context are built once; close it with aclose() on shutdown.
    """

    def __init__(
        self,
        verify_tls: bool = True,
        follow_redirects: bool = True,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.verify_tls = verify_tls
        self.follow_redirects = follow_redirects
        self._client = httpx.AsyncClient(
            timeout=DEFAULT_TIMEOUT_SECONDS,
            follow_redirects=follow_redirects,
            verify=verify_tls,
            transport=transport,
        )

    async def aclose(self) -> None:
        await self._client.aclose()

    async def __aenter__(self) -> "Prober":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def probe(self, target: Target, timeout: float = DEFAULT_TIMEOUT_SECONDS) -> ProbeResult:
        """Probe a target. Never raises; failures come back as DOWN results."""
        observed_at = utc_now()
        start = time.perf_counter()
        try:
            response = await self._client.get(target.url, timeout=timeout)
        except httpx.TimeoutException:
            return self._down(target, observed_at, "Request timeout")
        except httpx.ConnectError as e:
            return self._down(target, observed_at, f"Connection error: {e}")
        except Exception as e:
            return self._down(target, observed_at, f"{type(e).__name__}: {e}")

        latency_ms = int((time.perf_counter() - start) * 1000)
        logger.debug(f"{target.name}: HTTP {response.status_code} in {latency_ms}ms")
        return ProbeResult(
            target_name=target.name,
            status=Status.UP,
            observed_at=observed_at,
            latency_ms=latency_ms,
            status_code=response.status_code,
        )

    @staticmethod
    def _down(target: Target, observed_at: datetime, error: str) -> ProbeResult:
        logger.debug(f"{target.name}: down ({error})")
        return ProbeResult(
            target_name=target.name,
            status=Status.DOWN,
            observed_at=observed_at,
            error=error or "Request failed",
        )
