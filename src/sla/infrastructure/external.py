"""
SLA External Service Integrations
==================================

External services for service date commitments:
- Capacity planner HTTP client
"""

from datetime import date
from typing import Any, List, Optional

import httpx

from src.config import settings
from src.core import CapacityPlannerException, CalculationException
from src.shared.infrastructure.logging import get_logger
from src.sla.application import ICapacityPlanner
from src.sla.domain import parse_capacity_dates

logger = get_logger(__name__)


class CapacityPlannerClient(ICapacityPlanner):
    """
    HTTP client for the capacity planning API.

    One GET per baseline id, with the baseline sent as the ``baseline``
    query parameter. The response is a JSON object holding a nested list of
    ``MM/DD/YYYY`` date strings at ``dates_path``. There is no retry; the
    scheduler falls back to entitlement dates on any failure.
    """

    def __init__(
        self,
        base_url: Optional[str] = None,
        api_key: Optional[str] = None,
        timeout_seconds: Optional[float] = None,
        dates_path: Optional[str] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None
    ):
        self._base_url = base_url or settings.capacity_planner_url
        self._api_key = api_key if api_key is not None else settings.capacity_planner_api_key
        self._timeout = timeout_seconds or settings.capacity_timeout_seconds
        self._dates_path = [
            part for part in (dates_path or settings.capacity_dates_path).split(".") if part
        ]
        self._transport = transport
        self._http_client: Optional[httpx.AsyncClient] = None

    @property
    def is_configured(self) -> bool:
        return bool(self._base_url)

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create HTTP client."""
        if self._http_client is None:
            headers = {"Accept": "application/json"}
            if self._api_key:
                headers["Authorization"] = f"Bearer {self._api_key}"
            self._http_client = httpx.AsyncClient(
                timeout=self._timeout,
                headers=headers,
                transport=self._transport
            )
        return self._http_client

    async def get_available_dates(self, baseline_id: str) -> List[date]:
        """
        Get the dates the planner offers for a baseline.

        Raises:
            CapacityPlannerException: if not configured, on transport errors,
                timeouts, non-2xx responses or an unexpected body
        """
        if not self.is_configured:
            raise CapacityPlannerException("URL is not configured")

        client = await self._get_client()
        try:
            response = await client.get(self._base_url, params={"baseline": baseline_id})
        except httpx.TimeoutException as e:
            raise CapacityPlannerException(
                f"Timed out after {self._timeout:.1f}s",
                {"baseline_id": baseline_id}
            ) from e
        except httpx.HTTPError as e:
            raise CapacityPlannerException(
                f"Request failed: {e}",
                {"baseline_id": baseline_id}
            ) from e

        if not response.is_success:
            raise CapacityPlannerException(
                f"Returned HTTP {response.status_code}",
                {"baseline_id": baseline_id, "status_code": response.status_code}
            )

        try:
            payload = response.json()
        except ValueError as e:
            raise CapacityPlannerException(
                "Returned a non-JSON body",
                {"baseline_id": baseline_id}
            ) from e

        raw_dates = self._extract_dates(payload)
        try:
            dates = parse_capacity_dates(raw_dates)
        except CalculationException as e:
            raise CapacityPlannerException(e.message, {"baseline_id": baseline_id}) from e

        logger.info(
            "Capacity planner dates received",
            extra={"baseline_id": baseline_id, "date_count": len(dates)}
        )
        return dates

    def _extract_dates(self, payload: Any) -> List[Any]:
        """Walk ``dates_path`` through the response body to the date list."""
        node = payload
        if not isinstance(node, dict):
            raise CapacityPlannerException("Response is not a JSON object")
        for key in self._dates_path:
            if not isinstance(node, dict) or key not in node:
                raise CapacityPlannerException(
                    f"Response has no '{'.'.join(self._dates_path)}'"
                )
            node = node[key]
        if not isinstance(node, list):
            raise CapacityPlannerException("Dates are not a list")
        return node

    async def close(self) -> None:
        """Close HTTP client."""
        if self._http_client:
            await self._http_client.aclose()
            self._http_client = None
