"""
Competitor Rate Collector Service.

Acquires competitor rate observations for a property and date range. When a
rate shopping provider is configured, a single POST /rates/search call is
issued with a hard timeout; its payload is validated against the provider
models and normalized into CompetitorObservation values.

When no provider is configured, or the live call fails for any reason
(timeout, network error, HTTP error status, non-JSON body, unexpected shape),
the collector falls back to a seeded synthetic generator so the rest of the
pipeline always has data. Provider failures are logged as warnings and never
propagated to the caller.

Synthetic Generator Policy:
    rate = round(base * (1 + variation) * seasonal * weekend)

    - base: STD=120, DLX=180, STE=350, PRES=500, anything else 150
    - variation: uniform in [-0.15, 0.15)
    - seasonal: 1.3 Jun-Sep, 1.4 Dec-Jan, 1.1 Mar-May, 1.0 otherwise
    - weekend: 1.2 on Saturday and Sunday
    - available: True with probability 0.9

Dependencies:
    - httpx: async HTTP client for the provider call
    - numpy: seeded random Generator for the synthetic fallback

Usage:
    collector = RateCollector(settings)
    result = await collector.collect("prop_001", date(2026, 7, 1), date(2026, 7, 7))
    print(result.source, len(result.observations))
"""

import logging
from datetime import date, timedelta
from typing import Dict, List, Optional, Sequence, Tuple

import httpx
import numpy as np
from pydantic import ValidationError

from rate_intelligence.core.config import Settings
from rate_intelligence.core.exceptions import RateProviderError
from rate_intelligence.models import (
    CollectionResult,
    CompetitorObservation,
    ProviderConnectionStatus,
    ProviderRateResponse,
    RateSource,
)

logger = logging.getLogger(__name__)


# =============================================================================
# Synthetic Generator Constants
# =============================================================================

# (competitor_id, competitor_name) roster used when none is supplied
DEFAULT_COMPETITORS: Tuple[Tuple[str, str], ...] = (
    ("comp_001", "Grand Hotel Downtown"),
    ("comp_002", "Luxury Suites & Spa"),
    ("comp_003", "Business Center Hotel"),
    ("comp_004", "Boutique Inn"),
)

DEFAULT_ROOM_TYPES: Tuple[str, ...] = ("STD", "DLX", "STE")

BASE_RATES: Dict[str, float] = {
    "STD": 120.0,
    "DLX": 180.0,
    "STE": 350.0,
    "PRES": 500.0,
}

DEFAULT_BASE_RATE: float = 150.0

# Full width of the symmetric random perturbation around the base rate
VARIATION_SPAN: float = 0.3

WEEKEND_MULTIPLIER: float = 1.2

AVAILABILITY_PROBABILITY: float = 0.9

DEFAULT_CURRENCY: str = "USD"


# =============================================================================
# Synthetic Generator Helpers
# =============================================================================


def get_base_rate_for_room_type(room_type_code: str) -> float:
    return BASE_RATES.get(room_type_code, DEFAULT_BASE_RATE)


def get_seasonal_multiplier(target_date: date) -> float:
    """Rate multiplier by calendar month."""
    month = target_date.month
    if 6 <= month <= 9:
        return 1.3
    if month in (12, 1):
        return 1.4
    if 3 <= month <= 5:
        return 1.1
    return 1.0


def is_weekend(target_date: date) -> bool:
    # weekday(): Monday=0 ... Saturday=5, Sunday=6
    return target_date.weekday() >= 5


def _iter_dates(start_date: date, end_date: date):
    current = start_date
    while current <= end_date:
        yield current
        current += timedelta(days=1)


# =============================================================================
# Collector
# =============================================================================


class RateCollector:
    """
    Live-or-synthetic source of competitor observations.

    Args:
        settings: Provider URL, key, timeouts and synthetic seed.
        transport: Optional httpx transport, used by tests to stub the provider.
        rng: Optional numpy Generator. Defaults to one seeded from
            settings.synthetic_seed.
        logger: Optional logger. Defaults to this module's logger.
    """

    def __init__(
        self,
        settings: Settings,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        rng: Optional[np.random.Generator] = None,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self._settings = settings
        self._transport = transport
        self._rng = rng if rng is not None else np.random.default_rng(settings.synthetic_seed)
        self._logger = logger or logging.getLogger(__name__)

    @property
    def is_live_configured(self) -> bool:
        return bool(self._settings.rate_shopper_api_key)

    def _client(self, timeout: float) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            base_url=self._settings.rate_shopper_api_url.rstrip("/"),
            headers={
                "Authorization": f"Bearer {self._settings.rate_shopper_api_key}",
                "Content-Type": "application/json",
            },
            timeout=timeout,
            transport=self._transport,
        )

    # -------------------------------------------------------------------------
    # Collection
    # -------------------------------------------------------------------------

    async def collect(
        self,
        property_id: str,
        start_date: date,
        end_date: date,
        room_type_codes: Optional[Sequence[str]] = None,
    ) -> CollectionResult:
        """
        Collect competitor observations for [start_date, end_date].

        Never raises for provider problems: the result's source tells the
        caller whether the data is live or synthetic.
        """
        self._logger.info(f"Collecting competitor rates for property {property_id}")

        if not self.is_live_configured:
            self._logger.warning("Rate Shopper API key not configured, using synthetic data")
            return CollectionResult(
                observations=self.generate_synthetic_rates(start_date, end_date, room_type_codes),
                source=RateSource.SYNTHETIC,
            )

        try:
            observations = await self._fetch_live_rates(
                property_id, start_date, end_date, room_type_codes
            )
        except RateProviderError as e:
            self._logger.warning(
                f"Failed to collect competitor rates for property {property_id}: {e}. "
                f"Falling back to synthetic data"
            )
            return CollectionResult(
                observations=self.generate_synthetic_rates(start_date, end_date, room_type_codes),
                source=RateSource.SYNTHETIC,
            )

        self._logger.info(f"Collected {len(observations)} competitor rates")
        return CollectionResult(observations=observations, source=RateSource.LIVE)

    async def _fetch_live_rates(
        self,
        property_id: str,
        start_date: date,
        end_date: date,
        room_type_codes: Optional[Sequence[str]],
    ) -> List[CompetitorObservation]:
        payload = {
            "propertyId": property_id,
            "startDate": start_date.isoformat(),
            "endDate": end_date.isoformat(),
            "includeCompetitors": True,
            "maxResults": self._settings.rate_shopper_max_results,
        }
        if room_type_codes:
            payload["roomTypes"] = list(room_type_codes)

        try:
            async with self._client(self._settings.rate_shopper_timeout_seconds) as client:
                response = await client.post("/rates/search", json=payload)
                response.raise_for_status()
                body = response.json()
        except httpx.TimeoutException as e:
            raise RateProviderError(f"Rate Shopper request timed out: {e}") from e
        except httpx.HTTPError as e:
            raise RateProviderError(f"Rate Shopper request failed: {e}") from e
        except ValueError as e:
            raise RateProviderError(f"Rate Shopper returned a non-JSON body: {e}") from e

        try:
            parsed = ProviderRateResponse.model_validate(body)
        except ValidationError as e:
            raise RateProviderError(
                f"Rate Shopper response has an unexpected shape: {e.error_count()} errors"
            ) from e

        return self._normalize(parsed)

    @staticmethod
    def _normalize(response: ProviderRateResponse) -> List[CompetitorObservation]:
        observations: List[CompetitorObservation] = []
        for competitor in response.competitors:
            for rate in competitor.rates:
                observations.append(CompetitorObservation(
                    competitorId=competitor.id,
                    competitorName=competitor.name,
                    roomTypeCode=rate.roomType,
                    rate=rate.amount,
                    currency=rate.currency or DEFAULT_CURRENCY,
                    date=rate.date,
                    # Only an explicit False marks the room unavailable
                    available=rate.available is not False,
                ))
        return observations

    # -------------------------------------------------------------------------
    # Synthetic Fallback
    # -------------------------------------------------------------------------

    def generate_synthetic_rates(
        self,
        start_date: date,
        end_date: date,
        room_type_codes: Optional[Sequence[str]] = None,
        competitors: Optional[Sequence[Tuple[str, str]]] = None,
    ) -> List[CompetitorObservation]:
        """
        Generate one observation per (date, competitor, room type).

        Args:
            start_date: First stay date, inclusive.
            end_date: Last stay date, inclusive.
            room_type_codes: Room types to generate. Defaults to STD, DLX, STE.
            competitors: (id, name) roster. Defaults to DEFAULT_COMPETITORS.

        Returns:
            Observations in date, competitor, room type order. Empty when
            end_date precedes start_date.
        """
        roster = competitors or DEFAULT_COMPETITORS
        room_types = list(room_type_codes) if room_type_codes else list(DEFAULT_ROOM_TYPES)
        observations: List[CompetitorObservation] = []

        for current in _iter_dates(start_date, end_date):
            seasonal = get_seasonal_multiplier(current)
            weekend = WEEKEND_MULTIPLIER if is_weekend(current) else 1.0

            for competitor_id, competitor_name in roster:
                for room_type in room_types:
                    variation = (self._rng.random() - 0.5) * VARIATION_SPAN
                    rate = round(
                        get_base_rate_for_room_type(room_type)
                        * (1 + variation)
                        * seasonal
                        * weekend
                    )
                    observations.append(CompetitorObservation(
                        competitorId=competitor_id,
                        competitorName=competitor_name,
                        roomTypeCode=room_type,
                        rate=float(rate),
                        currency=DEFAULT_CURRENCY,
                        date=current,
                        available=bool(self._rng.random() < AVAILABILITY_PROBABILITY),
                    ))

        return observations

    # -------------------------------------------------------------------------
    # Connectivity
    # -------------------------------------------------------------------------

    async def test_connection(self) -> ProviderConnectionStatus:
        """Probe GET /health on the provider."""
        if not self.is_live_configured:
            return ProviderConnectionStatus(
                success=False,
                message="Rate Shopper API key not configured",
            )

        try:
            async with self._client(self._settings.rate_shopper_health_timeout_seconds) as client:
                response = await client.get("/health")
                response.raise_for_status()
        except httpx.HTTPError as e:
            self._logger.warning(f"Rate Shopper connection test failed: {e}")
            return ProviderConnectionStatus(
                success=False,
                message=f"Rate Shopper connection failed: {e}",
            )

        return ProviderConnectionStatus(
            success=True,
            message="Rate Shopper connection successful",
        )
