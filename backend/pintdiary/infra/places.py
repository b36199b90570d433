"""Places provider client (Google Places web service) with a mock fallback."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Optional

import httpx

from pintdiary.obs import metrics as obs_metrics
from pintdiary.settings import settings

logger = logging.getLogger(__name__)

NEARBY_LIMIT = 8
TEXT_LIMIT = 6
# Centre used for mock text-search results
MOCK_TEXT_CENTRE = (51.5, -0.12)
_PLACEHOLDER_KEYS = {"", "your_google_maps_api_key"}


@dataclass(frozen=True)
class PlaceResult:
	place_id: str
	name: str
	address: str
	lat: float
	lng: float


def mock_pubs(lat: float, lng: float) -> list[PlaceResult]:
	return [
		PlaceResult("mock_1", "The Black Harp", "123 Stout Street, Dublin", lat + 0.001, lng + 0.001),
		PlaceResult("mock_2", "Mulligan's", "8 Poolbeg Street, Dublin 2", lat + 0.002, lng - 0.001),
		PlaceResult("mock_3", "The Long Hall", "51 S Great George's St, Dublin 2", lat - 0.001, lng + 0.002),
	]


def _parse(place: dict[str, Any], address_field: str) -> PlaceResult:
	location = (place.get("geometry") or {}).get("location") or {}
	return PlaceResult(
		place_id=str(place.get("place_id") or ""),
		name=str(place.get("name") or ""),
		address=str(place.get(address_field) or ""),
		lat=float(location.get("lat") or 0.0),
		lng=float(location.get("lng") or 0.0),
	)


class PlacesClient:
	"""Nearby and text pub search.

	Without an API key the three sample venues are returned. A transport failure
	falls back to the samples for nearby search and to no results for text search;
	any provider status other than ``OK`` yields no results.
	"""

	def __init__(
		self,
		*,
		api_key: Optional[str] = None,
		base_url: Optional[str] = None,
		http: Optional[httpx.AsyncClient] = None,
		timeout: Optional[float] = None,
		radius_m: Optional[int] = None,
	) -> None:
		self.api_key = api_key if api_key is not None else settings.places_api_key
		self.base_url = (base_url or settings.places_base_url).rstrip("/")
		self.timeout = timeout if timeout is not None else settings.places_timeout_seconds
		self.radius_m = radius_m if radius_m is not None else settings.places_nearby_radius_m
		self._http = http

	@property
	def configured(self) -> bool:
		return (self.api_key or "").strip() not in _PLACEHOLDER_KEYS

	async def _get(self, endpoint: str, params: dict[str, Any]) -> dict[str, Any]:
		url = f"{self.base_url}/{endpoint}/json"
		params = {**params, "key": self.api_key}
		if self._http is not None:
			response = await self._http.get(url, params=params, timeout=self.timeout)
		else:
			async with httpx.AsyncClient(timeout=self.timeout) as client:
				response = await client.get(url, params=params)
		response.raise_for_status()
		return response.json()

	async def search_nearby(self, lat: float, lng: float) -> list[PlaceResult]:
		if not self.configured:
			obs_metrics.inc_places_lookup("nearby", "mock")
			return mock_pubs(lat, lng)
		try:
			data = await self._get(
				"nearbysearch",
				{"location": f"{lat},{lng}", "radius": self.radius_m, "type": "bar|pub"},
			)
		except (httpx.HTTPError, ValueError) as exc:
			logger.warning("Places nearby search failed: %s", exc)
			obs_metrics.inc_places_lookup("nearby", "fallback")
			return mock_pubs(lat, lng)
		if data.get("status") != "OK":
			obs_metrics.inc_places_lookup("nearby", "empty")
			return []
		obs_metrics.inc_places_lookup("nearby", "provider")
		return [_parse(place, "vicinity") for place in (data.get("results") or [])[:NEARBY_LIMIT]]

	async def search_by_text(self, query: str) -> list[PlaceResult]:
		query = (query or "").strip()
		if not query:
			return []
		if not self.configured:
			obs_metrics.inc_places_lookup("text", "mock")
			return mock_pubs(*MOCK_TEXT_CENTRE)
		try:
			data = await self._get("textsearch", {"query": f"{query} pub bar"})
		except (httpx.HTTPError, ValueError) as exc:
			logger.warning("Places text search failed: %s", exc)
			obs_metrics.inc_places_lookup("text", "error")
			return []
		if data.get("status") != "OK":
			obs_metrics.inc_places_lookup("text", "empty")
			return []
		obs_metrics.inc_places_lookup("text", "provider")
		return [_parse(place, "formatted_address") for place in (data.get("results") or [])[:TEXT_LIMIT]]


_client: Optional[PlacesClient] = None


def get_places_client() -> PlacesClient:
	global _client
	if _client is None:
		_client = PlacesClient()
	return _client


def set_places_client(client: Optional[PlacesClient]) -> None:
	global _client
	_client = client
