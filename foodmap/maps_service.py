"""Maps backend: place search, place details, photos and directions."""

import logging

from .network_client import NetworkClient
from .schemas import (
    DirectionsRequest,
    DirectionsResponse,
    PhotoUrlResponse,
    PlaceDetailsRequest,
    PlaceDetailsResult,
    PlaceResult,
    PlaceSearchRequest,
    PlaceSearchResponse,
)

logger = logging.getLogger(__name__)

SEARCH_ENDPOINT = "api/v1/maps/search"
PLACE_DETAILS_ENDPOINT = "api/v1/maps/place-details"
DIRECTIONS_ENDPOINT = "api/v1/maps/directions"
PHOTO_ENDPOINT = "api/v1/maps/photo"

NEARBY_QUERY = "restaurants near me"
NEARBY_RADIUS = 5000


class MapsService:
    """All maps endpoints require a signed-in user."""

    def __init__(self, client: NetworkClient):
        self.client = client

    async def search_places(self, request: PlaceSearchRequest) -> PlaceSearchResponse:
        if not request.query.strip():
            return PlaceSearchResponse(results=[], status="ZERO_RESULTS")

        logger.info(f"Searching for '{request.query}'")
        response: PlaceSearchResponse = await self.client.post(
            SEARCH_ENDPOINT, request, PlaceSearchResponse, requires_auth=True
        )
        logger.info(f"Got {len(response.results)} results from server")
        return response

    async def search_nearby_restaurants(
        self, latitude: float, longitude: float, radius: int = NEARBY_RADIUS
    ) -> PlaceSearchResponse:
        return await self.search_places(
            PlaceSearchRequest(
                query=NEARBY_QUERY,
                latitude=latitude,
                longitude=longitude,
                radius=radius,
                type="restaurant",
            )
        )

    async def get_place_details(self, request: PlaceDetailsRequest) -> PlaceDetailsResult:
        return await self.client.post(
            PLACE_DETAILS_ENDPOINT, request, PlaceDetailsResult, requires_auth=True
        )

    async def get_directions(self, request: DirectionsRequest) -> DirectionsResponse:
        return await self.client.post(
            DIRECTIONS_ENDPOINT, request, DirectionsResponse, requires_auth=True
        )

    async def directions_to_place(
        self,
        origin: tuple[float, float],
        place: PlaceResult,
        mode: str = "walking",
    ) -> DirectionsResponse:
        """Directions from a (lat, lng) origin to a search result.

        Raises:
            ValueError: If the place has no coordinates.
        """
        destination = place.location
        if destination is None:
            raise ValueError(f"Place {place.place_id} has no location")

        request = DirectionsRequest(
            origin=f"{origin[0]},{origin[1]}",
            destination=f"{destination[0]},{destination[1]}",
            mode=mode,
        )
        return await self.get_directions(request)

    async def get_photo_url(self, photo_reference: str, max_width: int = 400) -> PhotoUrlResponse:
        return await self.client.get(
            PHOTO_ENDPOINT,
            PhotoUrlResponse,
            requires_auth=True,
            params={"photoReference": photo_reference, "maxWidth": max_width},
        )
