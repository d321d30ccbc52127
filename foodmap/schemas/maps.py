"""Maps backend DTOs: place search, place details, photos and directions."""

from pydantic import Field

from .base import CamelModel


class PlaceSearchRequest(CamelModel):
    query: str
    latitude: float | None = None
    longitude: float | None = None
    radius: int | None = None
    type: str | None = None


class PlacePhoto(CamelModel):
    photo_reference: str
    width: int
    height: int


class PlaceLocation(CamelModel):
    lat: float | None = None
    lng: float | None = None


class PlaceGeometry(CamelModel):
    location: PlaceLocation


class OpeningHours(CamelModel):
    # These two keys come through snake_case from the backend
    open_now: bool | None = Field(default=None, alias="open_now")
    weekday_text: list[str] | None = Field(default=None, alias="weekday_text")


class PlaceResult(CamelModel):
    place_id: str
    name: str
    address: str
    rating: float | None = None
    price_level: int | None = None
    photos: list[PlacePhoto] = Field(default_factory=list)
    geometry: PlaceGeometry
    types: list[str] = Field(default_factory=list)
    opening_hours: OpeningHours | None = None

    @property
    def location(self) -> tuple[float, float] | None:
        """(lat, lng) when the backend sent both coordinates."""
        loc = self.geometry.location
        if loc.lat is None or loc.lng is None:
            return None
        return loc.lat, loc.lng


class PlaceSearchResponse(CamelModel):
    results: list[PlaceResult]
    status: str


class PlaceDetailsRequest(CamelModel):
    place_id: str


class PlaceReview(CamelModel):
    author_name: str = Field(alias="author_name")
    rating: int
    text: str
    time: int


class PlaceDetailsResult(CamelModel):
    place_id: str
    name: str
    address: str
    rating: float | None = None
    price_level: int | None = None
    phone_number: str | None = None
    website: str | None = None
    photos: list[PlacePhoto] = Field(default_factory=list)
    geometry: PlaceGeometry
    opening_hours: OpeningHours | None = None
    reviews: list[PlaceReview] = Field(default_factory=list)
    types: list[str] = Field(default_factory=list)


class DirectionsRequest(CamelModel):
    origin: str
    destination: str
    mode: str | None = None


class DirectionsDistance(CamelModel):
    text: str
    value: int


class DirectionsDuration(CamelModel):
    text: str
    value: int


class DirectionsStep(CamelModel):
    distance: DirectionsDistance
    duration: DirectionsDuration
    instructions: str
    start_location: PlaceLocation
    end_location: PlaceLocation


class DirectionsLeg(CamelModel):
    distance: DirectionsDistance
    duration: DirectionsDuration
    start_address: str
    end_address: str
    steps: list[DirectionsStep] = Field(default_factory=list)


class DirectionsRoute(CamelModel):
    legs: list[DirectionsLeg] = Field(default_factory=list)
    overview_polyline: str
    summary: str


class DirectionsResponse(CamelModel):
    routes: list[DirectionsRoute]
    status: str


class PhotoUrlResponse(CamelModel):
    url: str
