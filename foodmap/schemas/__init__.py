"""Wire DTOs and read models."""

from .auth import (
    DisplayNameRequest,
    LoginRequest,
    PasswordResetRequest,
    RegisterRequest,
    RegisterResponse,
    SignUpRequest,
    UserData,
    VerificationResponse,
    VerificationStatusResponse,
    VerifyTokenRequest,
)
from .maps import (
    DirectionsDistance,
    DirectionsDuration,
    DirectionsLeg,
    DirectionsRequest,
    DirectionsResponse,
    DirectionsRoute,
    DirectionsStep,
    OpeningHours,
    PhotoUrlResponse,
    PlaceDetailsRequest,
    PlaceDetailsResult,
    PlaceGeometry,
    PlaceLocation,
    PlacePhoto,
    PlaceResult,
    PlaceReview,
    PlaceSearchRequest,
    PlaceSearchResponse,
)
from .suggestions import (
    ChatChoice,
    ChatCompletionRequest,
    ChatCompletionResponse,
    Message,
    PriceRange,
    RestaurantPreferences,
    RestaurantSuggestionsRequest,
    SuggestedRestaurant,
)
from .user import User

__all__ = [
    # Auth
    "DisplayNameRequest",
    "LoginRequest",
    "PasswordResetRequest",
    "RegisterRequest",
    "RegisterResponse",
    "SignUpRequest",
    "UserData",
    "VerificationResponse",
    "VerificationStatusResponse",
    "VerifyTokenRequest",
    # Maps
    "DirectionsDistance",
    "DirectionsDuration",
    "DirectionsLeg",
    "DirectionsRequest",
    "DirectionsResponse",
    "DirectionsRoute",
    "DirectionsStep",
    "OpeningHours",
    "PhotoUrlResponse",
    "PlaceDetailsRequest",
    "PlaceDetailsResult",
    "PlaceGeometry",
    "PlaceLocation",
    "PlacePhoto",
    "PlaceResult",
    "PlaceReview",
    "PlaceSearchRequest",
    "PlaceSearchResponse",
    # Suggestions
    "ChatChoice",
    "ChatCompletionRequest",
    "ChatCompletionResponse",
    "Message",
    "PriceRange",
    "RestaurantPreferences",
    "RestaurantSuggestionsRequest",
    "SuggestedRestaurant",
    # Users
    "User",
]
