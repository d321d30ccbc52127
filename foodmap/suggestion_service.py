"""Restaurant suggestions from the chat-completion backend.

The backend answers with a chat-style completion. The first choice's text is
a free-form blob that usually lists restaurants as ``N. **Name**: description``;
``parse_suggestions`` turns it into discrete entries.
"""

import logging
import re

from .errors import NoSuggestionsError
from .local_store import LocalStore
from .network_client import NetworkClient
from .schemas import (
    ChatCompletionRequest,
    ChatCompletionResponse,
    PriceRange,
    RestaurantPreferences,
    RestaurantSuggestionsRequest,
    SuggestedRestaurant,
)

logger = logging.getLogger(__name__)

SUGGESTIONS_ENDPOINT = "api/v1/gpt/restaurant-suggestions"
CHAT_ENDPOINT = "api/v1/gpt/chat"

FALLBACK_NAME = "Restaurant Suggestions"

# "1. **Trattoria Roma**: cozy spot" -> ("Trattoria Roma", "cozy spot")
SUGGESTION_PATTERN = re.compile(
    r"^\s*\d+\.\s*\*\*(?P<name>.+?)\*\*\s*:?\s*(?P<description>.*?)(?=^\s*\d+\.\s*\*\*|\Z)",
    re.MULTILINE | re.DOTALL,
)


def parse_suggestions(text: str) -> list[SuggestedRestaurant]:
    """Split a suggestion blob into restaurant entries.

    Args:
        text: The completion text.

    Returns:
        One entry per numbered bold name. When nothing matches, a single
        fallback entry holding the whole text.
    """
    entries = [
        SuggestedRestaurant(
            name=match.group("name").strip(),
            description=match.group("description").strip(),
        )
        for match in SUGGESTION_PATTERN.finditer(text)
    ]
    if entries:
        return entries
    return [SuggestedRestaurant(name=FALLBACK_NAME, description=text.strip())]


def default_preferences() -> RestaurantPreferences:
    """Preferences used when the user has not picked any."""
    return RestaurantPreferences(
        cuisine="Italian",
        dietary=["vegetarian", "gluten-free"],
        price_range=PriceRange.MODERATE,
        location="Downtown",
        additional_preferences={"quietEnvironment": True, "outdoorSeating": True},
    )


def with_location_amenities(preferences: RestaurantPreferences) -> RestaurantPreferences:
    """Add the amenity flags implied by the location.

    Downtown requests always ask for a quiet environment and outdoor seating.
    Flags the caller already set are kept.
    """
    amenities = dict(preferences.additional_preferences or {})
    if preferences.location and preferences.location.strip().lower() == "downtown":
        amenities["quietEnvironment"] = True
        amenities["outdoorSeating"] = True
    return preferences.model_copy(update={"additional_preferences": amenities or None})


class SuggestionService:
    def __init__(self, client: NetworkClient, store: LocalStore):
        self.client = client
        self.store = store

    async def get_restaurant_suggestions(
        self, preferences: RestaurantPreferences
    ) -> ChatCompletionResponse:
        user_id = self.store.get_user_id()
        logger.info(f"Getting restaurant suggestions for user ID: {user_id}")

        request = RestaurantSuggestionsRequest(
            user_id=user_id,
            preferences=with_location_amenities(preferences),
        )
        return await self.client.post(SUGGESTIONS_ENDPOINT, request, ChatCompletionResponse)

    async def get_chat_completion(self, request: ChatCompletionRequest) -> ChatCompletionResponse:
        return await self.client.post(CHAT_ENDPOINT, request, ChatCompletionResponse)

    async def suggest_restaurants(
        self, preferences: RestaurantPreferences | None = None
    ) -> list[SuggestedRestaurant]:
        """Fetch suggestions and parse the first choice into entries.

        Raises:
            NoSuggestionsError: If the backend returned no choices.
        """
        response = await self.get_restaurant_suggestions(preferences or default_preferences())
        if not response.choices:
            raise NoSuggestionsError("No recommendations available")

        content = response.choices[0].message.content
        logger.info(f"Got restaurant suggestions: {content[:50]}...")
        return parse_suggestions(content)
