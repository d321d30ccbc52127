"""Preference query and chat-completion DTOs for the suggestion backend."""

import enum

from pydantic import BaseModel, field_validator

from .base import CamelModel


class PriceRange(str, enum.Enum):
    """Price tier, ordered from cheapest to most expensive."""

    BUDGET = "budget"
    MODERATE = "moderate"
    EXPENSIVE = "expensive"
    LUXURY = "luxury"

    @property
    def rank(self) -> int:
        return list(PriceRange).index(self)

    # str would otherwise compare the values alphabetically
    def __lt__(self, other):
        if not isinstance(other, PriceRange):
            return NotImplemented
        return self.rank < other.rank

    def __le__(self, other):
        if not isinstance(other, PriceRange):
            return NotImplemented
        return self.rank <= other.rank

    def __gt__(self, other):
        if not isinstance(other, PriceRange):
            return NotImplemented
        return self.rank > other.rank

    def __ge__(self, other):
        if not isinstance(other, PriceRange):
            return NotImplemented
        return self.rank >= other.rank


class RestaurantPreferences(CamelModel):
    """What the user is in the mood for. Every field is optional."""

    cuisine: str | None = None
    dietary: list[str] | None = None
    price_range: PriceRange | None = None
    location: str | None = None
    additional_preferences: dict[str, bool] | None = None

    @field_validator("dietary")
    @classmethod
    def dedupe_dietary(cls, v):
        """Dietary filters are a set of tags; keep first occurrence order."""
        if v is None:
            return v
        return list(dict.fromkeys(tag.strip() for tag in v if tag.strip()))


class RestaurantSuggestionsRequest(CamelModel):
    user_id: str | None = None
    preferences: RestaurantPreferences


class Message(BaseModel):
    role: str
    content: str

    @classmethod
    def user(cls, content: str) -> "Message":
        return cls(role="user", content=content)

    @classmethod
    def system(cls, content: str) -> "Message":
        return cls(role="system", content=content)

    @classmethod
    def assistant(cls, content: str) -> "Message":
        return cls(role="assistant", content=content)


class ChatCompletionRequest(CamelModel):
    messages: list[Message]
    model: str | None = None
    temperature: float | None = None
    max_tokens: int | None = None
    top_p: float | None = None
    frequency_penalty: float | None = None
    presence_penalty: float | None = None


class ChatChoice(CamelModel):
    index: int | None = None
    message: Message
    finish_reason: str | None = None


class ChatCompletionResponse(CamelModel):
    id: str | None = None
    model: str | None = None
    choices: list[ChatChoice]


class SuggestedRestaurant(BaseModel):
    """One restaurant entry pulled out of a suggestion blob."""

    name: str
    description: str
