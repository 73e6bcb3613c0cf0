"""Request and response schemas shared by the route modules."""
from datetime import datetime
from typing import Annotated, Any, Optional, Union

from pydantic import (
    AfterValidator,
    AliasChoices,
    BaseModel,
    ConfigDict,
    EmailStr,
    Field,
    HttpUrl,
    TypeAdapter,
    ValidationError,
    field_validator,
    model_validator,
)
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Accepts camelCase or snake_case keys; serializes camelCase."""
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


class InputModel(CamelModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        str_strip_whitespace=True,
    )

    @model_validator(mode="before")
    @classmethod
    def drop_blank_values(cls, data: Any) -> Any:
        # Multipart forms send "" for untouched optional inputs
        if isinstance(data, dict):
            return {k: v for k, v in data.items() if not (isinstance(v, str) and not v.strip())}
        return data


def _normalize_email(value: str) -> str:
    return value.strip().lower()


_http_url = TypeAdapter(HttpUrl)


def _check_http_url(value: str) -> str:
    # Validated as a URL, stored exactly as sent
    try:
        _http_url.validate_python(value)
    except ValidationError:
        raise ValueError("Input should be a valid URL")
    return value


AvatarUrl = Annotated[str, Field(max_length=2048), AfterValidator(_check_http_url)]


# Users
# -----------------------------

class SignupRequest(InputModel):
    name: str = Field(min_length=1, max_length=255)
    email: EmailStr
    password: str = Field(min_length=8)
    phone: Optional[str] = Field(default=None, max_length=20)
    avatar: Optional[AvatarUrl] = None

    normalize_email = field_validator("email")(_normalize_email)


class LoginRequest(InputModel):
    email: EmailStr
    password: str = Field(min_length=1)

    normalize_email = field_validator("email")(_normalize_email)


class ProfileUpdate(InputModel):
    name: str = Field(min_length=1, max_length=255)
    email: EmailStr
    phone: Optional[str] = Field(default=None, max_length=20)

    normalize_email = field_validator("email")(_normalize_email)


class UserResponse(CamelModel):
    id: str
    name: str
    email: str
    role: str
    avatar: Optional[str] = None
    phone: Optional[str] = None
    created_at: Optional[datetime] = None


class UserEnvelope(BaseModel):
    user: UserResponse


class AuthResponse(BaseModel):
    token: str
    user: UserResponse


class AdminsResponse(BaseModel):
    admins: list[UserResponse]


class CountResponse(BaseModel):
    count: int


# Listings
# -----------------------------

class ProviderInput(InputModel):
    """
    One schema for every listing write, JSON or multipart.

    openingHours and existingImages arrive as JSON text from forms (or as
    structured values from JSON bodies); the listing service parses them.
    """
    id: Optional[str] = Field(default=None, max_length=255)
    # Target owner; only honoured on administrator routes
    user_id: Optional[str] = Field(default=None, max_length=255)
    name: str = Field(min_length=1, max_length=255)
    username: str = Field(min_length=1, max_length=255)
    city: str = Field(min_length=1, max_length=100)
    category: str = Field(min_length=1, max_length=50)
    subcategory: str = Field(min_length=1, max_length=255)
    zip_code: Optional[str] = Field(default=None, max_length=20)
    location: Optional[str] = Field(default=None, max_length=1000)
    phone: Optional[str] = Field(default=None, max_length=20)
    email: Optional[str] = Field(default=None, max_length=255)
    website: Optional[str] = Field(default=None, max_length=255)
    description: Optional[str] = None
    address: Optional[str] = Field(default=None, max_length=1000)
    opening_hours: Optional[Union[str, dict[str, Any]]] = None
    existing_images: Optional[Union[str, list[Any]]] = None


class ProviderResponse(CamelModel):
    id: str
    owner_id: Optional[str] = None
    # Same value as ownerId, under the key the web client reads
    user_id: Optional[str] = None
    name: str
    username: str
    city: str
    zip_code: Optional[str] = None
    location: Optional[str] = None
    phone: Optional[str] = None
    email: Optional[str] = None
    website: Optional[str] = None
    description: Optional[str] = None
    images: list[str] = []
    opening_hours: dict[str, Any] = {}
    category: str
    subcategory: str
    address: Optional[str] = None
    is_featured: bool = False
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class ProvidersResponse(BaseModel):
    providers: list[ProviderResponse]


class ProviderEnvelope(BaseModel):
    message: Optional[str] = None
    provider: ProviderResponse


class FeaturedUpdate(InputModel):
    is_featured: bool


# Offers
# -----------------------------

class OfferInput(InputModel):
    id: Optional[str] = Field(default=None, max_length=255)
    provider_id: str = Field(
        min_length=1,
        max_length=255,
        validation_alias=AliasChoices("providerId", "listingId", "provider_id", "listing_id"),
    )
    name: str = Field(min_length=1, max_length=255)
    description: Optional[str] = None
    price: float = Field(ge=0, allow_inf_nan=False)
    original_price: float = Field(ge=0, allow_inf_nan=False)
    discounted_price: float = Field(ge=0, allow_inf_nan=False)
    duration: int = Field(
        ge=1,
        validation_alias=AliasChoices("duration", "durationMinutes", "duration_minutes"),
    )
    category: str = Field(min_length=1, max_length=50)
    subcategory: str = Field(min_length=1, max_length=255)
    image: Optional[str] = None


class OfferResponse(CamelModel):
    id: str
    listing_id: str
    # Same value as listingId, under the key the web client reads
    provider_id: str
    name: str
    description: Optional[str] = None
    price: float
    original_price: float
    discounted_price: float
    duration: int
    category: str
    subcategory: str
    image: Optional[str] = None
    created_at: Optional[datetime] = None


class OffersResponse(BaseModel):
    offers: list[OfferResponse]


class OfferEnvelope(BaseModel):
    message: Optional[str] = None
    offer: OfferResponse


class MessageResponse(BaseModel):
    message: str
