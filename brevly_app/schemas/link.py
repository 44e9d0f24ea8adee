from pydantic import (
    AfterValidator,
    AnyUrl,
    BaseModel,
    ConfigDict,
    Field,
    TypeAdapter,
    field_validator,
    ValidationError,
    model_validator,
)
from pydantic.alias_generators import to_camel
from typing import Annotated, List, Optional
from datetime import datetime, timezone

SHORTENED_URL_PATTERN = r"^[a-zA-Z0-9_-]+$"
# Path segments under /links that belong to other routes
RESERVED_SHORTENED_URLS = frozenset({"export"})

_absolute_url = TypeAdapter(AnyUrl)


def _check_absolute_url(value: str) -> str:
    """Validate as an absolute URL but keep the string exactly as sent"""
    try:
        _absolute_url.validate_python(value)
    except ValidationError:
        raise ValueError("must be a well-formed absolute URL")
    return value


def _check_not_reserved(value: str) -> str:
    if value in RESERVED_SHORTENED_URLS:
        raise ValueError(f"'{value}' is reserved")
    return value


AbsoluteUrl = Annotated[str, AfterValidator(_check_absolute_url)]
ShortenedUrl = Annotated[
    str,
    Field(min_length=3, max_length=10, pattern=SHORTENED_URL_PATTERN),
    AfterValidator(_check_not_reserved),
]


class CamelModel(BaseModel):
    """Base schema: snake_case in Python, camelCase on the wire"""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class LinkCreate(CamelModel):
    original_url: AbsoluteUrl = Field(..., description="The original URL to be shortened")
    shortened_url: ShortenedUrl = Field(..., description="Custom short key (3-10 chars, letters, digits, - and _)")


class LinkUpdate(CamelModel):
    original_url: Optional[AbsoluteUrl] = Field(None, description="The new original URL")
    shortened_url: Optional[ShortenedUrl] = Field(None, description="The new short key")

    @model_validator(mode="after")
    def require_one_field(self) -> "LinkUpdate":
        if self.original_url is None and self.shortened_url is None:
            raise ValueError("At least one field must be provided for update")
        return self


class LinkRead(CamelModel):
    """Link as returned by repositories and the API.
    
    from_attributes=True lets it read straight from the SQLAlchemy row.
    """
    id: str
    original_url: str
    shortened_url: str
    access_count: int
    created_at: datetime

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )

    @field_validator("created_at")
    @classmethod
    def assume_utc(cls, value: datetime) -> datetime:
        # SQLite hands back naive datetimes; they are stored in UTC
        return value if value.tzinfo else value.replace(tzinfo=timezone.utc)


class LinkPage(CamelModel):
    links: List[LinkRead]
    next_cursor: Optional[str] = Field(
        None, description="Pass back as `cursor` to fetch the next page"
    )


class OriginalUrlResponse(CamelModel):
    original_url: str


class ExportResponse(CamelModel):
    report_url: str = Field(..., description="Public URL of the exported CSV file")


class MessageResponse(BaseModel):
    message: str
