from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator
from pydantic.alias_generators import to_camel

MIN_YEAR_OF_ADMISSION = 1900

REQUIRED_FIELDS = ("name", "degree_program", "roll_number", "city", "year_of_admission")
OPTIONAL_TEXT_FIELDS = (
    "email",
    "phone",
    "department",
    "permanent_address",
    "photo_url",
    "bio",
    "social_links",
)


def check_year_of_admission(year: int) -> int:
    current_year = datetime.now().year
    if year < MIN_YEAR_OF_ADMISSION or year > current_year:
        raise ValueError(f"must be between {MIN_YEAR_OF_ADMISSION} and {current_year}")
    return year


class CamelModel(BaseModel):
    """Python attributes are snake_case; the wire format is camelCase."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class MemberInput(CamelModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
        str_strip_whitespace=True,
    )

    @field_validator(*OPTIONAL_TEXT_FIELDS, mode="before", check_fields=False)
    @classmethod
    def blank_to_none(cls, v):
        # Optional contact fields are stored as NULL, never as "".
        if isinstance(v, str) and not v.strip():
            return None
        return v


class MemberCreate(MemberInput):
    name: str = Field(..., min_length=1, max_length=255)
    email: Optional[EmailStr] = None
    phone: Optional[str] = Field(None, max_length=20)
    year_of_admission: int
    degree_program: str = Field(..., min_length=1, max_length=100)
    roll_number: str = Field(..., min_length=1, max_length=50)
    department: Optional[str] = Field(None, max_length=255)
    city: str = Field(..., min_length=1, max_length=100)
    permanent_address: Optional[str] = None
    photo_url: Optional[str] = None
    bio: Optional[str] = None
    social_links: Optional[str] = None

    @field_validator("year_of_admission")
    @classmethod
    def year_in_range(cls, v: int) -> int:
        return check_year_of_admission(v)


class MemberUpdate(MemberInput):
    """Partial update: only fields present in the payload are applied."""
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    email: Optional[EmailStr] = None
    phone: Optional[str] = Field(None, max_length=20)
    year_of_admission: Optional[int] = None
    degree_program: Optional[str] = Field(None, min_length=1, max_length=100)
    roll_number: Optional[str] = Field(None, min_length=1, max_length=50)
    department: Optional[str] = Field(None, max_length=255)
    city: Optional[str] = Field(None, min_length=1, max_length=100)
    permanent_address: Optional[str] = None
    photo_url: Optional[str] = None
    bio: Optional[str] = None
    social_links: Optional[str] = None

    @field_validator(*REQUIRED_FIELDS)
    @classmethod
    def required_not_null(cls, v):
        if v is None:
            raise ValueError("cannot be null")
        return v

    @field_validator("year_of_admission")
    @classmethod
    def year_in_range(cls, v: Optional[int]) -> Optional[int]:
        if v is None:
            return v
        return check_year_of_admission(v)

    def changes(self) -> dict:
        """Fields explicitly supplied by the caller, keyed by attribute name."""
        return self.model_dump(exclude_unset=True)


class MemberResponse(CamelModel):
    id: int
    name: str
    email: Optional[str] = None
    phone: Optional[str] = None
    year_of_admission: int
    degree_program: str
    roll_number: str
    department: Optional[str] = None
    city: str
    permanent_address: Optional[str] = None
    photo_url: Optional[str] = None
    bio: Optional[str] = None
    social_links: Optional[str] = None
    is_verified: bool
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, from_attributes=True)


class MemberFilter(CamelModel):
    year_of_admission: Optional[int] = None
    degree_program: Optional[str] = None
    city: Optional[str] = None
    search_term: Optional[str] = None


class MemberIdInput(CamelModel):
    id: int


class MemberUpdateInput(CamelModel):
    id: int
    data: MemberUpdate


class FilterOptions(CamelModel):
    years: List[int] = []
    degrees: List[str] = []
    cities: List[str] = []


class DeleteResponse(CamelModel):
    success: bool
