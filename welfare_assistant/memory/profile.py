"""
User Profile Model
The accumulating record of one user's self-reported eligibility attributes
"""
import logging
from enum import Enum
from typing import Any, Dict, Mapping, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

logger = logging.getLogger(__name__)

# Partial update keyed by Profile attribute name
PartialProfile = Dict[str, Any]


class Gender(str, Enum):
    MALE = "male"
    FEMALE = "female"
    OTHER = "other"


class IncomeType(str, Enum):
    INDIVIDUAL = "individual"
    FAMILY = "family"


class MaritalStatus(str, Enum):
    SINGLE = "single"
    MARRIED = "married"
    WIDOWED = "widowed"
    DIVORCED = "divorced"


class Caste(str, Enum):
    SC = "sc"
    ST = "st"
    OBC = "obc"
    GENERAL = "general"
    EWS = "ews"


class IncomeRange(str, Enum):
    """Legacy bucketed income, superseded by the numeric ``income``"""
    BELOW_1L = "<1L"
    FROM_1L_TO_3L = "1-3L"
    FROM_3L_TO_5L = "3-5L"
    ABOVE_5L = ">5L"


class Profile(BaseModel):
    """
    Every field starts unset (None means "unknown").
    Attribute names are snake_case; the camelCase aliases are the keys
    used on the wire with the extractor service.
    """
    model_config = ConfigDict(
        populate_by_name=True,
        use_enum_values=True,
        str_strip_whitespace=True,
        extra="ignore",
    )

    age: Optional[int] = Field(default=None, ge=0)
    gender: Optional[Gender] = None
    state: Optional[str] = None
    occupation: Optional[str] = None
    income: Optional[float] = Field(default=None, ge=0)
    income_type: Optional[IncomeType] = None
    is_farmer: Optional[bool] = Field(default=None, alias="isFarmer")
    owns_land: Optional[bool] = Field(default=None, alias="ownsLand")
    land_size: Optional[float] = Field(default=None, ge=0, alias="landSize")
    has_disability: Optional[bool] = Field(default=None, alias="hasDisability")
    marital_status: Optional[MaritalStatus] = Field(default=None, alias="maritalStatus")
    caste: Optional[Caste] = None
    is_student: Optional[bool] = Field(default=None, alias="isStudent")
    is_minority: Optional[bool] = None
    is_bpl: Optional[bool] = None
    income_range: Optional[IncomeRange] = Field(default=None, alias="incomeRange")

    @field_validator("gender", "income_type", "marital_status", "caste", mode="before")
    @classmethod
    def _lowercase_enum(cls, value: Any) -> Any:
        if isinstance(value, str):
            return value.strip().lower() or None
        return value

    @field_validator("state", "occupation", mode="before")
    @classmethod
    def _blank_is_unknown(cls, value: Any) -> Any:
        if isinstance(value, str) and not value.strip():
            return None
        return value

    def merge(self, update: Mapping[str, Any]) -> "Profile":
        """
        Apply a partial update and return the resulting profile.
        Keys present in the update overwrite; absent keys are untouched.
        """
        data = self.model_dump()
        for key, value in update.items():
            data[FIELD_ALIASES.get(key, key)] = value
        return Profile.model_validate(data)

    def known_fields(self) -> Dict[str, Any]:
        """Only the fields that have been answered"""
        return self.model_dump(exclude_none=True)

    def to_wire(self) -> Dict[str, Any]:
        """Full snapshot keyed the way the extractor service expects"""
        return self.model_dump(by_alias=True)

    def is_set(self, field_name: str) -> bool:
        return getattr(self, field_name) is not None


PROFILE_FIELDS = tuple(Profile.model_fields.keys())

# camelCase wire name -> attribute name
FIELD_ALIASES: Dict[str, str] = {
    info.alias: name
    for name, info in Profile.model_fields.items()
    if info.alias
}

BOOLEAN_FIELDS = (
    "is_farmer",
    "owns_land",
    "has_disability",
    "is_student",
    "is_minority",
    "is_bpl",
)


def coerce_partial(raw: Any) -> PartialProfile:
    """
    Turn an untrusted mapping into a partial update of valid Profile values.

    Unknown keys, nulls and values that do not validate against the field's
    type are dropped one by one; the remaining fields are returned keyed by
    attribute name.
    """
    if not isinstance(raw, Mapping):
        return {}

    update: PartialProfile = {}
    for key, value in raw.items():
        if not isinstance(key, str):
            continue
        name = FIELD_ALIASES.get(key, key)
        if name not in Profile.model_fields or value is None:
            continue
        # pydantic reads true/false as 1/0 for numeric fields
        if isinstance(value, bool) and name not in BOOLEAN_FIELDS:
            logger.debug("Dropping %s=%r: boolean for a non-boolean field", key, value)
            continue
        try:
            candidate = Profile.model_validate({name: value})
        except ValidationError:
            logger.debug("Dropping %s=%r: wrong type for profile field", key, value)
            continue
        coerced = getattr(candidate, name)
        if coerced is not None:
            update[name] = coerced
    return update
