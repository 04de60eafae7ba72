"""
Eligibility Engine
Filters a scheme catalog against a partially filled user profile.

A scheme is eligible when it has no rules, or when at least one of its
rules matches (OR across rules, AND across the axes of one rule). An
axis the profile has not answered never excludes, except for the axes
that demand an affirmative fact (occupation list, farmer/land, widow,
student, disability, minority, BPL).
"""
from dataclasses import dataclass, field
from typing import Any, Iterable, List, Literal, Optional, Union

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator

from ..memory.profile import Profile

_LIST_FIELDS = (
    "allowed_genders",
    "allowed_categories",
    "allowed_occupations",
    "employment_status",
    "applicable_states",
    "excluded_states",
)

_FLAG_FIELDS = (
    "requires_land_ownership",
    "requires_farmer",
    "requires_disability",
    "widow_only",
    "student_only",
    "minority_only",
    "bpl_only",
)


class EligibilityRule(BaseModel):
    """One disjunct clause of a scheme's eligibility; unset axes are unconstrained"""
    model_config = ConfigDict(extra="ignore")

    id: Optional[Union[str, int]] = None
    scheme_id: Optional[Union[str, int]] = None
    min_age: Optional[int] = None
    max_age: Optional[int] = None
    allowed_genders: List[str] = Field(default_factory=list)
    allowed_categories: List[str] = Field(default_factory=list)
    income_min: Optional[float] = None
    income_max: Optional[float] = None
    # Recorded for display only; individual vs family income is not cross-checked
    income_type: Optional[Literal["individual", "family"]] = None
    allowed_occupations: List[str] = Field(default_factory=list)
    employment_status: List[str] = Field(default_factory=list)
    requires_land_ownership: bool = False
    requires_farmer: bool = False
    min_land_size: Optional[float] = None
    max_land_size: Optional[float] = None
    requires_disability: bool = False
    widow_only: bool = False
    student_only: bool = False
    minority_only: bool = False
    bpl_only: bool = False
    applicable_states: List[str] = Field(default_factory=list)
    excluded_states: List[str] = Field(default_factory=list)

    @field_validator(*_LIST_FIELDS, mode="before")
    @classmethod
    def _null_list(cls, value: Any) -> Any:
        return [] if value is None else value

    @field_validator(*_FLAG_FIELDS, mode="before")
    @classmethod
    def _null_flag(cls, value: Any) -> Any:
        return False if value is None else value


class Scheme(BaseModel):
    """A catalog entry together with its eligibility rules"""
    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    id: Union[str, int]
    name: str
    short_description: str = ""
    long_description: Optional[str] = None
    benefits: Optional[str] = None
    categories: List[str] = Field(default_factory=list)
    state_type: Literal["central", "state"] = "central"
    implementing_department: Optional[str] = None
    application_mode: Optional[Literal["online", "offline", "both"]] = None
    helpline_number: Optional[str] = None
    priority_rank: int = 0
    applicable_states: List[str] = Field(default_factory=list)
    is_active: bool = True
    official_link: Optional[str] = None
    created_at: Optional[str] = None
    rules: List[EligibilityRule] = Field(
        default_factory=list,
        validation_alias=AliasChoices("rules", "scheme_eligibility_rules"),
    )

    @field_validator("categories", "applicable_states", "rules", mode="before")
    @classmethod
    def _null_list(cls, value: Any) -> Any:
        return [] if value is None else value

    @field_validator("priority_rank", mode="before")
    @classmethod
    def _null_rank(cls, value: Any) -> Any:
        return 0 if value is None else value


@dataclass
class SchemeCheck:
    """Outcome of checking one scheme, with per-rule failure reasons"""
    scheme: Scheme
    eligible: bool
    matched_rule_index: Optional[int] = None
    rule_failures: List[List[str]] = field(default_factory=list)


def _lowered(values: Iterable[str]) -> List[str]:
    return [v.lower() for v in values]


def check_rule(rule: EligibilityRule, profile: Profile) -> List[str]:
    """
    Check every axis of a rule against the profile.
    Returns the reasons the rule fails; an empty list means it matches.
    """
    failed: List[str] = []

    # Age
    if profile.age is not None:
        if rule.min_age is not None and profile.age < rule.min_age:
            failed.append(f"age must be at least {rule.min_age}")
        if rule.max_age is not None and profile.age > rule.max_age:
            failed.append(f"age must be at most {rule.max_age}")

    # Gender
    if rule.allowed_genders and profile.gender:
        if profile.gender.lower() not in _lowered(rule.allowed_genders):
            failed.append(f"only for {', '.join(rule.allowed_genders)}")

    # Category / caste
    if rule.allowed_categories and profile.caste:
        if profile.caste.lower() not in _lowered(rule.allowed_categories):
            failed.append(f"only for {', '.join(rule.allowed_categories)} categories")

    # Income
    if profile.income is not None:
        if rule.income_max is not None and profile.income > rule.income_max:
            failed.append(f"income must not exceed {rule.income_max:g}")
        if rule.income_min is not None and profile.income < rule.income_min:
            failed.append(f"income must be at least {rule.income_min:g}")

    # Occupation: an unknown occupation cannot satisfy a required list
    if rule.allowed_occupations:
        occupation = (profile.occupation or "").lower()
        if not occupation or not any(a in occupation for a in _lowered(rule.allowed_occupations)):
            failed.append(f"only for {', '.join(rule.allowed_occupations)}")

    # Farmer & land
    if rule.requires_farmer or rule.requires_land_ownership:
        if not profile.is_farmer and not profile.owns_land:
            failed.append("only for farmers or land owners")

    if profile.land_size is not None:
        if rule.min_land_size is not None and profile.land_size < rule.min_land_size:
            failed.append(f"land must be at least {rule.min_land_size:g} acres")
        if rule.max_land_size is not None and profile.land_size > rule.max_land_size:
            failed.append(f"land must be at most {rule.max_land_size:g} acres")

    # Social conditions
    if rule.widow_only and profile.marital_status != "widowed":
        failed.append("only for widows")

    if rule.student_only:
        is_student = profile.is_student or "student" in (profile.occupation or "").lower()
        if not is_student:
            failed.append("only for students")

    if rule.requires_disability and profile.has_disability is not True:
        failed.append("only for persons with disabilities")

    if rule.minority_only and profile.is_minority is not True:
        failed.append("only for minority communities")

    if rule.bpl_only and profile.is_bpl is not True:
        failed.append("only for BPL card holders")

    # Geography: exclusion is checked before inclusion
    if profile.state:
        user_state = profile.state.lower()
        if user_state in _lowered(rule.excluded_states):
            failed.append(f"not available in {profile.state}")
        elif rule.applicable_states and user_state not in _lowered(rule.applicable_states):
            failed.append(f"only for {', '.join(rule.applicable_states)}")

    return failed


def rule_matches(rule: EligibilityRule, profile: Profile) -> bool:
    return not check_rule(rule, profile)


def check_scheme(scheme: Scheme, profile: Profile) -> SchemeCheck:
    """Check one scheme; a scheme without rules is open to everyone"""
    if not scheme.rules:
        return SchemeCheck(scheme=scheme, eligible=True)

    failures: List[List[str]] = []
    for index, rule in enumerate(scheme.rules):
        reasons = check_rule(rule, profile)
        failures.append(reasons)
        if not reasons:
            return SchemeCheck(
                scheme=scheme,
                eligible=True,
                matched_rule_index=index,
                rule_failures=failures
            )

    return SchemeCheck(scheme=scheme, eligible=False, rule_failures=failures)


def is_eligible(scheme: Scheme, profile: Profile) -> bool:
    return not scheme.rules or any(rule_matches(rule, profile) for rule in scheme.rules)


def evaluate(profile: Profile, catalog: Iterable[Scheme]) -> List[Scheme]:
    """Schemes the profile qualifies for, in catalog order"""
    return [scheme for scheme in catalog if is_eligible(scheme, profile)]
