"""
Scheme Catalog Providers
Read access to the active, rule-annotated scheme list.
The eligibility engine consumes complete snapshots only.
"""
import asyncio
import json
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional

from pydantic import ValidationError

from .eligibility import Scheme

logger = logging.getLogger(__name__)


class CatalogFetchError(Exception):
    """Raised when the catalog provider cannot deliver a snapshot"""
    pass


@dataclass
class CatalogSnapshot:
    """Schemes available for one evaluation; ``fetch_failed`` marks a provider error"""
    schemes: List[Scheme] = field(default_factory=list)
    fetch_failed: bool = False


def _ranked(schemes: List[Scheme]) -> List[Scheme]:
    """Priority first, most recent first within equal priority"""
    by_recency = sorted(schemes, key=lambda s: s.created_at or "", reverse=True)
    return sorted(by_recency, key=lambda s: s.priority_rank, reverse=True)


def parse_schemes(rows: List[Dict[str, Any]]) -> List[Scheme]:
    """Validate raw catalog rows, skipping rows that do not fit the schema"""
    schemes = []
    for row in rows:
        try:
            schemes.append(Scheme.model_validate(row))
        except ValidationError as e:
            logger.warning("Skipping malformed scheme row %r: %s", row.get("id"), e.error_count())
    return schemes


class BaseCatalogProvider(ABC):
    """Base class for catalog providers"""

    @abstractmethod
    async def fetch_schemes_with_rules(self) -> List[Scheme]:
        """All active schemes, each with its rule list"""
        pass

    async def fetch_schemes(self) -> List[Scheme]:
        """Active schemes for browsing, ranked by priority then recency"""
        return _ranked(await self.fetch_schemes_with_rules())

    async def fetch_scheme_details(self, scheme_id: str) -> Optional[Scheme]:
        for scheme in await self.fetch_schemes_with_rules():
            if str(scheme.id) == str(scheme_id):
                return scheme
        return None

    async def fetch_categories(self) -> List[Dict[str, str]]:
        labels: Dict[str, str] = {}
        for scheme in await self.fetch_schemes_with_rules():
            for category in scheme.categories:
                labels.setdefault(category, category.replace("_", " ").title())
        return [{"id": cid, "label": label} for cid, label in labels.items()]


class StaticCatalogProvider(BaseCatalogProvider):
    """In-memory catalog, optionally loaded from a JSON file"""

    def __init__(self, schemes: Optional[List[Any]] = None):
        rows = DEFAULT_CATALOG if schemes is None else schemes
        self._schemes: List[Scheme] = []
        for row in rows:
            if isinstance(row, Scheme):
                self._schemes.append(row)
            else:
                self._schemes.extend(parse_schemes([row]))

    @classmethod
    def from_file(cls, path: str) -> "StaticCatalogProvider":
        with open(Path(path), "r", encoding="utf-8") as f:
            data = json.load(f)
        rows = data.get("schemes", []) if isinstance(data, dict) else data
        return cls(rows)

    async def fetch_schemes_with_rules(self) -> List[Scheme]:
        return [s for s in self._schemes if s.is_active]


class SupabaseCatalogProvider(BaseCatalogProvider):
    """
    Catalog stored in Supabase.
    The client is synchronous, so each query runs in a worker thread
    under the catalog timeout.
    """

    SCHEME_LIST_COLUMNS = "id, name, short_description, categories, state_type, is_active, priority_rank, created_at"

    def __init__(self, url: str, anon_key: str, timeout: float = 20.0, client: Any = None):
        self.url = url
        self.anon_key = anon_key
        self.timeout = timeout
        self._client = client

    def _get_client(self):
        if self._client is None:
            from supabase import create_client
            self._client = create_client(
                supabase_url=self.url,
                supabase_key=self.anon_key,
            )
        return self._client

    async def _select(self,
                      table: str,
                      columns: str,
                      refine: Optional[Callable[[Any], Any]] = None) -> List[Dict[str, Any]]:
        """Run one select query; every client or transport error becomes CatalogFetchError"""
        try:
            query = self._get_client().table(table).select(columns)
            if refine is not None:
                query = refine(query)
            response = await asyncio.wait_for(asyncio.to_thread(query.execute), timeout=self.timeout)
        except asyncio.TimeoutError as e:
            raise CatalogFetchError(f"{table}: timed out after {self.timeout}s") from e
        except Exception as e:
            raise CatalogFetchError(f"{table}: {e}") from e

        data = getattr(response, "data", None)
        if not isinstance(data, list):
            raise CatalogFetchError(f"{table}: expected a list of rows")
        return data

    async def fetch_schemes_with_rules(self) -> List[Scheme]:
        rows = await self._select(
            "schemes",
            "*, scheme_eligibility_rules(*)",
            lambda q: q.eq("is_active", True)
        )
        return parse_schemes(rows)

    async def fetch_schemes(self) -> List[Scheme]:
        rows = await self._select(
            "schemes",
            self.SCHEME_LIST_COLUMNS,
            lambda q: q.eq("is_active", True)
                       .order("priority_rank", desc=True)
                       .order("created_at", desc=True)
        )
        return parse_schemes(rows)

    async def fetch_scheme_details(self, scheme_id: str) -> Optional[Scheme]:
        rows = await self._select(
            "schemes",
            "*, scheme_eligibility_rules(*)",
            lambda q: q.eq("id", scheme_id)
        )
        schemes = parse_schemes(rows)
        return schemes[0] if schemes else None

    async def fetch_categories(self) -> List[Dict[str, str]]:
        rows = await self._select("scheme_categories", "*")
        return [
            {"id": str(row.get("id")), "label": str(row.get("label", row.get("id")))}
            for row in rows
        ]


def create_provider_from_settings() -> BaseCatalogProvider:
    """Supabase when configured, else a JSON snapshot, else the seed catalog"""
    from ..config import settings

    if settings.has_supabase():
        return SupabaseCatalogProvider(
            settings.supabase_url,
            settings.supabase_anon_key,
            timeout=settings.catalog_timeout_seconds
        )
    if settings.catalog_file:
        return StaticCatalogProvider.from_file(settings.catalog_file)
    return StaticCatalogProvider()


async def load_catalog(provider: BaseCatalogProvider) -> CatalogSnapshot:
    """Fetch a snapshot; provider errors become an empty, flagged snapshot"""
    try:
        schemes = await provider.fetch_schemes_with_rules()
    except Exception as e:
        logger.error("Catalog fetch failed, evaluating against no schemes: %s", e)
        return CatalogSnapshot(schemes=[], fetch_failed=True)
    return CatalogSnapshot(schemes=schemes)


def search_schemes(schemes: List[Scheme],
                   query: Optional[str] = None,
                   category: Optional[str] = None) -> List[Scheme]:
    """Keyword search over names, descriptions and categories"""
    results = schemes
    if category:
        wanted = category.lower()
        results = [s for s in results if wanted in _lowered(s.categories)]

    terms = [t for t in (query or "").lower().split() if t]
    if not terms:
        return results

    scored = []
    for scheme in results:
        haystack = " ".join([
            scheme.name,
            scheme.short_description,
            scheme.long_description or "",
            scheme.benefits or "",
            " ".join(scheme.categories),
        ]).lower()
        score = sum(1 for term in terms if term in haystack)
        if " ".join(terms) in scheme.name.lower():
            score += len(terms)
        if score:
            scored.append((score, scheme))

    # Stable sort keeps catalog order among equal scores
    scored.sort(key=lambda item: item[0], reverse=True)
    return [scheme for _, scheme in scored]


def _lowered(values: List[str]) -> List[str]:
    return [v.lower() for v in values]


DEFAULT_CATALOG: List[Dict[str, Any]] = [
    {
        "id": "pm_kisan",
        "name": "PM Kisan Samman Nidhi",
        "short_description": "Annual financial assistance of ₹6000 to farmers",
        "benefits": "₹6000 per year in three instalments, paid directly to the bank account",
        "categories": ["agriculture"],
        "state_type": "central",
        "application_mode": "both",
        "priority_rank": 10,
        "official_link": "https://pmkisan.gov.in",
        "rules": [
            {"requires_farmer": True, "max_land_size": 5.0},
        ],
    },
    {
        "id": "pmay",
        "name": "Pradhan Mantri Awas Yojana",
        "short_description": "Affordable housing for poor families",
        "benefits": "Subsidy up to ₹2.5 lakh and low-interest home loans",
        "categories": ["housing"],
        "state_type": "central",
        "application_mode": "both",
        "priority_rank": 9,
        "official_link": "https://pmaymis.gov.in",
        "rules": [
            {"income_max": 300000, "income_type": "family", "bpl_only": True},
        ],
    },
    {
        "id": "mjpjay",
        "name": "Mahatma Jyotirao Phule Jan Arogya Yojana",
        "short_description": "Free health insurance for low-income families in Maharashtra",
        "benefits": "Cashless treatment up to ₹1.5 lakh covering 971 procedures",
        "categories": ["health"],
        "state_type": "state",
        "application_mode": "offline",
        "priority_rank": 7,
        "applicable_states": ["Maharashtra"],
        "official_link": "https://www.jeevandayee.gov.in",
        "rules": [
            {"income_max": 100000, "applicable_states": ["Maharashtra"]},
        ],
    },
    {
        "id": "widow_pension",
        "name": "Widow Pension Scheme",
        "short_description": "Monthly pension for widows",
        "benefits": "₹1000 per month paid directly to the bank account",
        "categories": ["pension", "women_welfare"],
        "state_type": "central",
        "application_mode": "offline",
        "priority_rank": 6,
        "rules": [
            {"widow_only": True, "allowed_genders": ["female"], "income_max": 100000},
        ],
    },
    {
        "id": "disability_pension",
        "name": "Disability Pension Scheme",
        "short_description": "Monthly pension for persons with disabilities",
        "benefits": "₹1000-2000 per month and medical assistance",
        "categories": ["pension"],
        "state_type": "central",
        "application_mode": "offline",
        "priority_rank": 6,
        "rules": [
            {"requires_disability": True, "income_max": 100000},
        ],
    },
    {
        "id": "pmjdy",
        "name": "Pradhan Mantri Jan Dhan Yojana",
        "short_description": "Zero balance bank account",
        "benefits": "Zero balance account, ₹2 lakh accident cover and a RuPay debit card",
        "categories": ["financial"],
        "state_type": "central",
        "application_mode": "offline",
        "priority_rank": 5,
        "official_link": "https://pmjdy.gov.in",
        "rules": [
            {"min_age": 10},
        ],
    },
    {
        "id": "pmsby",
        "name": "Pradhan Mantri Suraksha Bima Yojana",
        "short_description": "Affordable accident insurance",
        "benefits": "₹2 lakh accident cover for a ₹20 yearly premium",
        "categories": ["insurance"],
        "state_type": "central",
        "application_mode": "both",
        "priority_rank": 5,
        "official_link": "https://www.jansuraksha.gov.in",
        "rules": [
            {"min_age": 18, "max_age": 70},
        ],
    },
    {
        "id": "post_matric_sc_st",
        "name": "Post Matric Scholarship for SC/ST Students",
        "short_description": "Scholarship for SC and ST students in higher education",
        "benefits": "Tuition fee waiver and a monthly maintenance allowance",
        "categories": ["education"],
        "state_type": "central",
        "application_mode": "online",
        "priority_rank": 8,
        "official_link": "https://scholarships.gov.in",
        "rules": [
            {
                "allowed_categories": ["sc", "st"],
                "student_only": True,
                "min_age": 16,
                "max_age": 30,
                "income_max": 250000,
            },
        ],
    },
    {
        "id": "ladki_bahin",
        "name": "Mukhyamantri Majhi Ladki Bahin Yojana",
        "short_description": "Monthly financial assistance to women in Maharashtra",
        "benefits": "₹1500 per month paid directly to the bank account",
        "categories": ["women_welfare"],
        "state_type": "state",
        "application_mode": "both",
        "priority_rank": 8,
        "applicable_states": ["Maharashtra"],
        "official_link": "https://ladakibahin.maharashtra.gov.in",
        "rules": [
            {
                "allowed_genders": ["female"],
                "min_age": 21,
                "max_age": 65,
                "income_max": 250000,
                "income_type": "family",
                "applicable_states": ["Maharashtra"],
            },
        ],
    },
    {
        "id": "old_age_pension",
        "name": "Indira Gandhi National Old Age Pension Scheme",
        "short_description": "Monthly pension for senior citizens",
        "benefits": "₹1000-1500 per month paid directly to the bank account",
        "categories": ["pension"],
        "state_type": "central",
        "application_mode": "offline",
        "priority_rank": 6,
        "rules": [
            {"min_age": 60, "bpl_only": True},
            {"min_age": 65, "income_max": 100000},
        ],
    },
    {
        "id": "minority_scholarship",
        "name": "Pre Matric Scholarship for Minorities",
        "short_description": "Scholarship for students from minority communities",
        "benefits": "Admission fee and monthly maintenance allowance",
        "categories": ["education"],
        "state_type": "central",
        "application_mode": "online",
        "priority_rank": 4,
        "official_link": "https://scholarships.gov.in",
        "rules": [
            {"minority_only": True, "student_only": True, "income_max": 100000},
        ],
    },
    {
        "id": "ayushman_bharat",
        "name": "Ayushman Bharat PM-JAY",
        "short_description": "Health cover of ₹5 lakh per family per year",
        "benefits": "Cashless hospitalisation at empanelled hospitals",
        "categories": ["health"],
        "state_type": "central",
        "application_mode": "offline",
        "priority_rank": 9,
        "official_link": "https://pmjay.gov.in",
        "rules": [
            {"bpl_only": True, "excluded_states": ["Delhi", "Odisha"]},
            {"allowed_occupations": ["labour", "labourer", "construction", "street vendor"], "excluded_states": ["Delhi", "Odisha"]},
        ],
    },
    {
        "id": "aadhaar_enrolment",
        "name": "Aadhaar Enrolment",
        "short_description": "Free enrolment for a 12-digit Aadhaar identity number",
        "benefits": "Free Aadhaar card for residents of any age",
        "categories": ["citizen_services"],
        "state_type": "central",
        "application_mode": "online",
        "priority_rank": 1,
        "helpline_number": "1947",
        "official_link": "https://uidai.gov.in",
        "rules": [],
    },
]
