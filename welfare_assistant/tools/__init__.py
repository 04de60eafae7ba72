"""
Tools Package
Contains the eligibility engine and the scheme catalog providers
"""
from .eligibility import (
    EligibilityRule,
    Scheme,
    SchemeCheck,
    check_rule,
    check_scheme,
    rule_matches,
    is_eligible,
    evaluate
)
from .catalog import (
    BaseCatalogProvider,
    StaticCatalogProvider,
    SupabaseCatalogProvider,
    CatalogFetchError,
    CatalogSnapshot,
    create_provider_from_settings,
    load_catalog,
    search_schemes
)

__all__ = [
    "EligibilityRule",
    "Scheme",
    "SchemeCheck",
    "check_rule",
    "check_scheme",
    "rule_matches",
    "is_eligible",
    "evaluate",
    "BaseCatalogProvider",
    "StaticCatalogProvider",
    "SupabaseCatalogProvider",
    "CatalogFetchError",
    "CatalogSnapshot",
    "create_provider_from_settings",
    "load_catalog",
    "search_schemes"
]
