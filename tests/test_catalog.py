"""
Tests for the catalog providers and scheme search
"""
import json
import time
from unittest.mock import MagicMock

import pytest

from welfare_assistant.config import settings
from welfare_assistant.tools import (
    BaseCatalogProvider,
    CatalogFetchError,
    StaticCatalogProvider,
    SupabaseCatalogProvider,
    create_provider_from_settings,
    load_catalog,
    search_schemes,
)


class FailingProvider(BaseCatalogProvider):
    async def fetch_schemes_with_rules(self):
        raise CatalogFetchError("HTTP 503")


class TestStaticProvider:
    async def test_seed_catalog_loads(self):
        schemes = await StaticCatalogProvider().fetch_schemes_with_rules()
        ids = [s.id for s in schemes]
        assert "pm_kisan" in ids
        assert "aadhaar_enrolment" in ids

    async def test_inactive_schemes_hidden(self):
        provider = StaticCatalogProvider([
            {"id": "live", "name": "Live"},
            {"id": "retired", "name": "Retired", "is_active": False},
        ])
        assert [s.id for s in await provider.fetch_schemes_with_rules()] == ["live"]

    async def test_malformed_rows_skipped(self):
        provider = StaticCatalogProvider([
            {"id": "ok", "name": "Fine"},
            {"name": "Missing id"},
            {"id": "bad_mode", "name": "Bad", "application_mode": "fax"},
        ])
        assert [s.id for s in await provider.fetch_schemes_with_rules()] == ["ok"]

    async def test_browse_order_is_priority_then_recency(self):
        provider = StaticCatalogProvider([
            {"id": "low", "name": "Low", "priority_rank": 1, "created_at": "2024-05-01"},
            {"id": "old", "name": "Old", "priority_rank": 5, "created_at": "2023-01-01"},
            {"id": "new", "name": "New", "priority_rank": 5, "created_at": "2024-01-01"},
        ])
        assert [s.id for s in await provider.fetch_schemes()] == ["new", "old", "low"]

    async def test_details_and_categories(self):
        provider = StaticCatalogProvider()
        details = await provider.fetch_scheme_details("old_age_pension")
        assert details is not None
        assert len(details.rules) == 2
        assert await provider.fetch_scheme_details("missing") is None

        categories = await provider.fetch_categories()
        assert {"id": "women_welfare", "label": "Women Welfare"} in categories

    async def test_from_file(self, tmp_path):
        path = tmp_path / "schemes.json"
        path.write_text(json.dumps({"schemes": [
            {"id": "file_scheme", "name": "From File", "rules": [{"min_age": 18}]}
        ]}), encoding="utf-8")

        schemes = await StaticCatalogProvider.from_file(str(path)).fetch_schemes_with_rules()
        assert schemes[0].id == "file_scheme"
        assert schemes[0].rules[0].min_age == 18


class TestLoadCatalog:
    async def test_failure_becomes_flagged_empty_snapshot(self):
        snapshot = await load_catalog(FailingProvider())
        assert snapshot.schemes == []
        assert snapshot.fetch_failed is True

    async def test_success(self):
        snapshot = await load_catalog(StaticCatalogProvider([{"id": "a", "name": "A"}]))
        assert len(snapshot.schemes) == 1
        assert snapshot.fetch_failed is False


class FakeQuery:
    """Records the builder calls made on a Supabase table query"""

    def __init__(self, rows=None, delay=0.0, error=None):
        self.rows = rows or []
        self.delay = delay
        self.error = error
        self.calls = []

    def select(self, columns):
        self.calls.append(("select", columns))
        return self

    def eq(self, column, value):
        self.calls.append(("eq", column, value))
        return self

    def order(self, column, desc=False):
        self.calls.append(("order", column, desc))
        return self

    def execute(self):
        if self.delay:
            time.sleep(self.delay)
        if self.error:
            raise self.error
        return MagicMock(data=self.rows)


def supabase_provider(query, timeout=20.0):
    client = MagicMock()
    client.table.return_value = query
    return SupabaseCatalogProvider("https://example.supabase.co", "anon", timeout=timeout, client=client), client


class TestSupabaseProvider:
    async def test_nested_rules_parsed(self):
        query = FakeQuery(rows=[{
            "id": "uuid-1",
            "name": "Remote Scheme",
            "scheme_eligibility_rules": [{"min_age": 60, "bpl_only": None}],
        }])
        provider, client = supabase_provider(query)
        schemes = await provider.fetch_schemes_with_rules()

        client.table.assert_called_once_with("schemes")
        assert ("select", "*, scheme_eligibility_rules(*)") in query.calls
        assert ("eq", "is_active", True) in query.calls
        assert schemes[0].rules[0].min_age == 60
        assert schemes[0].rules[0].bpl_only is False

    async def test_browse_query_orders_by_priority_then_recency(self):
        query = FakeQuery(rows=[{"id": "a", "name": "A"}])
        provider, _ = supabase_provider(query)
        await provider.fetch_schemes()

        orders = [call for call in query.calls if call[0] == "order"]
        assert orders == [("order", "priority_rank", True), ("order", "created_at", True)]

    async def test_details_and_categories(self):
        query = FakeQuery(rows=[{"id": "women_welfare", "label": "Women Welfare"}])
        provider, client = supabase_provider(query)
        assert await provider.fetch_categories() == [{"id": "women_welfare", "label": "Women Welfare"}]
        client.table.assert_called_with("scheme_categories")

        query.rows = []
        assert await provider.fetch_scheme_details("missing") is None
        assert ("eq", "id", "missing") in query.calls

    async def test_timeout_becomes_fetch_error(self):
        provider, _ = supabase_provider(FakeQuery(delay=0.5), timeout=0.05)
        with pytest.raises(CatalogFetchError, match="timed out"):
            await provider.fetch_schemes()

    async def test_client_error_becomes_fetch_error(self):
        provider, _ = supabase_provider(FakeQuery(error=ConnectionError("refused")))
        with pytest.raises(CatalogFetchError, match="refused"):
            await provider.fetch_schemes_with_rules()

    async def test_timeout_during_evaluation_is_flagged_snapshot(self):
        provider, _ = supabase_provider(FakeQuery(delay=0.5), timeout=0.05)
        snapshot = await load_catalog(provider)
        assert snapshot.schemes == []
        assert snapshot.fetch_failed is True

    async def test_non_list_payload_rejected(self):
        query = FakeQuery()
        query.execute = lambda: MagicMock(data={"message": "oops"})
        provider, _ = supabase_provider(query)
        with pytest.raises(CatalogFetchError):
            await provider.fetch_schemes()

    def test_factory_prefers_supabase(self, monkeypatch):
        monkeypatch.setattr(settings, "supabase_url", "https://example.supabase.co")
        monkeypatch.setattr(settings, "supabase_anon_key", "anon")
        assert isinstance(create_provider_from_settings(), SupabaseCatalogProvider)

    def test_factory_falls_back_to_seed_catalog(self, monkeypatch):
        monkeypatch.setattr(settings, "supabase_url", None)
        monkeypatch.setattr(settings, "catalog_file", None)
        assert isinstance(create_provider_from_settings(), StaticCatalogProvider)


class TestSearch:
    @pytest.fixture
    async def schemes(self):
        return await StaticCatalogProvider().fetch_schemes_with_rules()

    async def test_keyword_search(self, schemes):
        results = search_schemes(schemes, query="pension")
        ids = [s.id for s in results]
        assert "widow_pension" in ids
        assert "pm_kisan" not in ids

    async def test_category_filter(self, schemes):
        results = search_schemes(schemes, category="Education")
        assert {s.id for s in results} == {"post_matric_sc_st", "minority_scholarship"}

    async def test_empty_query_returns_everything(self, schemes):
        assert search_schemes(schemes) == schemes
