"""
RecommendationService Tests

End to end over in-memory stores and the hash provider: degradation, result
and profile caching, invalidation, warming, and the fallback path.

Run:
----
    pytest tests/test_service.py -v
"""

import pytest

from cinerank import ConfigurationError, RecommendationConfig, RecommendationOptions, RecommendationService
from cinerank.errors import UpstreamUnavailable
from cinerank.stores import InMemoryCatalog

from .conftest import FIXED_NOW, TEST_DIMENSIONS, make_row

FAILURE_CONFIDENCE = 0.3
FALLBACK_TTL = 300


class FailingHistoryStore:
    def get_history(self, user_id):
        raise UpstreamUnavailable("history_store", "timeout")


class MisconfiguredProvider:
    dimensions = TEST_DIMENSIONS

    def embed(self, text, kind="item"):
        raise ConfigurationError("OPENAI_API_KEY is not set")


@pytest.fixture
def service(provider, history_store, catalog, embedding_store, cache):
    return RecommendationService(
        provider=provider,
        history_store=history_store,
        catalog=catalog,
        trending=catalog,
        embedding_store=embedding_store,
        cache=cache,
    )


class TestDegradation:
    def test_no_history_and_empty_pool(self, provider, history_store, cache):
        service = RecommendationService(provider, history_store, InMemoryCatalog([]), cache=cache)
        result = service.get_recommendations("u0", RecommendationOptions(limit=10))
        assert result.items == []
        assert result.insights.degraded is True
        assert "empty_candidate_pool" in result.insights.degradation_reasons

    def test_history_failure_still_recommends(self, provider, catalog, cache):
        service = RecommendationService(provider, FailingHistoryStore(), catalog, trending=catalog, cache=cache)
        result = service.get_recommendations("u1", RecommendationOptions(limit=5))
        assert result.items
        assert result.insights.degraded
        assert "history_unavailable" in result.insights.degradation_reasons

    def test_pipeline_error_falls_back_to_curated(self, service, monkeypatch):
        def boom(*args, **kwargs):
            raise RuntimeError("pool exploded")

        monkeypatch.setattr(service.candidate_source, "get_candidates", boom)
        result = service.get_recommendations("u1", RecommendationOptions(limit=10))
        assert result.insights.degraded
        assert result.insights.degradation_reasons == ["pipeline_error"]
        assert len(result.items) == 10
        assert all(s.failed and s.confidence_score == pytest.approx(FAILURE_CONFIDENCE) for s in result.items)
        assert all(s.match_categories == ["basic"] for s in result.items)

    def test_degraded_result_cached_briefly(self, service, clock, monkeypatch):
        def boom(*args, **kwargs):
            raise RuntimeError("pool exploded")

        monkeypatch.setattr(service.candidate_source, "get_candidates", boom)
        service.get_recommendations("u1")
        assert service.get_recommendations("u1").insights.cached
        clock.advance(FALLBACK_TTL + 1)
        assert not service.get_recommendations("u1").insights.cached

    def test_fallback_skips_watched_and_excluded(self, service, history_store, monkeypatch):
        def boom(*args, **kwargs):
            raise RuntimeError("pool exploded")

        monkeypatch.setattr(service.candidate_source, "get_candidates", boom)
        history_store.add("u1", make_row("action-4", genres=("Action",), rating=5, watched_days_ago=1))
        result = service.get_recommendations("u1", RecommendationOptions(limit=10, exclude_ids=["comedy-4"]))
        ids = {s.id for s in result.items}
        assert result.insights.degradation_reasons == ["pipeline_error"]
        assert ids
        assert "action-4" not in ids
        assert "comedy-4" not in ids

    def test_configuration_error_propagates(self, history_store, catalog, cache):
        service = RecommendationService(MisconfiguredProvider(), history_store, catalog, cache=cache)
        with pytest.raises(ConfigurationError):
            service.get_recommendations("u1")


class TestRecommendations:
    def test_diverse_ranked_unique(self, service):
        result = service.get_recommendations("u1", RecommendationOptions(limit=10, diversity=0.5))
        ids = [s.id for s in result.items]
        assert 0 < len(ids) <= 10
        assert len(ids) == len(set(ids))
        assert len({s.genres[0] for s in result.items}) >= 4
        confidences = [s.confidence_score for s in result.items]
        assert confidences == sorted(confidences, reverse=True)
        assert all(0.0 <= c <= 1.0 for c in confidences)
        assert result.insights.candidate_count > 0
        assert not result.insights.degraded

    def test_watched_and_excluded_items_omitted(self, service, history_store):
        history_store.add("u1", make_row("action-4", genres=("Action",), rating=5, watched_days_ago=1))
        result = service.get_recommendations(
            "u1", RecommendationOptions(limit=20, diversity=0.0, exclude_ids=["comedy-4"])
        )
        ids = {s.id for s in result.items}
        assert "action-4" not in ids
        assert "comedy-4" not in ids

    def test_weights_version_reported(self, provider, history_store, catalog, cache):
        config = RecommendationConfig(version="v-test")
        service = RecommendationService(provider, history_store, catalog, config=config, cache=cache)
        result = service.get_recommendations("u1")
        assert result.insights.weights_version == "v-test"

    def test_zero_limit(self, service):
        assert service.get_recommendations("u1", RecommendationOptions(limit=0)).items == []


class TestCaching:
    def test_second_call_served_from_cache(self, service):
        first = service.get_recommendations("u1")
        second = service.get_recommendations("u1")
        assert not first.insights.cached
        assert second.insights.cached
        assert [s.id for s in second.items] == [s.id for s in first.items]

    def test_different_options_not_shared(self, service):
        service.get_recommendations("u1", RecommendationOptions(limit=5))
        assert not service.get_recommendations("u1", RecommendationOptions(limit=6)).insights.cached

    def test_use_cache_false_and_fixed_now_bypass(self, service):
        service.get_recommendations("u1")
        assert not service.get_recommendations("u1", RecommendationOptions(use_cache=False)).insights.cached
        service.get_recommendations("u2", now=FIXED_NOW)
        assert not service.get_recommendations("u2", now=FIXED_NOW).insights.cached

    def test_invalidate_user(self, service):
        service.get_recommendations("u1")
        service.get_recommendations("u2")
        removed = service.invalidate_user_cache("u1")
        # result + profile
        assert removed == 2
        assert not service.get_recommendations("u1").insights.cached
        assert service.get_recommendations("u2").insights.cached

    def test_warm_then_hit(self, service):
        futures = service.warm_cache_for_user("u1", [RecommendationOptions(limit=5)])
        assert [f.result(timeout=10) for f in futures] == [True]
        assert service.get_recommendations("u1", RecommendationOptions(limit=5)).insights.cached

    def test_warmed_degraded_result_cached_briefly(self, provider, history_store, cache, clock):
        service = RecommendationService(provider, history_store, InMemoryCatalog([]), cache=cache)
        options = RecommendationOptions(limit=5)
        futures = service.warm_cache_for_user("u0", [options])
        assert [f.result(timeout=10) for f in futures] == [True]
        cached = service.get_recommendations("u0", options)
        assert cached.insights.cached
        assert cached.insights.degraded
        clock.advance(FALLBACK_TTL + 1)
        assert options.cache_key("u0") not in cache

    def test_stats_count_requests(self, service):
        service.get_recommendations("u1")
        service.get_recommendations("u1")
        stats = service.cache_stats()
        assert stats.hits >= 1
        assert stats.entry_count >= 1


class TestBehaviorProfile:
    def test_unknown_user_gets_empty_profile(self, service):
        profile = service.get_behavior_profile("nobody")
        assert profile.is_empty
        assert profile.rating_patterns.total_ratings == 0

    def test_profile_cached_until_invalidated(self, service, history_store):
        history_store.add("u1", make_row("a", rating=5))
        assert service.get_behavior_profile("u1").history_size == 1
        history_store.add("u1", make_row("b", rating=4))
        assert service.get_behavior_profile("u1").history_size == 1
        service.invalidate_user_cache("u1")
        assert service.get_behavior_profile("u1").history_size == 2
