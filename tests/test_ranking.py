"""
Ranking Tests

Boosts as pure functions, the clamped fold, reasons and categories, the
failure-isolating scoring pipeline, and diversity selection.

Run:
----
    pytest tests/test_ranking.py -v
"""

import itertools

import pytest

from cinerank.errors import ConfigurationError, UpstreamUnavailable
from cinerank.models import DEFAULT_CONFIG, RecommendationConfig, ScoredCandidate
from cinerank.models.context import EmbeddingVector, UserContextVector
from cinerank.models.profile import TemporalAffinity, TimeBucketAffinity
from cinerank.stages.ranking import (
    DEFAULT_REASON,
    FAILURE_REASON,
    BoostContext,
    ScoringCandidate,
    ScoringPipeline,
    apply_boosts,
    build_reason,
    genre_diversity_score,
    match_categories,
    resolve_boost_context,
    select_diverse,
    unconditional_slots,
)
from cinerank.stages.ranking.boosts import (
    genre_affinity_boost,
    high_rating_boost,
    preference_insights_boost,
    sentiment_boost,
    storyline_boost,
    talent_boost,
    temporal_affinity_boost,
)
from cinerank.stages.profiling import build_behavior_profile
from cinerank.stores import InMemoryEmbeddingStore

from .conftest import FIXED_NOW, TEST_DIMENSIONS, make_item, make_row

FAILURE_CONFIDENCE = 0.3
HIGH_RATING_THRESHOLD = 7.5


def candidate(item, similarity=0.5, vector=None) -> ScoringCandidate:
    return ScoringCandidate(item=item, vector=vector, similarity=similarity)


def scored(item_id, confidence, genres=("Drama",)) -> ScoredCandidate:
    return ScoredCandidate(candidate=make_item(item_id, genres=genres), confidence_score=confidence)


def context_vector(vector) -> UserContextVector:
    return UserContextVector(embedding=EmbeddingVector(vector=list(vector), kind="context"))


# -----------------------------------------------------------------------------
# Boosts
# -----------------------------------------------------------------------------


class TestBoosts:
    def test_genre_affinity_mean_scaled(self):
        ctx = BoostContext(genre_affinity={"action": 1.0, "comedy": 0.5})
        item = make_item("a", genres=("Action", "Comedy"))
        assert genre_affinity_boost(candidate(item), ctx) == pytest.approx(0.15)

    def test_genre_affinity_capped_at_max(self):
        ctx = BoostContext(genre_affinity={"action": 1.0})
        assert genre_affinity_boost(candidate(make_item("a", genres=("Action",))), ctx) == pytest.approx(0.20)

    def test_temporal_hour_and_day_independent(self):
        affinity = TemporalAffinity(
            hourly={20: TimeBucketAffinity(preferred_genres=["Action"], confidence=0.5)},
            daily={5: TimeBucketAffinity(preferred_genres=["Action"], confidence=1.0)},
        )
        ctx = BoostContext(hour=20, weekday=5, temporal_affinity=affinity)
        item = make_item("a", genres=("Action",))
        assert temporal_affinity_boost(candidate(item), ctx) == pytest.approx(0.15)
        other_hour = BoostContext(hour=9, weekday=5, temporal_affinity=affinity)
        assert temporal_affinity_boost(candidate(item), other_hour) == pytest.approx(0.10)

    def test_talent_director_flat_plus_cast(self):
        ctx = BoostContext(
            preferred_directors=frozenset({"michael mann", "kathryn bigelow"}),
            preferred_cast=frozenset({"al pacino", "robert de niro"}),
        )
        item = make_item(
            "heat",
            directors=["Michael Mann", "Kathryn Bigelow"],
            cast=["Al Pacino", "Robert De Niro", "Val Kilmer"],
        )
        # One flat director bonus however many match, plus two cast matches
        assert talent_boost(candidate(item), ctx) == pytest.approx(0.10 + 2 * 0.05)

    def test_talent_capped(self):
        config = RecommendationConfig(cast_boost_per_match=0.2)
        ctx = BoostContext(
            config=config,
            preferred_directors=frozenset({"mann"}),
            preferred_cast=frozenset({"a", "b"}),
        )
        item = make_item("x", directors=["Mann"], cast=["A", "B"])
        assert talent_boost(candidate(item), ctx) == pytest.approx(0.30)

    def test_storyline_scaled_and_non_negative(self):
        ctx = BoostContext(storyline_vector=[1.0, 0.0])
        item = make_item("a")
        assert storyline_boost(candidate(item, vector=[1.0, 0.0]), ctx) == pytest.approx(0.2)
        assert storyline_boost(candidate(item, vector=[-1.0, 0.0]), ctx) == 0.0
        assert storyline_boost(candidate(item, vector=None), ctx) == 0.0

    def test_sentiment_signed(self):
        generous = BoostContext(sentiment_bias=1.0)
        assert sentiment_boost(candidate(make_item("a", critic_sentiment=1.0)), generous) == pytest.approx(0.05)
        assert sentiment_boost(candidate(make_item("b", critic_sentiment=-1.0)), generous) == pytest.approx(-0.05)
        neutral = BoostContext(sentiment_bias=0.0)
        assert sentiment_boost(candidate(make_item("c", critic_sentiment=1.0)), neutral) == 0.0

    def test_preference_insights_flat(self):
        ctx = BoostContext(top_genres=frozenset({"action"}))
        assert preference_insights_boost(candidate(make_item("a", genres=("Action",))), ctx) == pytest.approx(0.05)
        assert preference_insights_boost(candidate(make_item("b", genres=("Drama",))), ctx) == 0.0

    def test_high_rating_above_threshold_only(self):
        ctx = BoostContext()
        assert high_rating_boost(candidate(make_item("a", rating=9.0)), ctx) == pytest.approx(0.09)
        assert high_rating_boost(candidate(make_item("b", rating=HIGH_RATING_THRESHOLD)), ctx) == 0.0
        assert high_rating_boost(candidate(make_item("c", rating=None)), ctx) == 0.0


class TestBoostFold:
    def test_default_config_shared_between_contexts(self):
        first, second = BoostContext(), BoostContext(hour=9)
        assert first.config is DEFAULT_CONFIG
        assert second.config is DEFAULT_CONFIG

    def test_high_rated_candidate_scores_strictly_higher(self):
        ctx = BoostContext(config=RecommendationConfig(high_rating_threshold=HIGH_RATING_THRESHOLD))
        high = make_item("high", rating=9.0)
        low = make_item("low", rating=6.0)
        high_score, _ = apply_boosts(0.5, candidate(high), ctx)
        low_score, _ = apply_boosts(0.5, candidate(low), ctx)
        assert high_score > low_score

    def test_disabled_boost_contributes_nothing(self):
        ctx = BoostContext(config=RecommendationConfig(high_rating_enabled=False))
        score, factors = apply_boosts(0.5, candidate(make_item("a", rating=9.5)), ctx)
        assert score == pytest.approx(0.5)
        assert "high_rating" not in factors

    def test_popularity_ceiling(self):
        ctx = BoostContext()
        score, factors = apply_boosts(0.95, candidate(make_item("a", rating=None, popularity=0.95)), ctx)
        assert score == pytest.approx(0.85)
        assert factors["popularity_ceiling"] == pytest.approx(-0.10)
        score, _ = apply_boosts(0.95, candidate(make_item("b", rating=None, popularity=0.5)), ctx)
        assert score == pytest.approx(0.95)

    def test_confidence_always_in_unit_interval(self):
        heavy = RecommendationConfig(
            genre_affinity_max=1.0,
            temporal_max=1.0,
            talent_max=1.0,
            storyline_weight=1.0,
            sentiment_max=1.0,
            preference_insights_boost=1.0,
            high_rating_weight=1.0,
        )
        affinity = TemporalAffinity(
            hourly={0: TimeBucketAffinity(preferred_genres=["Action"], confidence=1.0)},
            daily={0: TimeBucketAffinity(preferred_genres=["Action"], confidence=1.0)},
        )
        contexts = [
            BoostContext(),
            BoostContext(
                config=heavy,
                genre_affinity={"action": 1.0},
                temporal_affinity=affinity,
                preferred_directors=frozenset({"d"}),
                preferred_cast=frozenset({"c"}),
                storyline_vector=[1.0, 0.0],
                sentiment_bias=1.0,
                top_genres=frozenset({"action"}),
            ),
            BoostContext(config=heavy, sentiment_bias=-1.0),
        ]
        items = [
            make_item("plain"),
            make_item("loaded", genres=("Action",), rating=10.0, directors=["D"], cast=["C"], critic_sentiment=1.0),
            make_item("panned", critic_sentiment=1.0, popularity=0.99),
        ]
        for base, ctx, item in itertools.product([-0.5, 0.0, 0.3, 0.99, 1.0, 1.7], contexts, items):
            score, _ = apply_boosts(base, candidate(item, vector=[1.0, 0.0]), ctx)
            assert 0.0 <= score <= 1.0


class TestReasonsAndCategories:
    def test_reason_from_largest_factors(self):
        ctx = BoostContext(genre_affinity={"action": 1.0})
        item = make_item("a", genres=("Action",))
        reason = build_reason(candidate(item, similarity=0.85), {"similarity": 0.85, "genre_affinity": 0.15}, ctx)
        assert reason == "Perfect match for your preferences • Matches your Action preferences"

    def test_reason_default_when_nothing_notable(self):
        reason = build_reason(candidate(make_item("a"), similarity=0.1), {"similarity": 0.1}, BoostContext())
        assert reason == DEFAULT_REASON

    def test_categories(self):
        ctx = BoostContext(request_genres=frozenset({"action"}), mood="tense")
        item = make_item("a", genres=("Action",), rating=8.5, plot="A tense standoff", provenance=["trending"])
        categories = match_categories(candidate(item, similarity=0.75), {"talent": 0.1}, ctx)
        assert categories == ["semantic-match", "genre-match", "high-quality", "mood-match", "talent-match", "trending"]

    def test_general_when_nothing_matches(self):
        item = make_item("a", rating=5.0)
        assert match_categories(candidate(item, similarity=0.2), {}, BoostContext()) == ["general"]


# -----------------------------------------------------------------------------
# Boost prerequisites
# -----------------------------------------------------------------------------


class TestResolveBoostContext:
    def test_prerequisites_from_history(self):
        rows = [
            make_row("a", genres=("Crime",), rating=5, directors=["Michael Mann"], cast=["Al Pacino"], watched_days_ago=0),
            make_row("b", genres=("Crime",), rating=4, cast=["Al Pacino"], watched_days_ago=2),
            make_row("c", genres=("Comedy",), rating=2, directors=["Someone"], watched_days_ago=3),
        ]
        profile = build_behavior_profile("u1", rows, now=FIXED_NOW)
        lookups = []

        def lookup(row):
            lookups.append(row.item_id)
            return [1.0, 0.0]

        ctx = resolve_boost_context(profile, rows, now=FIXED_NOW, vector_lookup=lookup, request_genres=["Crime"])
        assert ctx.preferred_directors == frozenset({"michael mann"})
        assert ctx.preferred_cast == frozenset({"al pacino"})
        assert sorted(lookups) == ["a", "b"]
        assert ctx.storyline_vector == pytest.approx([1.0, 0.0])
        assert ctx.sentiment_bias > 0
        assert "crime" in ctx.top_genres
        assert ctx.request_genres == frozenset({"crime"})
        assert (ctx.hour, ctx.weekday) == (20, 5)

    def test_lookup_failure_drops_storyline(self):
        rows = [make_row("a", rating=5)]
        profile = build_behavior_profile("u1", rows, now=FIXED_NOW)

        def lookup(row):
            raise UpstreamUnavailable("embedding_store")

        ctx = resolve_boost_context(profile, rows, now=FIXED_NOW, vector_lookup=lookup)
        assert ctx.storyline_vector is None

    def test_empty_history(self):
        ctx = resolve_boost_context(build_behavior_profile("u0", []), [], now=FIXED_NOW)
        assert ctx.sentiment_bias == 0.0
        assert ctx.genre_affinity == {}
        assert ctx.preferred_directors == frozenset()


# -----------------------------------------------------------------------------
# Scoring pipeline
# -----------------------------------------------------------------------------


class FlakyStore(InMemoryEmbeddingStore):
    """Fails reads for the given ids and, optionally, every write."""

    def __init__(self, failing_ids=(), fail_writes=False):
        super().__init__()
        self.failing_ids = set(failing_ids)
        self.fail_writes = fail_writes

    def get_embedding(self, item_id):
        if item_id in self.failing_ids:
            raise UpstreamUnavailable("embedding_store", f"read {item_id}")
        return super().get_embedding(item_id)

    def save_embedding(self, item_id, vector):
        if self.fail_writes:
            raise UpstreamUnavailable("embedding_store", "read-only")
        super().save_embedding(item_id, vector)


class MisconfiguredProvider:
    dimensions = TEST_DIMENSIONS

    def embed(self, text, kind="item"):
        raise ConfigurationError("no API key")


class FallbackProvider:
    dimensions = 2

    def embed(self, text, kind="item"):
        return EmbeddingVector(vector=[1.0, 0.0], kind=kind, fallback=True)


class TestScoringPipeline:
    def test_failed_candidate_isolated(self, provider):
        items = [make_item("good"), make_item("bad"), make_item("also-good")]
        pipeline = ScoringPipeline(provider, FlakyStore(failing_ids={"bad"}))
        result = pipeline.score(items, context_vector(provider.embed("ctx").vector), BoostContext())
        assert [s.id for s in result.scored] == ["good", "bad", "also-good"]
        bad = result.scored[1]
        assert bad.failed
        assert bad.confidence_score == pytest.approx(FAILURE_CONFIDENCE)
        assert bad.match_categories == ["basic"]
        assert bad.reason == FAILURE_REASON
        assert result.failed_count == 1
        assert result.failures[0].item_id == "bad"
        assert not result.scored[0].failed and not result.scored[2].failed

    def test_configuration_error_is_not_absorbed(self):
        pipeline = ScoringPipeline(MisconfiguredProvider())
        items = [make_item(str(i)) for i in range(4)]
        with pytest.raises(ConfigurationError):
            pipeline.score(items, context_vector([1.0] * TEST_DIMENSIONS), BoostContext())

    def test_generated_embeddings_are_persisted(self, provider, embedding_store):
        pipeline = ScoringPipeline(provider, embedding_store)
        items = [make_item("a"), make_item("b", embedding_id="emb-b")]
        pipeline.score(items, context_vector(provider.embed("ctx").vector), BoostContext())
        assert embedding_store.get_embedding("a") is not None
        assert embedding_store.get_embedding("emb-b") is not None

    def test_fallback_embeddings_not_persisted(self, embedding_store):
        pipeline = ScoringPipeline(FallbackProvider(), embedding_store)
        pipeline.score([make_item("a")], context_vector([1.0, 0.0]), BoostContext())
        assert len(embedding_store) == 0

    def test_save_failure_does_not_fail_candidate(self, provider):
        pipeline = ScoringPipeline(provider, FlakyStore(fail_writes=True))
        result = pipeline.score([make_item("a")], context_vector(provider.embed("ctx").vector), BoostContext())
        assert result.failed_count == 0
        assert not result.scored[0].failed

    def test_stored_vector_drives_similarity(self, provider):
        vector = provider.embed("ctx").vector
        store = InMemoryEmbeddingStore({"match": vector})
        pipeline = ScoringPipeline(provider, store)
        result = pipeline.score([make_item("match", rating=None)], context_vector(vector), BoostContext())
        match = result.scored[0]
        assert match.semantic_similarity == pytest.approx(1.0)
        assert "semantic-match" in match.match_categories

    def test_confidences_bounded(self, provider, catalog_items):
        ctx = BoostContext(genre_affinity={"action": 1.0}, top_genres=frozenset({"action"}))
        result = ScoringPipeline(provider).score(catalog_items, context_vector(provider.embed("ctx").vector), ctx)
        assert len(result.scored) == len(catalog_items)
        assert all(0.0 <= s.confidence_score <= 1.0 for s in result.scored)

    def test_empty_batch(self, provider):
        result = ScoringPipeline(provider).score([], context_vector([1.0]), BoostContext())
        assert result.scored == []


# -----------------------------------------------------------------------------
# Diversity
# -----------------------------------------------------------------------------


class TestDiversity:
    @pytest.mark.parametrize("n,d,expected", [(10, 0.0, 10), (10, 0.3, 7), (10, 0.5, 5), (10, 0.7, 3), (10, 1.0, 0)])
    def test_unconditional_slots(self, n, d, expected):
        assert unconditional_slots(n, d) == expected

    def test_no_duplicate_ids(self):
        pool = [scored("a", 0.9), scored("a", 0.8), scored("b", 0.7, genres=("Comedy",))]
        selected = select_diverse(pool, 3, 0.0)
        assert [s.id for s in selected] == ["a", "b"]

    def test_zero_diversity_is_top_n(self):
        pool = [scored(f"i{i}", i / 10) for i in range(10)]
        selected = select_diverse(pool, 4, 0.0)
        assert [s.id for s in selected] == ["i9", "i8", "i7", "i6"]

    def test_full_diversity_prefers_novel_genres(self):
        pool = [
            scored("a1", 0.9, genres=("Action",)),
            scored("a2", 0.8, genres=("Action",)),
            scored("c1", 0.5, genres=("Comedy",)),
        ]
        selected = select_diverse(pool, 2, 1.0)
        assert [s.id for s in selected] == ["a1", "c1"]

    def test_never_pads(self):
        pool = [scored(f"a{i}", 0.9 - i / 100, genres=("Action",)) for i in range(5)]
        selected = select_diverse(pool, 5, 1.0)
        assert [s.id for s in selected] == ["a0"]

    def test_twenty_five_candidates_five_genres(self):
        genres = ["Action", "Comedy", "Drama", "Horror", "Sci-Fi"]
        # Every Action item outranks every Comedy item, and so on
        pool = [
            scored(f"{genre}-{i}", 0.95 - g * 0.1 - i * 0.01, genres=(genre,))
            for g, genre in enumerate(genres)
            for i in range(5)
        ]
        selected = select_diverse(pool, 10, 0.5)
        assert len(selected) <= 10
        assert len({s.genres[0] for s in selected}) >= 4
        assert [s.id for s in selected[:5]] == [f"Action-{i}" for i in range(5)]

    def test_genre_diversity_score(self):
        items = [scored("a", 0.9, genres=("Action",)), scored("b", 0.8, genres=("Action", "Comedy"))]
        assert genre_diversity_score(items) == pytest.approx(1.0)
        assert genre_diversity_score([]) == 0.0

    def test_genreless_candidates_share_unknown_genre(self):
        pool = [scored(f"u{i}", 0.9 - i / 10, genres=()) for i in range(3)]
        selected = select_diverse(pool, 3, 1.0)
        assert [s.id for s in selected] == ["u0"]

    def test_genreless_candidate_admitted_beside_genred(self):
        pool = [
            scored("a1", 0.9, genres=("Action",)),
            scored("a2", 0.8, genres=("Action",)),
            scored("u1", 0.7, genres=()),
        ]
        selected = select_diverse(pool, 3, 1.0)
        assert [s.id for s in selected] == ["a1", "u1"]
