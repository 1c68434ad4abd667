"""
Tests for the curation orchestrator.

Embedding, search and curation are replaced by in-process doubles; the
real fusion, parsing and link stages run.
"""

from unittest.mock import AsyncMock

import pytest

from doubles import ScriptedProvider, StaticSource
from vibesync.core.engine import (
    COMPLETED,
    CURATING,
    EMBEDDING,
    FAILED,
    FUSING,
    POST_PROCESSING,
    RECEIVED,
    RETRIEVING,
    CurationOrchestrator,
    PipelineTrace,
    filter_to_candidates,
)
from vibesync.core.errors import (
    CurationParseError,
    CurationProviderError,
    EmbeddingError,
    RetrievalError,
    ValidationError,
)
from vibesync.core.links import build_search_link
from vibesync.core.models import CuratedSong, MoodQuery, Theme

MOOD = "feeling overwhelmed but hopeful"


@pytest.fixture
def embedder():
    mock = AsyncMock()
    mock.embed = AsyncMock(return_value=(0.1, 0.2, 0.3))
    return mock


@pytest.fixture
def sources(make_candidate):
    lyrics = StaticSource("lyrics", 0, [make_candidate(i, 0.30 + i * 0.01) for i in range(20)])
    general = StaticSource(
        "general", 1, [make_candidate(i, 0.80) for i in range(5, 25)], tag="secondary"
    )
    return [lyrics, general]


def _orchestrator(embedder, sources, provider, **kwargs) -> CurationOrchestrator:
    return CurationOrchestrator(embedder=embedder, sources=sources, provider=provider, **kwargs)


class TestRecommendSuccess:
    """Happy path through every stage."""

    @pytest.mark.asyncio
    async def test_themed_result_with_links(self, embedder, sources, curated_text) -> None:
        """Curated songs get deterministic search links and the theme is kept."""
        provider = ScriptedProvider(text=curated_text(
            [("Song 19", "Artist 19", "Rising chorus."), ("Song 3", "Artist 3", "Quiet hope.")],
            theme=("Stormy Hope", "#1e3a8a"),
            fenced=True,
        ))
        engine = _orchestrator(embedder, sources, provider)

        result = await engine.handle(MoodQuery(mood=MOOD, genre="rock"))

        assert result.status_code == 200
        recs = result.payload["recommendations"]
        assert [r["title"] for r in recs] == ["Song 19", "Song 3"]
        assert recs[0]["link"] == build_search_link("Song 19", "Artist 19")
        assert recs[0]["reason"] == "Rising chorus."
        assert result.payload["theme"] == {"moodName": "Stormy Hope", "hexColor": "#1e3a8a"}

    @pytest.mark.asyncio
    async def test_provider_sees_fused_candidates(self, embedder, sources) -> None:
        """The provider receives the capped, primary-first candidate list."""
        provider = ScriptedProvider(text="[]")
        engine = _orchestrator(embedder, sources, provider, candidate_cap=20)

        await engine.recommend(MoodQuery(mood=MOOD, genre="rock"))

        request = provider.requests[0]
        assert request.mood == MOOD
        assert request.genre == "rock"
        assert len(request.candidates) == 20
        assert all(c.source_tag == "primary" for c in request.candidates)
        by_id = {c.id: c for c in request.candidates}
        assert by_id[5].similarity_score == pytest.approx(0.35)
        assert by_id[7].similarity_score == pytest.approx(0.37)
        assert 'Preferred Genre: "rock"' in provider.prompts[0]

    @pytest.mark.asyncio
    async def test_missing_genre_renders_any(self, embedder, sources) -> None:
        provider = ScriptedProvider(text="[]")
        engine = _orchestrator(embedder, sources, provider)

        await engine.recommend(MoodQuery(mood=MOOD))

        assert provider.requests[0].genre == "Any"

    @pytest.mark.asyncio
    async def test_mood_is_trimmed_before_embedding(self, embedder, sources) -> None:
        engine = _orchestrator(embedder, sources, ScriptedProvider(text="[]"))

        await engine.recommend(MoodQuery(mood=f"  {MOOD}  "))

        embedder.embed.assert_awaited_once_with(MOOD)

    @pytest.mark.asyncio
    async def test_list_style_has_no_theme(self, embedder, sources) -> None:
        """An array answer yields recommendations only."""
        provider = ScriptedProvider(
            text='[{"title": "Song 1", "artist": "Artist 1", "reason": "r"}]', style="list"
        )
        engine = _orchestrator(embedder, sources, provider)

        result = await engine.handle(MoodQuery(mood=MOOD))

        assert result.status_code == 200
        assert "theme" not in result.payload
        assert len(result.payload["recommendations"]) == 1

    @pytest.mark.asyncio
    async def test_trace_records_stages(self, embedder, sources) -> None:
        engine = _orchestrator(embedder, sources, ScriptedProvider(text="[]"))
        trace = PipelineTrace()

        await engine.recommend(MoodQuery(mood=MOOD), trace)

        assert trace.stages == [
            RECEIVED, EMBEDDING, RETRIEVING, FUSING, CURATING, POST_PROCESSING, COMPLETED
        ]


class TestEmptyCandidates:
    """Short-circuit when retrieval finds nothing."""

    @pytest.mark.asyncio
    async def test_no_candidates_skips_provider(self, embedder) -> None:
        """An empty fused set returns the neutral theme without curation."""
        provider = ScriptedProvider(text="[]")
        engine = _orchestrator(
            embedder,
            [StaticSource("lyrics", 0), StaticSource("general", 1, tag="secondary")],
            provider,
            neutral_theme=Theme(mood_name="Neutral", hex_color="#1f2937"),
        )
        trace = PipelineTrace()

        payload = await engine.recommend(MoodQuery(mood=MOOD), trace)

        assert payload == {"theme": {"moodName": "Neutral", "hexColor": "#1f2937"}, "recommendations": []}
        assert provider.requests == []
        assert CURATING not in trace.stages
        assert trace.current == COMPLETED


class TestValidation:
    """Mood is required regardless of failure policy."""

    @pytest.mark.asyncio
    @pytest.mark.parametrize("mood", [None, "", "   "])
    @pytest.mark.parametrize("policy", ["soft", "loud"])
    async def test_missing_mood_is_400(self, embedder, sources, mood, policy) -> None:
        engine = _orchestrator(embedder, sources, ScriptedProvider(), failure_policy=policy)

        result = await engine.handle(MoodQuery(mood=mood))

        assert result.status_code == 400
        assert result.payload["code"] == "VALIDATION_ERROR"
        embedder.embed.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_recommend_raises(self, embedder, sources) -> None:
        engine = _orchestrator(embedder, sources, ScriptedProvider())

        with pytest.raises(ValidationError):
            await engine.recommend(MoodQuery(mood=""))


class TestFailurePolicy:
    """Stage failures under soft and loud policies."""

    @pytest.mark.asyncio
    async def test_soft_embedding_failure(self, embedder, sources) -> None:
        """Soft policy answers 200 with an empty list and neutral theme."""
        embedder.embed.side_effect = EmbeddingError("backend down")
        engine = _orchestrator(embedder, sources, ScriptedProvider(), failure_policy="soft")

        result = await engine.handle(MoodQuery(mood=MOOD))

        assert result.status_code == 200
        assert result.payload == engine.empty_payload()

    @pytest.mark.asyncio
    async def test_loud_embedding_failure(self, embedder, sources) -> None:
        embedder.embed.side_effect = EmbeddingError("backend down")
        engine = _orchestrator(embedder, sources, ScriptedProvider(), failure_policy="loud")

        result = await engine.handle(MoodQuery(mood=MOOD))

        assert result.status_code == 502
        assert result.payload == {"message": "backend down", "code": "EMBEDDING_FAILED"}

    @pytest.mark.asyncio
    async def test_unknown_embedder_exception_is_wrapped(self, embedder, sources) -> None:
        """Raw backend exceptions become EmbeddingError."""
        embedder.embed.side_effect = ConnectionResetError("peer reset")
        engine = _orchestrator(embedder, sources, ScriptedProvider(), failure_policy="loud")

        with pytest.raises(EmbeddingError):
            await engine.recommend(MoodQuery(mood=MOOD))

        result = await engine.handle(MoodQuery(mood=MOOD))
        assert result.payload["code"] == "EMBEDDING_FAILED"
        assert "peer reset" not in result.payload["message"]

    @pytest.mark.asyncio
    async def test_one_source_failing_is_tolerated(self, embedder, make_candidate) -> None:
        """A failed lyrics source leaves the general source's candidates."""
        provider = ScriptedProvider(text="[]")
        engine = _orchestrator(
            embedder,
            [
                StaticSource("lyrics", 0, error=RetrievalError("rpc down")),
                StaticSource("general", 1, [make_candidate(1, 0.5)], tag="secondary"),
            ],
            provider,
            failure_policy="loud",
        )

        result = await engine.handle(MoodQuery(mood=MOOD))

        assert result.status_code == 200
        assert [c.id for c in provider.requests[0].candidates] == [1]

    @pytest.mark.asyncio
    @pytest.mark.parametrize("policy,status", [("soft", 200), ("loud", 502)])
    async def test_all_sources_failing(self, embedder, policy, status) -> None:
        engine = _orchestrator(
            embedder,
            [
                StaticSource("lyrics", 0, error=RetrievalError("rpc down")),
                StaticSource("general", 1, error=TimeoutError(), tag="secondary"),
            ],
            ScriptedProvider(),
            failure_policy=policy,
        )

        result = await engine.handle(MoodQuery(mood=MOOD))

        assert result.status_code == status
        if policy == "loud":
            assert result.payload["code"] == "RETRIEVAL_FAILED"

    @pytest.mark.asyncio
    async def test_loud_parse_failure(self, embedder, sources) -> None:
        """Unparseable model output is a 502 with a parse code."""
        engine = _orchestrator(
            embedder, sources, ScriptedProvider(text="I cannot help with that."), failure_policy="loud"
        )

        result = await engine.handle(MoodQuery(mood=MOOD))

        assert result.status_code == 502
        assert result.payload["code"] == "CURATION_PARSE_FAILED"

    @pytest.mark.asyncio
    async def test_loud_provider_outage(self, embedder, sources) -> None:
        engine = _orchestrator(
            embedder,
            sources,
            ScriptedProvider(error=CurationProviderError("rate limited")),
            failure_policy="loud",
        )

        result = await engine.handle(MoodQuery(mood=MOOD))

        assert result.status_code == 503
        assert result.payload["code"] == "CURATION_UNAVAILABLE"

    @pytest.mark.asyncio
    async def test_unknown_provider_exception_is_wrapped(self, embedder, sources) -> None:
        engine = _orchestrator(embedder, sources, ScriptedProvider(error=KeyError("choices")))

        with pytest.raises(CurationProviderError):
            await engine.recommend(MoodQuery(mood=MOOD))

    @pytest.mark.asyncio
    async def test_soft_parse_failure(self, embedder, sources) -> None:
        engine = _orchestrator(embedder, sources, ScriptedProvider(error=CurationParseError("bad")))

        result = await engine.handle(MoodQuery(mood=MOOD))

        assert result.status_code == 200
        assert result.payload["recommendations"] == []
        assert result.payload["theme"]["hexColor"] == "#1a1a1a"

    @pytest.mark.asyncio
    @pytest.mark.parametrize("policy,status", [("soft", 200), ("loud", 500)])
    async def test_unexpected_error(self, embedder, sources, monkeypatch, policy, status) -> None:
        """Errors outside the taxonomy map to a generic 500 body."""
        def broken_fuse(results, cap):
            raise TypeError("unhashable id")

        monkeypatch.setattr("vibesync.core.engine.fuse", broken_fuse)
        engine = _orchestrator(embedder, sources, ScriptedProvider(), failure_policy=policy)

        result = await engine.handle(MoodQuery(mood=MOOD))

        assert result.status_code == status
        if policy == "loud":
            assert result.payload == {"message": "Internal Server Error", "code": "UNKNOWN_ERROR"}

    @pytest.mark.asyncio
    async def test_failed_stage_marked(self, embedder, sources) -> None:
        """recommend leaves the trace at the failing stage."""
        engine = _orchestrator(embedder, sources, ScriptedProvider(error=CurationParseError("bad")))
        trace = PipelineTrace()

        with pytest.raises(CurationParseError):
            await engine.recommend(MoodQuery(mood=MOOD), trace)

        assert trace.current == CURATING
        assert FAILED not in trace.stages


class TestSelectionValidation:
    """Optional filtering of hallucinated songs."""

    def test_filter_to_candidates(self, make_candidate) -> None:
        """Matching ignores case and extra whitespace."""
        songs = [
            CuratedSong(title="song  1", artist="ARTIST 1", reason=""),
            CuratedSong(title="Invented", artist="Nobody", reason=""),
        ]

        kept = filter_to_candidates(songs, [make_candidate(1)])

        assert [s.title for s in kept] == ["song  1"]

    @pytest.mark.asyncio
    @pytest.mark.parametrize("validate,expected", [(True, ["Song 2"]), (False, ["Song 2", "Made Up"])])
    async def test_validate_flag(self, embedder, sources, curated_text, validate, expected) -> None:
        provider = ScriptedProvider(text=curated_text(
            [("Song 2", "Artist 2", "r"), ("Made Up", "Ghost", "r")]
        ))
        engine = _orchestrator(embedder, sources, provider, validate_selections=validate)

        payload = await engine.recommend(MoodQuery(mood=MOOD))

        assert [r["title"] for r in payload["recommendations"]] == expected


class TestSearchLinks:
    """Link construction is a pure function of (title, artist)."""

    def test_encoding(self) -> None:
        assert build_search_link("A", "B") == (
            "https://www.youtube.com/results?search_query=A%20B%20official%20audio"
        )

    def test_reserved_characters(self) -> None:
        """Characters left alone by encodeURIComponent stay literal."""
        link = build_search_link("Don't Stop (Live)", "AC/DC & Friends")

        assert link.endswith("Don't%20Stop%20(Live)%20AC%2FDC%20%26%20Friends%20official%20audio")

    def test_deterministic(self) -> None:
        assert build_search_link("Ünïcode", "Ärtist") == build_search_link("Ünïcode", "Ärtist")

    def test_custom_template(self) -> None:
        link = build_search_link("A", "B", template="https://music.example/search?q={query}&src=vibe")

        assert link == "https://music.example/search?q=A%20B%20official%20audio&src=vibe"
