import json
from typing import Callable, Optional

import pytest

from vibesync.core.models import Candidate, SourceResult


# ============================================================================
# Factories
# ============================================================================


@pytest.fixture
def make_candidate() -> Callable[..., Candidate]:
    def _make(cid, score: float = 0.5, title: Optional[str] = None, artist: Optional[str] = None) -> Candidate:
        return Candidate(
            id=cid,
            title=title or f"Song {cid}",
            artist=artist or f"Artist {cid}",
            similarity_score=score,
        )

    return _make


@pytest.fixture
def make_source_result(make_candidate) -> Callable[..., SourceResult]:
    def _make(name: str, priority: int, rows, tag: str = "primary") -> SourceResult:
        return SourceResult(
            name=name,
            priority=priority,
            tag=tag,
            candidates=tuple(make_candidate(cid, score) for cid, score in rows),
        )

    return _make


@pytest.fixture
def curated_text() -> Callable[..., str]:
    """Render a themed provider payload as the model would send it."""

    def _render(songs, theme=None, fenced: bool = False) -> str:
        payload = {"recommendations": [
            {"title": t, "artist": a, "reason": r} for t, a, r in songs
        ]}
        if theme is not None:
            payload["theme"] = {"moodName": theme[0], "hexColor": theme[1]}
        text = json.dumps(payload)
        return f"```json\n{text}\n```" if fenced else text

    return _render
