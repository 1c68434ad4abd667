"""
VibeSync Curation Orchestrator
무드 -> 임베딩 -> 검색 -> 병합 -> LLM 큐레이션 -> 링크 부착
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Literal, Optional, Sequence

from .curation import CurationProvider
from .embedding import EmbeddingClient
from .errors import (
    CurationProviderError,
    EmbeddingError,
    ValidationError,
    VibeSyncError,
)
from .fusion import fuse
from .links import DEFAULT_LINK_TEMPLATE, build_search_link
from .models import (
    Candidate,
    CuratedSong,
    CurationRequest,
    FinalRecommendation,
    MoodQuery,
    OrchestratorResult,
    Theme,
)
from .search import SimilaritySearchSource, gather_sources
from ..utils.timing import Timer

logger = logging.getLogger(__name__)

FailurePolicy = Literal["soft", "loud"]

RECEIVED = "Received"
EMBEDDING = "Embedding"
RETRIEVING = "Retrieving"
FUSING = "Fusing"
CURATING = "Curating"
POST_PROCESSING = "PostProcessing"
COMPLETED = "Completed"
FAILED = "Failed"


@dataclass
class PipelineTrace:
    """요청 1건의 단계 전이 기록 (요청 간 공유하지 않음)"""
    stages: List[str] = field(default_factory=lambda: [RECEIVED])

    @property
    def current(self) -> str:
        return self.stages[-1]

    def mark(self, stage: str) -> None:
        logger.debug(f"Pipeline stage: {self.current} -> {stage}")
        self.stages.append(stage)


def _normalize(text: str) -> str:
    return " ".join(text.lower().split())


def filter_to_candidates(
    songs: Sequence[CuratedSong],
    candidates: Sequence[Candidate]
) -> List[CuratedSong]:
    """후보 목록에 (title, artist)가 정확히 있는 곡만 남김"""
    allowed = {(_normalize(c.title), _normalize(c.artist)) for c in candidates}
    kept = [s for s in songs if (_normalize(s.title), _normalize(s.artist)) in allowed]
    dropped = len(songs) - len(kept)
    if dropped:
        logger.warning(f"Dropped {dropped} curated songs not present in the candidate list")
    return kept


class CurationOrchestrator:
    """
    추천 요청 핸들러

    파이프라인:
    1. 입력 검증 (mood 필수)
    2. 무드 임베딩
    3. 검색 소스 동시 호출 + 우선순위 병합
    4. 후보가 없으면 빈 추천 + 중립 테마로 즉시 반환 (성공)
    5. 프롬프트 렌더링 + 큐레이션 provider 호출
    6. 추천마다 결정적 검색 링크 부착

    재시도는 하지 않는다 (클라이언트 래퍼 책임).
    """

    def __init__(
        self,
        embedder: EmbeddingClient,
        sources: Sequence[SimilaritySearchSource],
        provider: CurationProvider,
        candidate_cap: int = 20,
        failure_policy: FailurePolicy = "soft",
        validate_selections: bool = False,
        neutral_theme: Optional[Theme] = None,
        link_template: str = DEFAULT_LINK_TEMPLATE
    ):
        self.embedder = embedder
        self.sources = list(sources)
        self.provider = provider
        self.candidate_cap = candidate_cap
        self.failure_policy = failure_policy
        self.validate_selections = validate_selections
        self.neutral_theme = neutral_theme or Theme(mood_name="Neutral", hex_color="#1a1a1a")
        self.link_template = link_template

        logger.info(
            f"Orchestrator initialized: provider={provider.name}, "
            f"sources={[s.name for s in self.sources]}, cap={candidate_cap}, "
            f"policy={failure_policy}, validate={validate_selections}"
        )

    def empty_payload(self) -> Dict[str, Any]:
        return {"theme": self.neutral_theme.to_dict(), "recommendations": []}

    async def recommend(
        self,
        query: MoodQuery,
        trace: Optional[PipelineTrace] = None
    ) -> Dict[str, Any]:
        """
        파이프라인 실행 (실패 시 타입별 예외)

        Returns:
            {"recommendations": [...], "theme": {...}?}

        Raises:
            ValidationError, EmbeddingError, RetrievalError,
            CurationParseError, CurationProviderError
        """
        trace = trace or PipelineTrace()

        mood = query.mood.strip() if isinstance(query.mood, str) else ""
        if not mood:
            raise ValidationError("Mood is required")

        trace.mark(EMBEDDING)
        with Timer("embedding"):
            try:
                vector = await self.embedder.embed(mood)
            except VibeSyncError:
                raise
            except Exception as e:
                raise EmbeddingError(f"Embedding failed: {e.__class__.__name__}") from e

        trace.mark(RETRIEVING)
        with Timer("retrieval"):
            source_results = await gather_sources(self.sources, vector)

        trace.mark(FUSING)
        candidates = fuse(source_results, self.candidate_cap)
        if not candidates:
            logger.info(f"No candidates for mood={mood!r}; skipping curation")
            trace.mark(COMPLETED)
            return self.empty_payload()

        trace.mark(CURATING)
        request = CurationRequest(mood=mood, genre=query.display_genre, candidates=tuple(candidates))
        with Timer("curation"):
            try:
                result = await self.provider.curate(request)
            except VibeSyncError:
                raise
            except Exception as e:
                raise CurationProviderError(f"Curation failed: {e.__class__.__name__}") from e

        trace.mark(POST_PROCESSING)
        songs = list(result.recommendations)
        if self.validate_selections:
            songs = filter_to_candidates(songs, candidates)

        final = [
            FinalRecommendation(
                title=song.title,
                artist=song.artist,
                reason=song.reason,
                link=build_search_link(song.title, song.artist, self.link_template),
            )
            for song in songs
        ]

        payload: Dict[str, Any] = {"recommendations": [rec.to_dict() for rec in final]}
        if result.theme is not None:
            payload["theme"] = result.theme.to_dict()

        trace.mark(COMPLETED)
        return payload

    def _failure(self, error: VibeSyncError) -> OrchestratorResult:
        if self.failure_policy == "soft":
            return OrchestratorResult(status_code=200, payload=self.empty_payload())
        return OrchestratorResult(
            status_code=error.status_code,
            payload={"message": error.message, "code": error.code}
        )

    async def handle(self, query: MoodQuery) -> OrchestratorResult:
        """recommend를 감싸 실패를 정책에 따라 정규화 (원본 예외는 노출하지 않음)"""
        trace = PipelineTrace()
        try:
            payload = await self.recommend(query, trace)
        except ValidationError as e:
            logger.info(f"Rejected request: {e.message}")
            return OrchestratorResult(
                status_code=e.status_code,
                payload={"message": e.message, "code": e.code}
            )
        except VibeSyncError as e:
            logger.error(f"Pipeline failed at {trace.current}: {e.code}: {e.message}")
            trace.mark(FAILED)
            return self._failure(e)
        except Exception:
            logger.exception(f"Unexpected pipeline error at {trace.current}")
            trace.mark(FAILED)
            return self._failure(VibeSyncError("Internal Server Error"))

        return OrchestratorResult(status_code=200, payload=payload)
