"""
VibeSync Pipeline Models
요청 단위 불변 데이터 (각 단계는 이전 값에서 새 값을 만든다)
"""

from dataclasses import dataclass, field
from typing import Any, Dict, Literal, Optional, Tuple

SourceTag = Literal["primary", "secondary"]

# 임베딩 벡터 (생성 후 변경 불가)
EmbeddingVector = Tuple[float, ...]

DEFAULT_GENRE = "any"


@dataclass(frozen=True)
class MoodQuery:
    """사용자 무드 입력"""
    mood: Optional[str]
    genre: str = DEFAULT_GENRE

    @property
    def display_genre(self) -> str:
        genre = (self.genre or "").strip()
        if not genre or genre.lower() == DEFAULT_GENRE:
            return "Any"
        return genre


@dataclass(frozen=True)
class Candidate:
    """유사도 검색 후보 곡"""
    id: Any
    title: str
    artist: str
    similarity_score: float
    source_tag: SourceTag = "primary"


@dataclass(frozen=True)
class SourceResult:
    """검색 소스 1개의 결과 (priority 0이 최우선)"""
    name: str
    priority: int
    tag: SourceTag
    candidates: Tuple[Candidate, ...] = ()
    failed: bool = False


@dataclass(frozen=True)
class CurationRequest:
    """LLM에 넘길 재료 (후보는 ID 0, ID 1, ... 위치 인덱스로 참조)"""
    mood: str
    genre: str
    candidates: Tuple[Candidate, ...]


@dataclass(frozen=True)
class Theme:
    mood_name: str
    hex_color: str

    def to_dict(self) -> Dict[str, str]:
        return {"moodName": self.mood_name, "hexColor": self.hex_color}


@dataclass(frozen=True)
class CuratedSong:
    title: str
    artist: str
    reason: str


@dataclass(frozen=True)
class CurationResult:
    """LLM 큐레이션 결과"""
    recommendations: Tuple[CuratedSong, ...] = ()
    theme: Optional[Theme] = None


@dataclass(frozen=True)
class FinalRecommendation:
    """큐레이션 결과 + 외부 검색 링크"""
    title: str
    artist: str
    reason: str
    link: str

    def to_dict(self) -> Dict[str, str]:
        return {
            "title": self.title,
            "artist": self.artist,
            "reason": self.reason,
            "link": self.link,
        }


@dataclass(frozen=True)
class OrchestratorResult:
    """정규화된 HTTP 응답 (status_code + JSON body)"""
    status_code: int
    payload: Dict[str, Any] = field(default_factory=dict)
