"""
VibeSync Backend Configuration
환경변수 기반 설정 관리
"""

from typing import Literal
from pydantic_settings import BaseSettings
from pydantic import Field, model_validator


class Settings(BaseSettings):
    """Application settings loaded from environment variables"""

    # Engine settings
    ENGINE_VERSION: str = Field(default="vibesync_v1", description="추천 파이프라인 버전")
    DEMO_MODE: bool = Field(default=True, description="데모 모드 (외부 API 키 없이 동작)")
    LOG_LEVEL: str = Field(default="INFO", description="로그 레벨")

    # Curation settings (프로세스 시작 시 한 번만 읽음)
    CURATION_PROVIDER: Literal["groq", "gemini", "demo"] = Field(
        default="groq",
        description="큐레이션 LLM 제공자 (데모 모드에서는 demo 강제)"
    )
    CURATION_STYLE: Literal["themed", "list"] = Field(
        default="themed",
        description="프롬프트 형식: themed=테마+TOP N, list=배열 N~M곡"
    )
    CURATION_TEMPERATURE: float = Field(default=0.7, ge=0.0, le=2.0, description="LLM temperature")
    SELECTION_COUNT: int = Field(default=8, ge=1, le=50, description="themed 스타일 선택 곡 수")
    LIST_MIN_SELECTION: int = Field(default=5, ge=1, description="list 스타일 최소 곡 수")
    LIST_MAX_SELECTION: int = Field(default=10, ge=1, description="list 스타일 최대 곡 수")
    VALIDATE_SELECTIONS: bool = Field(
        default=False,
        description="후보 목록에 없는 곡(환각)을 결과에서 제거"
    )

    # Models
    EMBEDDING_MODEL: str = Field(default="models/text-embedding-004", description="임베딩 모델")
    GEMINI_MODEL: str = Field(default="gemini-2.5-flash-lite", description="Gemini 큐레이션 모델")
    GROQ_MODEL: str = Field(default="llama-3.1-8b-instant", description="Groq 큐레이션 모델")

    # API keys
    GEMINI_API_KEY: str = Field(default="", description="Google Generative AI 키")
    GROQ_API_KEY: str = Field(default="", description="Groq API 키")
    SUPABASE_URL: str = Field(default="", description="Supabase 프로젝트 URL")
    SUPABASE_KEY: str = Field(default="", description="Supabase anon 키")
    YOUTUBE_API_KEY: str = Field(default="", description="YouTube Data API 키")

    # Similarity search sources
    PRIMARY_SOURCE_RPC: str = Field(default="match_songs_lyrics", description="1순위(가사) 검색 RPC")
    PRIMARY_THRESHOLD: float = Field(default=0.25, ge=-1.0, le=1.0, description="1순위 유사도 임계값")
    PRIMARY_LIMIT: int = Field(default=20, ge=1, le=200, description="1순위 결과 개수")
    SECONDARY_SOURCE_RPC: str = Field(
        default="match_songs",
        description="2순위(일반) 검색 RPC, 빈 문자열이면 비활성"
    )
    SECONDARY_THRESHOLD: float = Field(default=0.2, ge=-1.0, le=1.0, description="2순위 유사도 임계값")
    SECONDARY_LIMIT: int = Field(default=20, ge=1, le=200, description="2순위 결과 개수")
    CANDIDATE_CAP: int = Field(default=20, ge=1, le=200, description="LLM에 넘길 후보 최대 개수")

    # Failure policy
    FAILURE_POLICY: Literal["soft", "loud"] = Field(
        default="soft",
        description="soft=빈 추천+중립 테마(200), loud=타입별 에러(5xx)"
    )
    NEUTRAL_MOOD_NAME: str = Field(default="Neutral", description="기본 테마 이름")
    NEUTRAL_HEX_COLOR: str = Field(
        default="#1a1a1a",
        pattern=r"^#[0-9A-Fa-f]{6}$",
        description="기본 테마 배경색"
    )

    # Links
    LINK_TEMPLATE: str = Field(
        default="https://www.youtube.com/results?search_query={query}",
        description="외부 검색 링크 템플릿"
    )

    # Redis settings
    REDIS_URL: str = Field(default="redis://localhost:6379/0", description="Redis 연결 URL")
    EMBEDDING_CACHE_TTL_SEC: int = Field(default=0, ge=0, description="임베딩 캐시 TTL (0이면 비활성)")

    # Demo catalog
    SONG_CATALOG_PATH: str = Field(default="", description="데모용 곡 카탈로그 JSON 경로")
    DEMO_EMBEDDING_DIM: int = Field(default=64, ge=8, le=4096, description="데모 해시 임베딩 차원")

    # Client retry
    RETRY_MAX_ATTEMPTS: int = Field(default=3, ge=1, le=10, description="클라이언트 최대 시도 횟수")
    RETRY_DELAY_SEC: float = Field(default=1.5, ge=0.0, description="재시도 간 대기 (초)")

    @model_validator(mode="after")
    def _check_list_selection_range(self) -> "Settings":
        if self.LIST_MIN_SELECTION > self.LIST_MAX_SELECTION:
            raise ValueError(
                f"LIST_MIN_SELECTION ({self.LIST_MIN_SELECTION}) must not exceed "
                f"LIST_MAX_SELECTION ({self.LIST_MAX_SELECTION})"
            )
        return self

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        case_sensitive = True


def get_settings() -> Settings:
    return Settings()
