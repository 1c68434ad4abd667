"""
VibeSync API Client
/recommend 호출 + 재시도 래퍼
"""

import logging
from typing import Any, Callable, Dict, Optional

import httpx

from ..core.config import Settings
from .retry import DEFAULT_INITIAL_DELAY, DEFAULT_MAX_ATTEMPTS, call_with_retry

logger = logging.getLogger(__name__)


class VibeSyncClient:
    """
    VibeSync 백엔드 클라이언트

    재시도 정책은 서버가 아니라 여기 한 곳에만 있다.
    """

    def __init__(
        self,
        base_url: str,
        max_attempts: int = DEFAULT_MAX_ATTEMPTS,
        initial_delay: float = DEFAULT_INITIAL_DELAY,
        on_status: Optional[Callable[[str], None]] = None,
        timeout: float = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None
    ):
        self.max_attempts = max_attempts
        self.initial_delay = initial_delay
        self.on_status = on_status
        self._http = httpx.AsyncClient(base_url=base_url, timeout=timeout, transport=transport)

    @classmethod
    def from_settings(
        cls,
        settings: Settings,
        base_url: str,
        **kwargs: Any
    ) -> "VibeSyncClient":
        """RETRY_MAX_ATTEMPTS / RETRY_DELAY_SEC 설정으로 재시도 정책 구성"""
        return cls(
            base_url,
            max_attempts=settings.RETRY_MAX_ATTEMPTS,
            initial_delay=settings.RETRY_DELAY_SEC,
            **kwargs
        )

    async def __aenter__(self) -> "VibeSyncClient":
        return self

    async def __aexit__(self, *args) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._http.aclose()

    async def recommend(self, mood: str, genre: Optional[str] = None) -> Dict[str, Any]:
        """
        무드 추천 요청

        Returns:
            {"recommendations": [...], "theme": {...}?}

        Raises:
            ExhaustedRetriesError: 모든 시도 실패
        """
        body: Dict[str, Any] = {"mood": mood}
        if genre:
            body["genre"] = genre

        async def _post() -> httpx.Response:
            return await self._http.post("/recommend", json=body)

        response = await call_with_retry(
            _post,
            max_attempts=self.max_attempts,
            initial_delay=self.initial_delay,
            on_status=self.on_status,
        )
        return response.json()

    async def search_videos(self, title: str, artist: str) -> Dict[str, Any]:
        """영상 조회 (서버가 실패를 빈 결과로 돌려주므로 재시도 없음)"""
        response = await self._http.post("/videos/search", json={"title": title, "artist": artist})
        response.raise_for_status()
        return response.json()
