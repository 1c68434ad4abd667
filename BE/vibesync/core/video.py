"""
VibeSync Video Resolver
추천 곡 1개 -> YouTube 영상 후보 (랭킹 파이프라인과 독립된 후속 조회)
"""

import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

import httpx

logger = logging.getLogger(__name__)

YOUTUBE_SEARCH_URL = "https://www.googleapis.com/youtube/v3/search"
MUSIC_CATEGORY_ID = "10"

BANNED_WORDS = (
    "short", "reel", "edit", "reaction",
    "interview", "meme", "slowed", "8d",
    "cover", "remix", "live",
)


@dataclass(frozen=True)
class VideoCandidate:
    id: str
    title: str
    thumbnail: str
    channel: str
    url: str

    def to_dict(self) -> Dict[str, str]:
        return {
            "id": self.id,
            "title": self.title,
            "thumbnail": self.thumbnail,
            "channel": self.channel,
            "url": self.url,
        }


def is_clean_title(title: str) -> bool:
    lowered = title.lower()
    return not any(word in lowered for word in BANNED_WORDS)


def _to_candidate(item: Dict[str, Any]) -> Optional[VideoCandidate]:
    video_id = (item.get("id") or {}).get("videoId")
    snippet = item.get("snippet") or {}
    if not video_id or not snippet.get("title"):
        return None
    thumbnails = snippet.get("thumbnails") or {}
    thumbnail = (thumbnails.get("medium") or thumbnails.get("default") or {}).get("url", "")
    return VideoCandidate(
        id=video_id,
        title=snippet["title"],
        thumbnail=thumbnail,
        channel=snippet.get("channelTitle", ""),
        url=f"https://www.youtube.com/watch?v={video_id}",
    )


class YouTubeVideoResolver:
    """YouTube Data API v3 검색 (API 키 없으면 항상 빈 결과)"""

    def __init__(
        self,
        api_key: str,
        client: Optional[httpx.AsyncClient] = None,
        max_results: int = 5,
        keep: int = 3,
        timeout: float = 10.0
    ):
        self.api_key = api_key
        self._client = client
        self.max_results = max_results
        self.keep = keep
        self.timeout = timeout

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=self.timeout)
        return self._client

    async def aclose(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    async def search(self, title: str, artist: str) -> List[VideoCandidate]:
        if not self.api_key:
            logger.warning("YOUTUBE_API_KEY is not set; video lookup disabled")
            return []

        params = {
            "part": "snippet",
            "type": "video",
            "videoCategoryId": MUSIC_CATEGORY_ID,
            "videoEmbeddable": "true",
            "maxResults": str(self.max_results),
            "q": f'"{artist}" "{title}" official',
            "key": self.api_key,
        }

        try:
            response = await self._get_client().get(YOUTUBE_SEARCH_URL, params=params)
            response.raise_for_status()
            data = response.json()
        except (httpx.HTTPError, ValueError) as e:
            logger.error(f"YouTube search failed for {title!r} by {artist!r}: {e.__class__.__name__}")
            return []

        results: List[VideoCandidate] = []
        for item in data.get("items") or []:
            cand = _to_candidate(item)
            if cand is None or not is_clean_title(cand.title):
                continue
            results.append(cand)
            if len(results) >= self.keep:
                break
        return results
