"""
VibeSync Curation Providers
LLM 백엔드 추상화: 프롬프트 -> 원문 텍스트 -> 정제 -> JSON -> CurationResult
"""

import hashlib
import json
import logging
import re
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional

import google.generativeai as genai
import groq
from google.api_core import exceptions as google_exceptions
from groq import AsyncGroq
from pydantic import BaseModel, Field, field_validator
from pydantic import ValidationError as PydanticValidationError

from .config import Settings
from .errors import CurationParseError, CurationProviderError
from .models import CuratedSong, CurationRequest, CurationResult, Theme
from .prompts import SYSTEM_INSTRUCTION, CurationStyle, build_prompt

logger = logging.getLogger(__name__)

HEX_COLOR_PATTERN = r"^#[0-9A-Fa-f]{6}$"

_FENCE_RE = re.compile(r"```[A-Za-z]*")
_CLOSERS = {"{": "}", "[": "]"}


# =============================================================================
# 응답 페이로드 스키마
# =============================================================================

class CuratedSongPayload(BaseModel):
    title: str = Field(..., min_length=1)
    artist: str = ""
    reason: str = ""

    @field_validator("artist", "reason", mode="before")
    @classmethod
    def _none_to_empty(cls, value: Any) -> Any:
        return "" if value is None else value

    def to_domain(self) -> CuratedSong:
        return CuratedSong(title=self.title, artist=self.artist, reason=self.reason)


class ThemePayload(BaseModel):
    moodName: str = Field(..., min_length=1)
    hexColor: str = Field(..., pattern=HEX_COLOR_PATTERN)

    def to_domain(self) -> Theme:
        return Theme(mood_name=self.moodName, hex_color=self.hexColor)


class CurationPayload(BaseModel):
    """테마는 따로 검증 (색상만 잘못되면 곡 목록은 살린다)"""
    recommendations: List[CuratedSongPayload]
    theme: Optional[Dict[str, Any]] = None


# =============================================================================
# 정제 후 파싱
# =============================================================================

def extract_json(text: Optional[str]) -> Any:
    """
    LLM 원문에서 JSON 값 추출

    1. 마크다운 코드 펜스 제거
    2. 첫 '{' 또는 '[' 부터 짝이 되는 마지막 '}' / ']' 까지 잘라내기
       (앞뒤 설명문 허용)
    3. json.loads

    Raises:
        CurationParseError: JSON 부분이 없거나 파싱 실패
    """
    if not isinstance(text, str) or not text.strip():
        raise CurationParseError("Model returned an empty response", raw_text=text)

    cleaned = _FENCE_RE.sub("", text)

    openers = sorted(
        (cleaned.find(ch), ch) for ch in _CLOSERS if ch in cleaned
    )
    if not openers:
        raise CurationParseError("Model response contains no JSON value", raw_text=text)

    last_error: Optional[Exception] = None
    for start, opener in openers:
        end = cleaned.rfind(_CLOSERS[opener])
        if end < start:
            continue
        try:
            return json.loads(cleaned[start:end + 1])
        except json.JSONDecodeError as e:
            last_error = e

    logger.warning(f"JSON parsing failed on model output ({len(text)} chars)")
    raise CurationParseError(
        f"Model returned invalid JSON structure: {last_error}",
        raw_text=text
    ) from last_error


def parse_curation_payload(data: Any) -> CurationResult:
    """
    JSON 값 -> CurationResult

    - 배열: 추천 목록 (테마 없음)
    - 객체: recommendations 필수, theme 선택
    """
    if isinstance(data, list):
        data = {"recommendations": data}
    elif not isinstance(data, dict) or "recommendations" not in data:
        raise CurationParseError("Model JSON has no recommendations list")

    try:
        payload = CurationPayload.model_validate(data)
    except PydanticValidationError as e:
        raise CurationParseError(
            f"Model JSON violates the output contract: {e.error_count()} errors"
        ) from e

    theme = None
    if payload.theme is not None:
        try:
            theme = ThemePayload.model_validate(payload.theme).to_domain()
        except PydanticValidationError:
            logger.warning(f"Dropping invalid theme from model output: {payload.theme}")

    return CurationResult(
        recommendations=tuple(item.to_domain() for item in payload.recommendations),
        theme=theme,
    )


# =============================================================================
# Provider 추상화
# =============================================================================

class CurationProvider(ABC):
    """큐레이션 LLM 백엔드 (배포당 1개, 설정 시점에 선택)"""

    name = "base"

    def __init__(
        self,
        style: CurationStyle = "themed",
        selection_count: int = 8,
        min_selection: int = 5,
        max_selection: int = 10
    ):
        self.style = style
        self.selection_count = selection_count
        self.min_selection = min_selection
        self.max_selection = max_selection

    def render(self, request: CurationRequest) -> str:
        return build_prompt(
            request,
            style=self.style,
            selection_count=self.selection_count,
            min_selection=self.min_selection,
            max_selection=self.max_selection,
        )

    async def curate(self, request: CurationRequest) -> CurationResult:
        prompt = self.render(request)
        text = await self._complete(request, prompt)
        result = parse_curation_payload(extract_json(text))
        logger.info(
            f"{self.name} curated {len(result.recommendations)} of "
            f"{len(request.candidates)} candidates (theme={'yes' if result.theme else 'no'})"
        )
        return result

    @abstractmethod
    async def _complete(self, request: CurationRequest, prompt: str) -> str:
        """프롬프트를 보내고 모델 원문 텍스트 반환"""


class GroqCurationProvider(CurationProvider):
    name = "groq"

    def __init__(
        self,
        api_key: str,
        model_name: str = "llama-3.1-8b-instant",
        temperature: float = 0.7,
        client: Optional[AsyncGroq] = None,
        **style_kwargs: Any
    ):
        super().__init__(**style_kwargs)
        if client is None:
            if not api_key:
                raise RuntimeError("GROQ_API_KEY is not set; Groq curation is disabled.")
            client = AsyncGroq(api_key=api_key)
        self._client = client
        self.model_name = model_name
        self.temperature = temperature

    async def _complete(self, request: CurationRequest, prompt: str) -> str:
        try:
            completion = await self._client.chat.completions.create(
                model=self.model_name,
                temperature=self.temperature,
                messages=[
                    {"role": "system", "content": SYSTEM_INSTRUCTION},
                    {"role": "user", "content": prompt},
                ],
            )
        except groq.APIError as e:
            logger.error(f"Groq request failed: {e.__class__.__name__}")
            raise CurationProviderError(f"Groq unavailable: {e.__class__.__name__}") from e

        content = completion.choices[0].message.content
        if not content:
            raise CurationParseError("Empty response from Groq")
        return content


class GeminiCurationProvider(CurationProvider):
    name = "gemini"

    def __init__(
        self,
        api_key: str,
        model_name: str = "gemini-2.5-flash-lite",
        temperature: float = 0.7,
        model: Optional[Any] = None,
        **style_kwargs: Any
    ):
        super().__init__(**style_kwargs)
        if model is None:
            if not api_key:
                raise RuntimeError("GEMINI_API_KEY is not set; Gemini curation is disabled.")
            genai.configure(api_key=api_key)
            model = genai.GenerativeModel(model_name, system_instruction=SYSTEM_INSTRUCTION)
        self._model = model
        self.model_name = model_name
        self.temperature = temperature

    async def _complete(self, request: CurationRequest, prompt: str) -> str:
        try:
            response = await self._model.generate_content_async(
                prompt,
                generation_config={
                    "response_mime_type": "application/json",
                    "temperature": self.temperature,
                },
            )
        except google_exceptions.GoogleAPIError as e:
            logger.error(f"Gemini request failed: {e.__class__.__name__}")
            raise CurationProviderError(f"Gemini unavailable: {e.__class__.__name__}") from e

        try:
            return response.text
        except ValueError as e:
            # 안전 필터 등으로 후보가 비어 있으면 .text 접근이 ValueError
            raise CurationParseError("Gemini returned no text") from e


_DEMO_PALETTE = ["#1e3a8a", "#4c1d95", "#374151", "#7f1d1d", "#14532d", "#0f172a"]


class DemoCurationProvider(CurationProvider):
    """
    결정적 데모 큐레이션

    상위 후보를 그대로 고르고, 실제 모델처럼 코드 펜스로 감싼 JSON 텍스트를
    돌려주어 동일한 파싱 경로를 거친다.
    """

    name = "demo"

    def _pick_count(self) -> int:
        if self.style == "list":
            return self.max_selection
        return self.selection_count

    async def _complete(self, request: CurationRequest, prompt: str) -> str:
        picked = request.candidates[:self._pick_count()]
        recommendations = [
            {
                "title": cand.title,
                "artist": cand.artist,
                "reason": f'A {cand.source_tag} match for "{request.mood}".',
            }
            for cand in picked
        ]
        if self.style == "list":
            payload: Any = recommendations
        else:
            digest = hashlib.sha256(request.mood.lower().encode("utf-8")).digest()
            words = request.mood.split()[:3]
            payload = {
                "theme": {
                    "moodName": " ".join(w.capitalize() for w in words) or "Neutral",
                    "hexColor": _DEMO_PALETTE[digest[0] % len(_DEMO_PALETTE)],
                },
                "recommendations": recommendations,
            }
        return "```json\n" + json.dumps(payload) + "\n```"


def build_curation_provider(settings: Settings) -> CurationProvider:
    """설정에서 활성 provider를 한 번만 선택 (요청별 분기 없음)"""
    provider = "demo" if settings.DEMO_MODE else settings.CURATION_PROVIDER
    style_kwargs = {
        "style": settings.CURATION_STYLE,
        "selection_count": settings.SELECTION_COUNT,
        "min_selection": settings.LIST_MIN_SELECTION,
        "max_selection": settings.LIST_MAX_SELECTION,
    }

    if provider == "groq":
        return GroqCurationProvider(
            api_key=settings.GROQ_API_KEY,
            model_name=settings.GROQ_MODEL,
            temperature=settings.CURATION_TEMPERATURE,
            **style_kwargs
        )
    if provider == "gemini":
        return GeminiCurationProvider(
            api_key=settings.GEMINI_API_KEY,
            model_name=settings.GEMINI_MODEL,
            temperature=settings.CURATION_TEMPERATURE,
            **style_kwargs
        )
    return DemoCurationProvider(**style_kwargs)
