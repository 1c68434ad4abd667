"""
VibeSync Recommendation Schemas
추천 요청/응답 스키마
"""

from typing import List, Optional
from pydantic import BaseModel, Field


class RecommendRequest(BaseModel):
    """추천 요청 (mood 검증은 오케스트레이터가 담당)"""
    mood: Optional[str] = Field(default=None, description="자유 텍스트 무드")
    genre: Optional[str] = Field(default=None, description="선호 장르 (기본 any)")


class ThemeSchema(BaseModel):
    """무드 테마 (흰 글씨 위 배경색)"""
    moodName: str
    hexColor: str = Field(..., pattern=r"^#[0-9A-Fa-f]{6}$")


class RecommendationItem(BaseModel):
    title: str
    artist: str
    reason: str
    link: str


class RecommendResponse(BaseModel):
    """추천 응답 (빈 목록도 성공)"""
    recommendations: List[RecommendationItem]
    theme: Optional[ThemeSchema] = None
