"""
VibeSync Video Schemas
영상 조회 스키마
"""

from typing import List
from pydantic import BaseModel, Field


class VideoSearchRequest(BaseModel):
    title: str = Field(..., min_length=1)
    artist: str = Field(default="")


class VideoItem(BaseModel):
    id: str
    title: str
    thumbnail: str
    channel: str
    url: str


class VideoSearchResponse(BaseModel):
    results: List[VideoItem]
