"""
VibeSync Common Schemas
공통 스키마
"""

from pydantic import BaseModel, Field


class ErrorResponse(BaseModel):
    """에러 응답 (원본 예외 대신 정규화된 메시지와 코드만)"""
    message: str
    code: str = Field(default="UNKNOWN_ERROR")
