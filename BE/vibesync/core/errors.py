"""
VibeSync Errors
파이프라인 단계별 예외 정의
"""

from typing import Optional


class VibeSyncError(Exception):
    """모든 파이프라인 예외의 기반 클래스"""

    code = "UNKNOWN_ERROR"
    status_code = 500

    def __init__(self, message: str = ""):
        super().__init__(message or self.__class__.__name__)
        self.message = message or self.__class__.__name__


class ValidationError(VibeSyncError):
    """잘못된 입력 (재시도 대상 아님)"""

    code = "VALIDATION_ERROR"
    status_code = 400


class EmbeddingError(VibeSyncError):
    """임베딩 백엔드 실패 또는 잘못된 응답"""

    code = "EMBEDDING_FAILED"
    status_code = 502


class RetrievalError(VibeSyncError):
    """유사도 검색 소스 실패"""

    code = "RETRIEVAL_FAILED"
    status_code = 502


class CurationError(VibeSyncError):
    code = "CURATION_FAILED"
    status_code = 502


class CurationParseError(CurationError):
    """LLM 응답이 JSON 계약을 위반함"""

    code = "CURATION_PARSE_FAILED"
    status_code = 502

    def __init__(self, message: str = "", raw_text: Optional[str] = None):
        super().__init__(message)
        self.raw_text = raw_text


class CurationProviderError(CurationError):
    """LLM 백엔드 호출 실패 (timeout, 인증, rate limit)"""

    code = "CURATION_UNAVAILABLE"
    status_code = 503


class ExhaustedRetriesError(VibeSyncError):
    """클라이언트 재시도 소진"""

    code = "RETRIES_EXHAUSTED"
    status_code = 503

    def __init__(
        self,
        attempts: int,
        last_status: Optional[int] = None,
        last_error: Optional[BaseException] = None
    ):
        detail = f"status={last_status}" if last_status is not None else repr(last_error)
        super().__init__(f"Request failed after {attempts} attempts ({detail})")
        self.attempts = attempts
        self.last_status = last_status
        self.last_error = last_error
