"""
VibeSync Resilient Fetch Wrapper
클라이언트 측 고정 간격 재시도 (UI 상태 알림은 콜백으로 분리)
"""

import asyncio
import logging
from typing import Any, Awaitable, Callable, Optional

from tenacity import (
    AsyncRetrying,
    RetryCallState,
    RetryError,
    retry_if_exception_type,
    retry_if_result,
    stop_after_attempt,
    wait_fixed,
)

from ..core.errors import ExhaustedRetriesError

logger = logging.getLogger(__name__)

DEFAULT_MAX_ATTEMPTS = 3
DEFAULT_INITIAL_DELAY = 1.5
SLOW_STATUS_MESSAGE = "Taking longer than expected..."


def is_success_response(response: Any) -> bool:
    """2xx 응답만 성공 (status_code가 없으면 성공으로 간주)"""
    status = getattr(response, "status_code", None)
    if status is None:
        return True
    return 200 <= status < 300


async def call_with_retry(
    op: Callable[[], Awaitable[Any]],
    max_attempts: int = DEFAULT_MAX_ATTEMPTS,
    initial_delay: float = DEFAULT_INITIAL_DELAY,
    on_status: Optional[Callable[[str], None]] = None,
    is_success: Callable[[Any], bool] = is_success_response,
    sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep
) -> Any:
    """
    op를 최대 max_attempts번 호출

    - 예외 또는 비성공 응답이면 (남은 시도가 있을 때) 상태 알림 후
      initial_delay 만큼 쉬고 재시도 (4xx/5xx 구분 없음)
    - 첫 시도가 성공하면 정확히 1번만 호출

    Raises:
        ExhaustedRetriesError: 모든 시도 실패
    """
    if max_attempts < 1:
        raise ValueError("max_attempts must be >= 1")

    def _before_sleep(state: RetryCallState) -> None:
        outcome = state.outcome
        if outcome is not None and outcome.failed:
            reason = outcome.exception().__class__.__name__
        else:
            reason = f"status={getattr(outcome.result(), 'status_code', '?')}" if outcome else "?"
        logger.warning(f"Attempt {state.attempt_number}/{max_attempts} failed ({reason}); retrying")
        if on_status is not None:
            on_status(SLOW_STATUS_MESSAGE)

    retrying = AsyncRetrying(
        stop=stop_after_attempt(max_attempts),
        wait=wait_fixed(initial_delay),
        retry=retry_if_exception_type(Exception) | retry_if_result(lambda r: not is_success(r)),
        before_sleep=_before_sleep,
        sleep=sleep,
    )

    try:
        return await retrying(op)
    except RetryError as e:
        last = e.last_attempt
        if last.failed:
            raise ExhaustedRetriesError(max_attempts, last_error=last.exception()) from last.exception()
        response = last.result()
        raise ExhaustedRetriesError(max_attempts, last_status=getattr(response, "status_code", None)) from e
