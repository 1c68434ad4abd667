"""
VibeSync Timing Utilities
파이프라인 단계별 소요 시간 측정
"""

import logging
import time

logger = logging.getLogger(__name__)


class Timer:
    """컨텍스트 매니저 타이머 (예외는 그대로 전파)"""

    def __init__(self, name: str = ""):
        self.name = name
        self.elapsed: float = 0.0

    def __enter__(self) -> "Timer":
        self._start = time.perf_counter()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.elapsed = time.perf_counter() - self._start
        if self.name:
            status = "failed" if exc_type is not None else "done"
            logger.debug(f"{self.name} {status} in {self.elapsed:.4f}s")
