"""
VibeSync Logging Configuration
로깅 설정
"""

import logging
import sys
from typing import Union

# 외부 SDK의 요청 단위 로그는 WARNING 이상만
_NOISY_LOGGERS = ("httpx", "httpcore", "groq", "urllib3")


def setup_logging(level: Union[int, str] = logging.INFO) -> None:
    """루트 로거 설정 (stdout)"""
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
        if not isinstance(level, int):
            level = logging.INFO

    logging.basicConfig(
        level=level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        handlers=[
            logging.StreamHandler(sys.stdout)
        ]
    )
    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(max(level, logging.WARNING))
