"""
VibeSync Fusion Engine
여러 유사도 검색 결과를 하나의 중복 제거된 후보 리스트로 병합
"""

import logging
from dataclasses import replace
from typing import Any, Dict, List, Sequence, Tuple

from .models import Candidate, SourceResult

logger = logging.getLogger(__name__)


def fuse(sources: Sequence[SourceResult], cap: int) -> List[Candidate]:
    """
    소스 우선순위 + 점수 타이브레이크 병합

    1. 우선순위 순서(0이 최우선)로 소스를 순회하며 id 기준 first-seen-wins 삽입
    2. 삽입된 후보에 해당 소스 태그 부여
    3. (소스 우선순위 오름차순, 유사도 내림차순) 정렬
    4. cap 개수로 자르기

    우선순위가 점수보다 항상 앞선다: 높은 우선순위 소스의 낮은 점수 후보가
    낮은 우선순위 소스의 높은 점수 후보보다 앞에 온다.

    Args:
        sources: 소스별 결과 (도착 순서와 무관)
        cap: 최대 후보 수

    Returns:
        중복 없는 정렬된 후보 리스트 (len <= cap)
    """
    if cap <= 0:
        return []

    # sorted는 stable이므로 같은 priority끼리는 입력 순서 유지
    ordered = sorted(sources, key=lambda s: s.priority)

    merged: Dict[Any, Tuple[int, Candidate]] = {}
    for source in ordered:
        for cand in source.candidates:
            if cand.id in merged:
                continue
            merged[cand.id] = (source.priority, replace(cand, source_tag=source.tag))

    ranked = sorted(
        merged.values(),
        key=lambda item: (item[0], -item[1].similarity_score)
    )

    result = [cand for _, cand in ranked[:cap]]
    logger.debug(
        f"Fused {sum(len(s.candidates) for s in sources)} rows from "
        f"{len(sources)} sources -> {len(merged)} unique, {len(result)} kept"
    )
    return result
