"""
VibeSync External Links
(title, artist) -> 외부 검색 링크 (순수 함수, 네트워크 없음)
"""

from urllib.parse import quote

DEFAULT_LINK_TEMPLATE = "https://www.youtube.com/results?search_query={query}"

# JavaScript encodeURIComponent와 같은 비예약 문자 집합
_URI_COMPONENT_SAFE = "!*'()"


def build_search_link(title: str, artist: str, template: str = DEFAULT_LINK_TEMPLATE) -> str:
    query = quote(f"{title} {artist} official audio", safe=_URI_COMPONENT_SAFE)
    return template.replace("{query}", query)
