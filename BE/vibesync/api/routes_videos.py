"""
VibeSync Video API
추천 곡별 YouTube 영상 조회 라우터
"""

from fastapi import APIRouter, Request

from ..schemas.videos import VideoItem, VideoSearchRequest, VideoSearchResponse

router = APIRouter(tags=["videos"])


@router.post("/videos/search", response_model=VideoSearchResponse)
async def search_videos(request: Request, body: VideoSearchRequest) -> VideoSearchResponse:
    """
    곡 제목 + 아티스트로 공식 영상 후보 조회

    조회 실패나 키 미설정은 빈 결과로 응답한다.
    """
    resolver = getattr(request.app.state, "video_resolver", None)
    if resolver is None:
        return VideoSearchResponse(results=[])

    videos = await resolver.search(body.title, body.artist)
    return VideoSearchResponse(results=[VideoItem(**v.to_dict()) for v in videos])
