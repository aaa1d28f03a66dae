"""
app.api.live_endpoints
~~~~~~~~~~~~~~~~~~~~~~

直播状态 REST 接口，供尚未建立 WebSocket 的客户端查询。

端点:
  - ``GET /stream-status`` → 当前会话快照 + 在线人数
"""
from fastapi import APIRouter, Depends

from app.api.deps import get_live_hub
from app.schemas.api_response import ApiResponse
from app.schemas.live_interactions import StreamStatusResponseData
from app.services.live_hub import LiveHub

router: APIRouter = APIRouter()


@router.get(
    "/stream-status",
    summary="获取直播状态",
    response_model=ApiResponse[StreamStatusResponseData],
)
async def stream_status(hub: LiveHub = Depends(get_live_hub)):
    """返回是否在直播、推流者 Peer ID、标题、开播时间与在线人数。"""
    return ApiResponse.ok(data=hub.status())
