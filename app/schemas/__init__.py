"""
app.schemas
~~~~~~~~~~~
Pydantic schemas: HTTP request/response bodies and WebSocket event payloads.
"""
from app.schemas.api_response import ApiResponse
from app.schemas.auth import Identity, LoginRequest, RegisterRequest, TokenData, VerifyData
from app.schemas.live_interactions import (
    ChatMessage,
    SessionSnapshot,
    StreamStatusResponseData,
    ViewerRecord,
)

# Call model_rebuild to resolve forward references in generic Pydantic models.
ApiResponse.model_rebuild()

__all__ = [
    "ApiResponse",
    "ChatMessage",
    "Identity",
    "LoginRequest",
    "RegisterRequest",
    "SessionSnapshot",
    "StreamStatusResponseData",
    "TokenData",
    "VerifyData",
    "ViewerRecord",
]
