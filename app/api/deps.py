from fastapi import Request

from app.services.credential_store import AdminCredentialStore
from app.services.live_hub import LiveHub


def get_live_hub(request: Request) -> LiveHub:
    return request.app.state.live_hub


def get_credential_store(request: Request) -> AdminCredentialStore:
    return request.app.state.live_hub.credentials


def get_bearer_token(request: Request) -> str | None:
    """从 ``Authorization: Bearer <token>`` 头中取出 Token。"""
    header = request.headers.get("authorization", "")
    scheme, _, token = header.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        return None
    return token.strip()
