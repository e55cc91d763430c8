"""
Request dependencies
"""
import re
from typing import Optional

from fastapi import Depends, Header, Request

from app.services.ask import AskService
from app.services.container import AppServices

_BEARER = re.compile(r"^Bearer\s+(.*)$", re.IGNORECASE)


def get_services(request: Request) -> AppServices:
    return request.app.state.services


def get_ask_service(services: AppServices = Depends(get_services)) -> AskService:
    return services.ask_service


async def get_current_uid(
    authorization: Optional[str] = Header(default=None),
    services: AppServices = Depends(get_services),
) -> Optional[str]:
    """Verified uid of the caller, or None for anonymous / unverifiable requests"""
    match = _BEARER.match(authorization or "")
    if not match or services.identity_verifier is None:
        return None
    return services.identity_verifier.verify(match.group(1).strip())
