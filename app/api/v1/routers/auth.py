# app/api/v1/routers/auth.py
import logging

from fastapi import APIRouter, Depends

from app.api.deps import http_dep, settings_dep
from app.api.v1.schemas.catalog import TokenIn, TokenOut
from app.domain.services.auth_svc import request_admin_token

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["auth"])


@router.post("/token", response_model=TokenOut)
async def admin_token(body: TokenIn, http = Depends(http_dep), settings = Depends(settings_dep)):
    """Server-side credential exchange so browsers never call the commerce platform directly."""
    logger.info("Request: admin_token base_url=%s user=%s", body.base_url, body.username)
    token = await request_admin_token(
        http, body.username, body.password, body.base_url, timeout=settings.auth_timeout_s
    )
    return TokenOut(token=token)
