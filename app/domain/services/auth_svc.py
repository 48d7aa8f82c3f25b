# app/domain/services/auth_svc.py
import logging
from typing import Optional

import httpx

from app.core.errors import ClientInputError, UpstreamHTTPError, UpstreamUnavailable

logger = logging.getLogger(__name__)

ADMIN_TOKEN_PATH = "/rest/V1/integration/admin/token"


async def request_admin_token(
    http: httpx.AsyncClient,
    username: Optional[str],
    password: Optional[str],
    base_url: Optional[str],
    *,
    timeout: float = 30,
) -> str:
    """
    Exchange admin credentials for a bearer token on the commerce platform.
    The platform answers with the token as a bare JSON string.
    """
    if not username or not password or not base_url:
        raise ClientInputError("Missing required fields")

    url = base_url.rstrip("/") + ADMIN_TOKEN_PATH
    try:
        resp = await http.post(url, json={"username": username, "password": password}, timeout=timeout)
        resp.raise_for_status()
    except httpx.HTTPStatusError as e:
        status = e.response.status_code
        logger.warning("admin token rejected base_url=%s status=%s", base_url, status)
        raise UpstreamHTTPError(
            f"Authentication failed: {status} - {e.response.reason_phrase}", status_code=status
        ) from e
    except httpx.TransportError as e:
        logger.warning("admin token no response base_url=%s err=%s", base_url, e)
        raise UpstreamUnavailable("No response from server. Please check your network connection.") from e

    try:
        token = resp.json()
    except ValueError:
        token = resp.text.strip().strip('"')
    if not isinstance(token, str) or not token:
        raise UpstreamHTTPError("Invalid response from server", status_code=502)
    logger.info("admin token issued base_url=%s", base_url)
    return token
