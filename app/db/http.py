# app/db/http.py
import httpx
import logging

logger = logging.getLogger(__name__)

http_client: httpx.AsyncClient | None = None

DEFAULT_HEADERS = {
    "Accept": "application/json",
    "User-Agent": "otapi-catalog/1.0",
}


async def connect():
    """
    Open the process-wide httpx client. Timeouts are set per call.
    """
    global http_client
    if http_client is None:
        http_client = httpx.AsyncClient(
            headers=DEFAULT_HEADERS,
            follow_redirects=True,
            limits=httpx.Limits(max_connections=100, max_keepalive_connections=50),
        )
        logger.info("HTTP client opened")


async def disconnect():
    global http_client
    if http_client:
        await http_client.aclose()
        http_client = None
        logger.info("HTTP client closed")


def get_http_client() -> httpx.AsyncClient:
    assert http_client is not None, "HTTP client not initialized"
    return http_client
