import logging
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Dict, Optional

import httpx

from ..core.config import Config
from ..core.errors import UpstreamError
from ..core.http import RequestPipeline, SessionRequestAugmenter
from ..core.session import Session


logger = logging.getLogger(__name__)

TIMEOUT = 30  # seconds


@asynccontextmanager
async def session_api_client(
    session: Optional[Session],
    *,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> AsyncIterator[httpx.AsyncClient]:
    """Yield an API client that authorizes requests as ``session``.

    The bearer hook is registered for the lifetime of the context and
    removed on exit.
    """
    pipeline = RequestPipeline()
    augmenter = SessionRequestAugmenter(pipeline)
    augmenter.activate(session)
    client = httpx.AsyncClient(
        base_url=Config.API_BASE_URL,
        headers={"Content-Type": "application/json"},
        timeout=TIMEOUT,
        transport=transport,
    )
    pipeline.install(client)
    try:
        async with client:
            yield client
    finally:
        augmenter.deactivate()


async def forward_contact_message(client: httpx.AsyncClient, payload: Dict[str, Any]) -> Dict[str, Any]:
    try:
        response = await client.post("/contact", json=payload)
        response.raise_for_status()
    except httpx.HTTPError as e:
        logger.error(f"Failed to forward contact message: {e}")
        raise UpstreamError("Failed to deliver contact message") from e

    if not response.content:
        return {}
    return response.json()
