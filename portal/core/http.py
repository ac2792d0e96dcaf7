import itertools
import logging
from typing import Callable, Dict, Optional, Tuple

import httpx

from .session import Session


logger = logging.getLogger(__name__)

RequestHook = Callable[[httpx.Request], None]
ErrorHook = Callable[[BaseException], None]


class RequestPipeline:
    """Ordered chain of request hooks applied to outgoing httpx requests.

    Each hook is registered with an optional error handler. Once a hook
    raises, the remaining hooks are skipped and the error handlers of the
    later registrations are given the exception instead; a handler that
    returns normally recovers the request, one that raises replaces the
    error. Any error left at the end of the chain fails the request.
    """

    def __init__(self):
        self._hooks: Dict[int, Tuple[RequestHook, Optional[ErrorHook]]] = {}
        self._ids = itertools.count(1)

    def __len__(self) -> int:
        return len(self._hooks)

    def register_request_hook(self, on_request: RequestHook, on_error: Optional[ErrorHook] = None) -> int:
        handle = next(self._ids)
        self._hooks[handle] = (on_request, on_error)
        return handle

    def deregister_request_hook(self, handle: int) -> None:
        self._hooks.pop(handle, None)

    def run(self, request: httpx.Request) -> httpx.Request:
        error: Optional[BaseException] = None
        for on_request, on_error in list(self._hooks.values()):
            try:
                if error is None:
                    on_request(request)
                elif on_error is not None:
                    on_error(error)
                    error = None
            except Exception as e:
                error = e
        if error is not None:
            raise error
        return request

    async def _dispatch(self, request: httpx.Request) -> None:
        self.run(request)

    def install(self, client: httpx.AsyncClient) -> httpx.AsyncClient:
        hooks = client.event_hooks
        hooks["request"] = [*hooks.get("request", []), self._dispatch]
        client.event_hooks = hooks
        return client


def bearer_hook(session: Optional[Session]) -> RequestHook:
    """Build a hook that authorizes requests with ``session``'s token.

    The token is read once here so later session changes cannot leak into
    a hook registered for an earlier session.
    """
    token = session.access_token if session is not None else None

    def attach_credential(request: httpx.Request) -> None:
        if token:
            request.headers["Authorization"] = f"Bearer {token}"

    return attach_credential


def passthrough_error(error: BaseException) -> None:
    raise error


class SessionRequestAugmenter:
    """Keeps exactly one bearer hook registered for the current session."""

    def __init__(self, pipeline: RequestPipeline):
        self._pipeline = pipeline
        self._handle: Optional[int] = None
        self._session: Optional[Session] = None

    @property
    def active(self) -> bool:
        return self._handle is not None

    @property
    def session(self) -> Optional[Session]:
        return self._session

    def _register(self, session: Optional[Session]) -> None:
        self._session = session
        self._handle = self._pipeline.register_request_hook(bearer_hook(session), passthrough_error)

    def activate(self, session: Optional[Session]) -> None:
        if self.active:
            self.update(session)
            return
        self._register(session)

    def update(self, session: Optional[Session]) -> None:
        if not self.active:
            self._register(session)
            return
        if session is self._session:
            return
        logger.debug("Session changed; re-registering request hook")
        self._pipeline.deregister_request_hook(self._handle)
        self._register(session)

    def deactivate(self) -> None:
        if not self.active:
            return
        self._pipeline.deregister_request_hook(self._handle)
        self._handle = None
        self._session = None
