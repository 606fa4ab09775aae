from __future__ import annotations

import asyncio
import functools
import inspect
import json
from typing import Any, Awaitable, Callable, Coroutine, Protocol, TypeVar

from .config_schema import InterceptConfig, VariantsConfig
from .event_log import EventLog
from .extract import collect_posts_with_video
from .models import ExtractionResult, NetworkCall
from .publish import Publisher

R = TypeVar("R")

_DEFAULT_INTERCEPT = InterceptConfig()


class FetchResponse(Protocol):
    def clone(self) -> "FetchResponse": ...

    async def text(self) -> str: ...


class EventRequest(Protocol):
    response_text: str

    def open(self, method: str, url: str, *args: Any, **kwargs: Any) -> Any: ...

    def send(self, *args: Any, **kwargs: Any) -> Any: ...

    def add_event_listener(self, event: str, listener: Callable[..., Any]) -> None: ...


FetchFn = Callable[..., Awaitable[R]]


def should_intercept(url: str, *, config: InterceptConfig | None = None) -> bool:
    """
    Decide whether a call's response may carry post data.

    Matches any configured API path substring, or the loose keyword
    case-insensitively. Over-matching only costs a wasted parse.
    """
    cfg = config or _DEFAULT_INTERCEPT
    value = url or ""

    if cfg.keyword and cfg.keyword.lower() in value.lower():
        return True
    return any(pattern in value for pattern in cfg.path_patterns)


def _first_argument(
    fetch: Callable[..., Any], args: tuple[Any, ...], kwargs: dict[str, Any]
) -> Any:
    """Return the resource a fetch call targets, however it was passed."""
    if args:
        return args[0]
    try:
        bound = inspect.signature(fetch).bind_partial(*args, **kwargs)
    except (TypeError, ValueError):
        return None
    params = list(bound.signature.parameters.values())
    if not params or params[0].kind in (
        inspect.Parameter.VAR_POSITIONAL,
        inspect.Parameter.VAR_KEYWORD,
    ):
        return None
    return bound.arguments.get(params[0].name)


def _request_url(resource: Any) -> str:
    if isinstance(resource, str):
        return resource
    url = getattr(resource, "url", None)
    if isinstance(url, str):
        return url
    return str(resource)


class Interceptor:
    """
    Side channel that feeds matching responses to the extraction engine.

    The wrappers returned by `wrap_fetch` and `wrap_request` behave exactly
    like the wrapped primitives; parsing happens on a copy of the body and
    every failure in that path is logged and dropped.
    """

    def __init__(
        self,
        publisher: Publisher,
        *,
        config: InterceptConfig | None = None,
        variants: VariantsConfig | None = None,
        logger: EventLog | None = None,
    ) -> None:
        self._publisher = publisher
        self._config = config or _DEFAULT_INTERCEPT
        self._variants = variants
        self._log = logger
        self._pending: set[asyncio.Future[None]] = set()

    @property
    def pending_count(self) -> int:
        return len(self._pending)

    def should_intercept(self, url: str) -> bool:
        return should_intercept(url, config=self._config)

    def wrap_fetch(self, fetch: FetchFn[R]) -> FetchFn[R]:
        @functools.wraps(fetch)
        async def intercepted_fetch(*args: Any, **kwargs: Any) -> R:
            url = self._matching_url(fetch, args, kwargs)
            response = await fetch(*args, **kwargs)
            if url is not None:
                self._schedule_response(url, response)
            return response

        return intercepted_fetch

    def wrap_request(self, request: EventRequest) -> EventRequest:
        return _InterceptedRequest(request, self)  # type: ignore[return-value]

    def wrap_request_factory(
        self, factory: Callable[..., EventRequest]
    ) -> Callable[..., EventRequest]:
        @functools.wraps(factory)
        def intercepted_factory(*args: Any, **kwargs: Any) -> EventRequest:
            return self.wrap_request(factory(*args, **kwargs))

        return intercepted_factory

    def observe(self, call: NetworkCall, body: str | bytes) -> ExtractionResult:
        """Process an already completed call synchronously."""
        if not self.should_intercept(call.url):
            return {}
        self._debug("call_intercepted", url=call.url, method=call.method, via="replay")
        return self._consume(call.url, body)

    async def drain(self) -> None:
        """Wait until every detached response task has finished."""
        while self._pending:
            await asyncio.gather(*list(self._pending), return_exceptions=True)

    def _matching_url(
        self, fetch: Callable[..., Any], args: tuple[Any, ...], kwargs: dict[str, Any]
    ) -> str | None:
        try:
            resource = _first_argument(fetch, args, kwargs)
            if resource is None:
                return None
            url = _request_url(resource)
            matched = self.should_intercept(url)
        except Exception as e:
            self._discard(None, e)
            return None
        return url if matched else None

    def _schedule_response(self, url: str, response: FetchResponse) -> None:
        # The clone must exist before the caller gets the response back and
        # starts reading the original body.
        try:
            copy = response.clone()
        except Exception as e:
            self._discard(url, e)
            return

        self._debug("call_intercepted", url=url, via="fetch")
        self._spawn(self._read_response(url, copy))

    def _spawn(self, coro: Coroutine[Any, Any, None]) -> None:
        task = asyncio.ensure_future(coro)
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)

    async def _read_response(self, url: str, response: FetchResponse) -> None:
        try:
            body = await response.text()
        except Exception as e:
            self._discard(url, e)
            return
        self._consume(url, body)

    def _on_load(self, url: str, request: Any) -> None:
        try:
            body = request.response_text
        except Exception as e:
            self._discard(url, e)
            return
        self._consume(url, body)

    def _consume(self, url: str, body: str | bytes) -> ExtractionResult:
        try:
            document = json.loads(body)
            result = collect_posts_with_video(document, config=self._variants)
            sent = self._publisher.publish(result) if result else 0
        except Exception as e:
            self._discard(url, e)
            return {}

        self._debug("document_processed", url=url, posts=len(result), messages=sent)
        return result

    def _discard(self, url: str | None, exc: BaseException) -> None:
        if self._log is None:
            return
        self._log.warning(
            "document_discarded",
            url=url,
            error_type=type(exc).__name__,
            error_message=str(exc)[:500],
        )

    def _debug(self, event: str, *, url: str | None = None, **data: Any) -> None:
        if self._log is not None:
            self._log.debug(event, url=url, **data)


class _InterceptedRequest:
    """Proxy around an event-driven request that taps matching loads."""

    def __init__(self, request: EventRequest, interceptor: Interceptor) -> None:
        object.__setattr__(self, "_request", request)
        object.__setattr__(self, "_interceptor", interceptor)
        object.__setattr__(self, "_url", None)

    def open(self, method: str, url: Any, *args: Any, **kwargs: Any) -> Any:
        object.__setattr__(self, "_url", url if isinstance(url, str) else str(url))
        return self._request.open(method, url, *args, **kwargs)

    def send(self, *args: Any, **kwargs: Any) -> Any:
        url = self._url
        if url and self._interceptor.should_intercept(url):
            request = self._request
            interceptor = self._interceptor

            def _listener(*_: Any) -> None:
                interceptor._on_load(url, request)

            request.add_event_listener("load", _listener)
        return self._request.send(*args, **kwargs)

    def __getattr__(self, name: str) -> Any:
        return getattr(self._request, name)

    def __setattr__(self, name: str, value: Any) -> None:
        setattr(self._request, name, value)
