import hashlib
import inspect
from collections.abc import Callable
from collections.abc import Sequence
from functools import wraps
from logging import getLogger
from typing import Any
from typing import Optional
from typing import Union

from fastapi import Request
from fastapi import Response
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse
from starlette.status import HTTP_200_OK
from starlette.status import HTTP_304_NOT_MODIFIED
from starlette.status import HTTP_404_NOT_FOUND

from page_cachex.directives import DirectiveType
from page_cachex.exceptions import CacheConfigError
from page_cachex.handler import ResponseCache
from page_cachex.types import CACHE_KEY_SEPARATOR
from page_cachex.types import CacheContext
from page_cachex.types import CachedPage

logger = getLogger(__name__)

TagsType = Union[Sequence[str], Callable[[Request], Sequence[str]], None]

# Headers recomputed by Response on replay
_SKIPPED_HEADERS = {"content-length", "content-type"}


class CacheControl:
    def __init__(self) -> None:
        self.directives: list[str] = []

    def add(self, directive: DirectiveType, value: Optional[int] = None) -> None:
        if value is not None:
            self.directives.append(f"{directive.value}={value}")
        else:
            self.directives.append(directive.value)

    def __str__(self) -> str:
        return ", ".join(self.directives)


def default_key_builder(request: Request) -> str:
    """Build a cache key as ``METHOD|||host|||path|||query``."""
    return CACHE_KEY_SEPARATOR.join(
        [
            request.method,
            request.headers.get("host", ""),
            request.url.path,
            str(request.query_params),
        ]
    )


async def get_response(func: Callable, *args: Any, **kwargs: Any) -> Response:
    """Get the response from the function."""
    if inspect.iscoroutinefunction(func):
        result = await func(*args, **kwargs)
    else:
        result = func(*args, **kwargs)

    if isinstance(result, Response):
        return result
    return JSONResponse(content=jsonable_encoder(result))


def replay(page: CachedPage) -> Response:
    """Rebuild a response from a cached page."""
    response = Response(
        content=page.body,
        status_code=page.status_code,
        media_type=page.media_type,
    )
    # Repeated headers such as Set-Cookie are kept in order
    for name, value in page.headers:
        response.headers.append(name, value)
    response.headers["ETag"] = page.etag
    response.headers["X-Cache"] = "HIT"
    return response


def cache(  # noqa: C901
    handler: ResponseCache,
    revalidate: Optional[int] = None,
    tags: TagsType = None,
    cache_key_builder: Optional[Callable[[Request], str]] = None,
) -> Callable:
    """Serve a GET route from ``handler``, rendering it only on a miss.

    Args:
        handler: The response cache shared by the application
        revalidate: Seconds a rendered page stays fresh (None = until revalidated)
        tags: Tags for the cached page, or a callable deriving them from the request
        cache_key_builder: Custom key builder (default: method, host, path and query)

    Raises:
        CacheConfigError: If revalidate is negative
    """
    if revalidate is not None and revalidate < 0:
        raise CacheConfigError("revalidate must not be negative")

    key_builder = cache_key_builder or default_key_builder

    def decorator(func: Callable) -> Callable:  # noqa: C901
        # Analyze the original function's signature
        sig = inspect.signature(func)
        params = list(sig.parameters.values())

        # Check if Request is already in the parameters
        request_param_name = next(
            (
                param.name
                for param in params
                if param.annotation == Request or param.annotation == Optional[Request]
            ),
            None,
        )

        # Add Request parameter if it's not present
        if request_param_name is None:
            request_param = inspect.Parameter(
                "request",
                inspect.Parameter.KEYWORD_ONLY,
                annotation=Request,
            )
            sig = sig.replace(parameters=[*params, request_param])
            func.__signature__ = sig

        @wraps(func)
        async def wrapper(*args: Any, **kwargs: Any) -> Response:  # noqa: C901
            if request_param_name is None:
                request: Optional[Request] = kwargs.pop("request", None)
            else:
                request = kwargs.get(request_param_name)

            # Only cache GET requests
            if request is None or request.method != "GET":
                return await get_response(func, *args, **kwargs)

            cache_key = key_builder(request)
            cached_page = await handler.get(cache_key)

            if cached_page is not None:
                if request.headers.get("if-none-match") == cached_page.etag:
                    return Response(
                        status_code=HTTP_304_NOT_MODIFIED,
                        headers={"ETag": cached_page.etag},
                    )
                return replay(cached_page)

            response = await get_response(func, *args, **kwargs)
            response.headers["X-Cache"] = "MISS"

            # Streaming responses have no body to store
            body = getattr(response, "body", None)
            not_found = response.status_code == HTTP_404_NOT_FOUND
            if body is None or response.status_code not in (
                HTTP_200_OK,
                HTTP_404_NOT_FOUND,
            ):
                return response

            etag = f'W/"{hashlib.md5(body).hexdigest()}"'  # noqa: S324
            response.headers["ETag"] = etag

            cache_control = CacheControl()
            cache_control.add(DirectiveType.PUBLIC)
            if not_found:
                cache_control.add(DirectiveType.MAX_AGE, handler.settings.not_found_ttl)
            elif revalidate:
                cache_control.add(DirectiveType.S_MAXAGE, revalidate)
                cache_control.add(DirectiveType.STALE_WHILE_REVALIDATE)
            response.headers["Cache-Control"] = str(cache_control)

            page_tags = tags(request) if callable(tags) else tags
            page = CachedPage(
                status_code=response.status_code,
                body=body,
                etag=etag,
                media_type=response.media_type,
                headers=[
                    (k, v)
                    for k, v in response.headers.items()
                    if k.lower() not in _SKIPPED_HEADERS and k.lower() != "x-cache"
                ],
            )
            await handler.set(
                cache_key,
                page,
                CacheContext(
                    revalidate=revalidate,
                    tags=list(page_tags or []),
                    not_found=not_found,
                ),
            )
            logger.debug("Stored page %s (not_found=%s)", cache_key, not_found)
            return response

        return wrapper

    return decorator
