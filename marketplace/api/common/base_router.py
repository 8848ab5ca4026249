from typing import Any, Callable, List, Optional

from fastapi import APIRouter

from marketplace.api.common.decorators import handle_route_errors, log_route_call

Endpoint = Callable[..., Any]


class BaseRouter:
    """
    Registers endpoints on an APIRouter wrapped in log_route_call and
    handle_route_errors, under the router's default tags.
    """

    def __init__(self, router: APIRouter, default_tags: Optional[List[str]] = None):
        self.router = router
        self.default_tags = default_tags or []

    def add_api_route(
        self, path: str, endpoint: Endpoint, *, methods: List[str], **kwargs: Any
    ) -> None:
        self.router.add_api_route(
            path,
            log_route_call(handle_route_errors(endpoint)),
            methods=methods,
            tags=kwargs.pop("tags", self.default_tags),
            **kwargs,
        )

    def get(self, path: str, **kwargs: Any) -> Callable[[Endpoint], Endpoint]:
        return self._route(path, "GET", **kwargs)

    def post(self, path: str, **kwargs: Any) -> Callable[[Endpoint], Endpoint]:
        return self._route(path, "POST", **kwargs)

    def patch(self, path: str, **kwargs: Any) -> Callable[[Endpoint], Endpoint]:
        return self._route(path, "PATCH", **kwargs)

    def delete(self, path: str, **kwargs: Any) -> Callable[[Endpoint], Endpoint]:
        return self._route(path, "DELETE", **kwargs)

    def _route(
        self, path: str, method: str, **kwargs: Any
    ) -> Callable[[Endpoint], Endpoint]:
        def decorator(endpoint: Endpoint) -> Endpoint:
            self.add_api_route(path, endpoint, methods=[method], **kwargs)
            return endpoint

        return decorator
