"""Result wrapper for management API responses."""

from __future__ import annotations

import json
from typing import Any, TypeVar

import httpx
from pydantic import BaseModel

from .exceptions import ResultDecodeError

T = TypeVar("T", bound=BaseModel)

_UNSET: Any = object()


class Result:
    """A management API response with lazily decoded JSON content.

    The decoded body may be a dict or a list depending on the endpoint.
    Some endpoints return no body at all, in which case ``content`` is
    an empty dict.
    """

    def __init__(self, response: httpx.Response):
        self.response = response
        self._content: Any = _UNSET

    def __repr__(self) -> str:
        return f"<Result [{self.code}] {self.request.method} {self.request.url}>"

    @property
    def code(self) -> int:
        return self.response.status_code

    @property
    def success(self) -> bool:
        """True for 2xx responses."""
        return self.response.is_success

    @property
    def request(self) -> httpx.Request:
        return self.response.request

    @property
    def raw_content(self) -> str:
        return self.response.text

    @property
    def content(self) -> Any:
        """The decoded JSON body, computed on first access."""
        if self._content is _UNSET:
            self._content = self._decode()
        return self._content

    def clear_content(self) -> None:
        """Forget the decoded body so the next access decodes again."""
        self._content = _UNSET

    def parse(self, model: type[T]) -> T:
        """Validate the decoded body into a pydantic model."""
        return model.model_validate(self.content)

    def _decode(self) -> Any:
        raw = self.raw_content
        if not raw:
            return {}
        try:
            return json.loads(raw)
        except json.JSONDecodeError as e:
            raise ResultDecodeError(
                f"invalid JSON in response to {self.request.method} "
                f"{self.request.url}: {e}"
            ) from e
