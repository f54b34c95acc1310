"""Minimal HTTP client for the control server."""
from typing import Any, Optional, Type, TypeVar, Union

import requests
from pydantic import BaseModel

T = TypeVar("T", bound=BaseModel)


class APIError(Exception):
    """Error answer (or no answer) from the control server."""

    def __init__(self, status_code: int, detail: str):
        self.status_code = status_code
        self.detail = detail
        super().__init__(f"API error {status_code}: {detail}")


def _request(base_url: str, method: str, path: str,
             data: Optional[Union[BaseModel, dict]] = None) -> requests.Response:
    url = f"{base_url.rstrip('/')}/{path.lstrip('/')}"

    kwargs = {}
    if data is not None:
        kwargs["json"] = data.model_dump() if isinstance(data, BaseModel) else data

    with requests.Session() as session:
        session.max_redirects = 10
        try:
            response = session.request(method, url, **kwargs)
        except requests.RequestException as e:
            raise APIError(0, str(e)) from e

    if response.status_code >= 400:
        try:
            detail = response.json().get("detail", "")
        except Exception:
            detail = response.text
        raise APIError(response.status_code, str(detail) or f"HTTP {response.status_code}")

    return response


def api_call(base_url: str, method: str, path: str,
             data: Optional[Union[BaseModel, dict]] = None,
             response_model: Optional[Type[T]] = None) -> Union[T, Any]:
    """Call a JSON endpoint, validating the answer into ``response_model`` if given."""
    response = _request(base_url, method, path, data)

    if not response.content:
        return {}

    if response_model is not None:
        return response_model.model_validate_json(response.content)
    return response.json()


def rpc(base_url: str, name: str, /, **params: Any) -> str:
    """Invoke one RPC and return its plain-text result."""
    method = "GET" if name == "list_panes" else "POST"
    data = {k: v for k, v in params.items() if v is not None} if method == "POST" else None
    return _request(base_url, method, f"/rpc/{name}", data).text
