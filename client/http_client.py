"""
Typed HTTP client for the TimeTracker API.

Every call either returns the decoded JSON body or raises exactly one of the
classified errors from ``shared.errors``. A non-2xx response is never treated
as success, whether or not its error body can be parsed.
"""

from typing import Any, Dict, Optional, Type, TypeVar, cast

import requests

from shared.errors import HttpStatusError, NetworkError
from shared.logging_config import get_client_logger

logger = get_client_logger()

T = TypeVar('T')


class HttpClient:
    """
    Thin wrapper over a ``requests.Session`` that:
    - Sends cookies and the bearer API key with every request
    - Converts transport failures into ``NetworkError``
    - Converts non-2xx responses into ``HttpStatusError``
    """

    def __init__(self, base_url: str, api_key: str = "", timeout: int = 10,
                 session: Optional[requests.Session] = None):
        self.base_url = base_url.rstrip('/')
        self.timeout = timeout

        # The session keeps cookies between calls (credentials included)
        self._session = session or requests.Session()
        self._session.headers.update({
            'Content-Type': 'application/json',
            'Accept': 'application/json',
            'User-Agent': 'TimeTracker-Client/1.0'
        })

        if api_key:
            self._session.headers['Authorization'] = f'Bearer {api_key}'
            logger.debug(f"HTTP client initialized with API key: {api_key[:8]}...")

    def __enter__(self) -> 'HttpClient':
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def close(self) -> None:
        self._session.close()

    def url_for(self, endpoint: str) -> str:
        return f"{self.base_url}{endpoint}"

    # Request helpers
    def get(self, endpoint: str, response_type: Type[T] = Any) -> T:
        """GET ``endpoint`` and return the decoded body as ``response_type``"""
        response = self._send('GET', endpoint)
        return cast(T, self._decode(response))

    def post(self, endpoint: str, body: Any, response_type: Type[T] = Any) -> T:
        """POST ``body`` as JSON and return the decoded body as ``response_type``"""
        response = self._send('POST', endpoint, body)
        return cast(T, self._decode(response))

    def put(self, endpoint: str, body: Any, response_type: Type[T] = Any) -> T:
        """PUT ``body`` as JSON and return the decoded body as ``response_type``"""
        response = self._send('PUT', endpoint, body)
        return cast(T, self._decode(response))

    def delete(self, endpoint: str) -> None:
        """DELETE ``endpoint``; no response body is expected"""
        url = self.url_for(endpoint)
        response = self._request('DELETE', url)

        if not _is_success(response.status_code):
            # No structured body expected on DELETE failures
            reason = response.reason or 'Error'
            logger.warning(f"DELETE {url} failed with {response.status_code}")
            raise HttpStatusError(
                response.status_code,
                f"{response.status_code}: {reason}",
                url=url,
            )

    # Internals
    def _send(self, method: str, endpoint: str, body: Any = None) -> requests.Response:
        url = self.url_for(endpoint)
        response = self._request(method, url, body)

        if not _is_success(response.status_code):
            error = self._status_error(response, url)
            logger.warning(f"{method} {url} failed with {error.status}: {error.message}")
            raise error

        return response

    def _request(self, method: str, url: str, body: Any = None) -> requests.Response:
        logger.debug(f"{method} {url}")
        kwargs: Dict[str, Any] = {'timeout': self.timeout}
        if method in ('POST', 'PUT'):
            kwargs['json'] = body

        try:
            return self._session.request(method, url, **kwargs)
        except requests.RequestException as e:
            # No response received: DNS, connection refused, timeout, etc.
            logger.warning(f"{method} {url} failed without response: {e}")
            raise NetworkError(str(e) or e.__class__.__name__, url)

    @staticmethod
    def _status_error(response: requests.Response, url: str) -> HttpStatusError:
        """Build the error for a non-2xx response, parsing the body if possible"""
        error_body: Dict[str, Any] = {}
        try:
            parsed = response.json()
            if isinstance(parsed, dict):
                error_body = parsed
        except ValueError:
            # Empty or non-JSON body, fall back to the status text below
            pass

        message = error_body.get('message') or response.reason or f"HTTP {response.status_code}"
        return HttpStatusError(
            response.status_code,
            str(message),
            code=error_body.get('code'),
            details=error_body.get('details'),
            url=url,
        )

    @staticmethod
    def _decode(response: requests.Response) -> Any:
        if not response.content:
            return None
        try:
            return response.json()
        except ValueError:
            raise HttpStatusError(
                response.status_code,
                "Response body is not valid JSON",
                url=response.url,
            )


def _is_success(status_code: int) -> bool:
    return 200 <= status_code < 300
