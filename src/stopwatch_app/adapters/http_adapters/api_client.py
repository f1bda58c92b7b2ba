from typing import Any, Dict, List, Optional

import requests

from stopwatch_app.utils import custom_exception as ce
from stopwatch_app.utils.logging_handler import setup_logger

logger = setup_logger(__name__)

QUERY_RETRIES = 3
MUTATION_RETRIES = 2

# network-class failures never produced an HTTP status, so retrying is safe
NETWORK_ERRORS = (requests.ConnectionError, requests.Timeout)


class RecordsClient:
    """
    Client for the stopwatch records API.

    Network-class errors are retried a bounded number of times, more for
    reads than for mutations since a replayed mutation can duplicate its
    side effect. Any non-2xx answer raises ApiError straight away.
    """

    def __init__(
        self,
        base_url: str,
        session: Optional[requests.Session] = None,
        timeout: float = 10.0,
        query_retries: int = QUERY_RETRIES,
        mutation_retries: int = MUTATION_RETRIES,
    ):
        self.base_url = base_url.rstrip("/")
        self.session = session or requests.Session()
        self.timeout = timeout
        self.query_retries = query_retries
        self.mutation_retries = mutation_retries

    def list_records(self, user_id: Optional[int] = None) -> List[Dict[str, Any]]:
        params = {"userId": user_id} if user_id is not None else None
        return self._request("GET", "/api/stopwatch-records", params=params).json()

    def get_record(self, record_id: int) -> Optional[Dict[str, Any]]:
        """The record, or None when the server answers 404."""
        try:
            return self._request("GET", f"/api/stopwatch-records/{record_id}").json()
        except ce.ApiError as e:
            if e.status == 404:
                return None
            raise

    def create_record(self, duration_ms: int, title: Optional[str] = None, user_id: Optional[int] = None) -> Dict[str, Any]:
        body: Dict[str, Any] = {"duration": duration_ms}
        if title is not None:
            body["title"] = title
        if user_id is not None:
            body["userId"] = user_id
        return self._request("POST", "/api/stopwatch-records", json=body).json()

    def delete_record(self, record_id: int) -> bool:
        """True when deleted, False when the record did not exist."""
        try:
            self._request("DELETE", f"/api/stopwatch-records/{record_id}")
        except ce.ApiError as e:
            if e.status == 404:
                return False
            raise
        return True

    def _request(self, method: str, path: str, **kwargs) -> requests.Response:
        retries = self.query_retries if method == "GET" else self.mutation_retries
        url = self.base_url + path
        attempt = 0
        while True:
            try:
                response = self.session.request(method, url, timeout=self.timeout, **kwargs)
                break
            except NETWORK_ERRORS as e:
                if attempt >= retries:
                    logger.error(f"{method} {url} failed after {attempt + 1} attempts: {e}")
                    raise
                attempt += 1
                logger.warning(f"{method} {url} network error ({e}); retry {attempt}/{retries}.")

        self._raise_if_not_ok(response)
        return response

    @staticmethod
    def _raise_if_not_ok(response: requests.Response):
        if response.ok:
            return

        details: Any = {}
        try:
            details = response.json()
            message = response.reason
            if isinstance(details, dict):
                message = details.get("message") or details.get("error") or message
        except ValueError:
            message = response.text or response.reason

        logger.error(f"API Error: {response.status_code} at {response.url} {details}")
        raise ce.ApiError(response.status_code, response.url, message, details=details)
