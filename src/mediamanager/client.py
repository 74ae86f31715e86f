"""
HTTP client for the PBS Media Manager API.

Media Manager models content as a strict hierarchy:
show -> season -> episode | special -> asset. This client exposes the handful
of lookups and mutations the ingestion engine needs.

Expected failures never raise. A failed call returns an error payload:

    {"errors": {"status_code": 404, "url": "...", "response": {...}}}

and transport failures (timeouts, refused connections) are folded into the
same shape as {"errors": {"exception": "...", "url": "..."}}.

Usage:
    client = MediaManagerClient(MediaManagerConfig())
    show = client.get_show("newshour")
    season_id = client.create_child("newshour", "show", "season", {"ordinal": 55})
"""

import logging
import re
from typing import Any, Optional, Union

import requests

from .config import MediaManagerConfig

logger = logging.getLogger("mediamanager")

# Query argument exposing unpublished objects to station credentials
UNPUBLISHED_QUERY = {"platform-slug": "partnerplayer"}

_LOCATION_ID = re.compile(r"/([^/]+)/(?:edit/?)?$")

ApiResponse = dict[str, Any]


def is_error(response: Any) -> bool:
    """True when a client response is an error payload."""
    return isinstance(response, dict) and "errors" in response


class MediaManagerClient:
    """
    Client for the Media Manager JSON API.

    Each instance holds one requests.Session authenticated with the station's
    key/secret pair (HTTP basic auth).
    """

    def __init__(
        self,
        config: Optional[MediaManagerConfig] = None,
        session: Optional[requests.Session] = None,
    ):
        """
        Args:
            config: Connection settings (defaults to the environment)
            session: Optional pre-built session, mostly for tests

        Raises:
            ValueError: If credentials or endpoint are missing
        """
        self.config = config or MediaManagerConfig()
        self.config.validate()
        self.base_url = self.config.base_url
        self.session = session or requests.Session()
        self.session.auth = (self.config.api_key, self.config.api_secret)
        self.session.headers.update(
            {"Accept": "application/json", "Content-Type": "application/json"}
        )

    # ============ TRANSPORT ============
    def _url(self, path: str) -> str:
        return f"{self.base_url}/{path.lstrip('/')}"

    def _request(
        self,
        method: str,
        path: str,
        params: Optional[dict] = None,
        json: Optional[dict] = None,
    ) -> Union[requests.Response, ApiResponse]:
        """Perform a request, returning the response or an error payload."""
        url = self._url(path)
        try:
            response = self.session.request(
                method, url, params=params, json=json, timeout=self.config.timeout
            )
        except requests.RequestException as e:
            logger.error(f"{method} {url} failed: {type(e).__name__}: {e}")
            return {"errors": {"exception": f"{type(e).__name__}: {e}", "url": url}}

        if not response.ok:
            logger.warning(f"{method} {url} returned HTTP {response.status_code}")
            return self._error_payload(response, url)

        logger.debug(f"{method} {url} returned HTTP {response.status_code}")
        return response

    @staticmethod
    def _error_payload(response: requests.Response, url: str) -> ApiResponse:
        try:
            body = response.json()
        except ValueError:
            body = response.text or None
        return {
            "errors": {
                "status_code": response.status_code,
                "url": url,
                "response": body,
            }
        }

    def _get(self, path: str, params: Optional[dict] = None) -> ApiResponse:
        response = self._request("GET", path, params=params)
        if is_error(response):
            return response
        try:
            return response.json()
        except ValueError:
            return {
                "errors": {
                    "status_code": response.status_code,
                    "url": response.url,
                    "response": "Response body is not valid JSON",
                }
            }

    # ============ LOOKUPS ============
    def get_show(self, slug: str) -> ApiResponse:
        return self._get(f"shows/{slug}/")

    def _get_object(self, object_type: str, slug: str, unpublished: bool) -> ApiResponse:
        params = dict(UNPUBLISHED_QUERY) if unpublished else None
        return self._get(f"{object_type}s/{slug}/", params=params)

    def get_episode(self, slug: str, unpublished: bool = False) -> ApiResponse:
        return self._get_object("episode", slug, unpublished)

    def get_special(self, slug: str, unpublished: bool = False) -> ApiResponse:
        return self._get_object("special", slug, unpublished)

    def get_asset(self, slug: str, unpublished: bool = False) -> ApiResponse:
        return self._get_object("asset", slug, unpublished)

    def get_show_seasons(
        self, show_slug: str, queryargs: Optional[dict] = None
    ) -> list[dict]:
        """
        List the seasons of a show, filtered by query arguments (e.g. ordinal).

        Returns:
            list[dict]: Season resources, empty when none match or on error.
        """
        response = self._get(f"shows/{show_slug}/seasons/", params=queryargs or None)
        if is_error(response):
            logger.warning(f"Season lookup for show {show_slug} failed: {response}")
            return []
        data = response.get("data") if isinstance(response, dict) else None
        return data if isinstance(data, list) else []

    def get_updatable_object(self, object_id: str, object_type: str) -> ApiResponse:
        """Fetch the editable representation of an object, published or not."""
        return self._get(f"{object_type}s/{object_id}/edit/")

    # ============ MUTATIONS ============
    def create_child(
        self,
        parent_id: str,
        parent_type: str,
        child_type: str,
        attributes: dict,
    ) -> Union[str, ApiResponse]:
        """
        Create an object beneath a parent.

        Returns:
            str: The new object's id on success
            dict: An error payload on failure
        """
        payload = {"data": {"type": child_type, "attributes": attributes}}
        response = self._request(
            "POST", f"{parent_type}s/{parent_id}/{child_type}s/", json=payload
        )
        if is_error(response):
            return response

        new_id = self._extract_id(response)
        if new_id:
            logger.info(f"Created {child_type} {new_id} under {parent_type} {parent_id}")
            return new_id

        return {
            "errors": {
                "status_code": response.status_code,
                "url": response.url,
                "response": f"Created {child_type} without a resolvable id",
            }
        }

    @staticmethod
    def _extract_id(response: requests.Response) -> Optional[str]:
        try:
            body = response.json()
        except ValueError:
            body = None
        if isinstance(body, dict):
            data = body.get("data")
            if isinstance(data, dict) and data.get("id"):
                return str(data["id"])

        match = _LOCATION_ID.search(response.headers.get("Location", ""))
        return match.group(1) if match else None

    def update_object(
        self, object_id: str, object_type: str, attributes: dict
    ) -> Union[bool, ApiResponse]:
        """
        Patch an object's attributes.

        Returns:
            True on success, an error payload on failure.
        """
        payload = {
            "data": {"type": object_type, "id": object_id, "attributes": attributes}
        }
        response = self._request(
            "PATCH", f"{object_type}s/{object_id}/edit/", json=payload
        )
        if is_error(response):
            return response
        return True
