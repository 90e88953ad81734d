"""HTTP access to the sensor data source."""

from __future__ import annotations

import logging
from typing import Any, Optional

import requests

from ..config import SourceSettings
from .errors import NoDataForDate, TransportError, UnexpectedResponseFormat

logger = logging.getLogger(__name__)


class SourceClient:
    """Fetch raw JSON payloads with the configured credentials.

    ``session`` defaults to a fresh :class:`requests.Session`; tests inject a
    stand-in exposing the same ``get`` signature.
    """

    def __init__(self, settings: SourceSettings, session: Optional[requests.Session] = None):
        self.settings = settings
        self.session = session if session is not None else requests.Session()

    @property
    def headers(self) -> dict[str, str]:
        return {
            "Content-Type": "application/json",
            "x-api-key": self.settings.api_key,
            "x-uid": self.settings.uid,
        }

    def fetch(self, date: Optional[str] = None) -> Any:
        """GET the source, optionally restricted to ``date`` (``YYYY-MM-DD``)."""

        params = {"date": date} if date else None
        logger.info("GET %s date=%s", self.settings.url, date or "<latest>")
        try:
            response = self.session.get(
                self.settings.url,
                params=params,
                headers=self.headers,
                timeout=self.settings.timeout,
            )
        except requests.RequestException as exc:
            raise TransportError(f"Request failed: {exc}") from exc

        if response.status_code == 404:
            raise NoDataForDate(f"No data for {date or 'latest'}", date=date)
        if not 200 <= response.status_code < 300:
            raise TransportError(
                f"Error: {response.status_code} {response.reason}",
                status=response.status_code,
            )
        try:
            return response.json()
        except ValueError as exc:
            raise UnexpectedResponseFormat(f"Response is not JSON: {exc}") from exc
