"""Onionoo relay census retrieval."""

from __future__ import annotations

import logging
from typing import Any, Mapping

import requests

from .config import CensusConfig
from .models import RelayRecord

_LOGGER = logging.getLogger("relaymap.census")


class CensusError(RuntimeError):
    """The census document could not be fetched or decoded."""


def parse_census(payload: Any) -> list[RelayRecord]:
    """Decode an Onionoo details document into relay records."""
    if not isinstance(payload, Mapping):
        raise CensusError("Census document must be a JSON object")
    relays_raw = payload.get("relays")
    if not isinstance(relays_raw, list):
        raise CensusError("Census document has no 'relays' list")
    relays: list[RelayRecord] = []
    for idx, item in enumerate(relays_raw):
        if not isinstance(item, Mapping):
            raise CensusError(f"Expected relay object at index {idx}")
        relays.append(RelayRecord.from_mapping(item))
    return relays


class CensusClient:
    """Single-attempt HTTP client for the Onionoo details endpoint."""

    def __init__(self, cfg: CensusConfig, session: requests.Session | None = None) -> None:
        self.cfg = cfg
        self._owns_session = session is None
        self._session = session or requests.Session()
        self._session.headers.update({"User-Agent": cfg.user_agent})

    def close(self) -> None:
        """Close the session if this client created it."""
        if self._owns_session:
            self._session.close()

    def __enter__(self) -> CensusClient:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def fetch(self) -> list[RelayRecord]:
        _LOGGER.info("[census] Fetching relay list from %s", self.cfg.url)
        try:
            response = self._session.get(self.cfg.url, timeout=self.cfg.request_timeout_s)
        except requests.RequestException as exc:
            raise CensusError(f"Census request failed: {exc}") from exc
        try:
            try:
                response.raise_for_status()
            except requests.HTTPError as exc:
                raise CensusError(f"Census request failed: {exc}") from exc
            try:
                payload = response.json()
            except ValueError as exc:
                raise CensusError(f"Census response is not valid JSON: {exc}") from exc
        finally:
            response.close()

        relays = parse_census(payload)
        positioned = sum(1 for relay in relays if relay.position is not None)
        _LOGGER.info("[census] Got %d relays (%d with lat/lon).", len(relays), positioned)
        return relays
