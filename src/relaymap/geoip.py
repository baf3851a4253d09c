"""Offline GeoLite2-City coordinate fallback."""

from __future__ import annotations

import dataclasses
import logging
from pathlib import Path
from typing import Any, Sequence

import maxminddb

from .addresses import IpAddress, parse_or_address
from .models import RelayRecord, coerce_float

_LOGGER = logging.getLogger("relaymap.geoip")


class GeoLocator:
    """Explicit lookup handle; a locator without a reader never resolves."""

    def __init__(self, reader: Any | None = None) -> None:
        self._reader = reader

    @classmethod
    def disabled(cls) -> GeoLocator:
        return cls(None)

    @classmethod
    def open(cls, path: Path) -> GeoLocator:
        if not path.exists():
            _LOGGER.warning("[geo] %s not found; geo-fallback disabled.", path)
            return cls.disabled()
        try:
            reader = maxminddb.open_database(str(path))
        except (OSError, ValueError, maxminddb.InvalidDatabaseError) as exc:
            _LOGGER.warning("[geo] Failed to open %s: %s; geo-fallback disabled.", path, exc)
            return cls.disabled()
        _LOGGER.info("[geo] Opened %s", path)
        return cls(reader)

    @property
    def enabled(self) -> bool:
        return self._reader is not None

    def lookup(self, ip: IpAddress | str) -> tuple[float, float] | None:
        """Return `(lat, lon)` for an address, or `None` when unresolvable."""
        if self._reader is None:
            return None
        try:
            record = self._reader.get(str(ip))
        except (ValueError, maxminddb.InvalidDatabaseError) as exc:
            _LOGGER.debug("[geo] lookup failed for %s: %s", ip, exc)
            return None
        if not isinstance(record, dict):
            return None
        location = record.get("location")
        if not isinstance(location, dict):
            return None
        lat = coerce_float(location.get("latitude"))
        lon = coerce_float(location.get("longitude"))
        if lat is None or lon is None:
            return None
        return (lat, lon)

    def close(self) -> None:
        if self._reader is not None:
            self._reader.close()
            self._reader = None

    def __enter__(self) -> GeoLocator:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()


def fill_missing_positions(
    relays: Sequence[RelayRecord],
    locator: GeoLocator,
) -> list[RelayRecord]:
    """Fill absent coordinates from the first resolvable OR address."""
    if not locator.enabled:
        return list(relays)

    filled: list[RelayRecord] = []
    resolved = 0
    missing = 0
    for relay in relays:
        if relay.position is not None:
            filled.append(relay)
            continue
        missing += 1
        location = _locate_relay(relay, locator)
        if location is None:
            filled.append(relay)
            continue
        resolved += 1
        filled.append(dataclasses.replace(relay, latitude=location[0], longitude=location[1]))
    _LOGGER.info("[geo] Resolved %d of %d relays without lat/lon.", resolved, missing)
    return filled


def _locate_relay(relay: RelayRecord, locator: GeoLocator) -> tuple[float, float] | None:
    for address in relay.or_addresses:
        parsed = parse_or_address(address)
        if parsed is None:
            continue
        return locator.lookup(parsed[0])
    return None
