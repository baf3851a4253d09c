"""Country boundary dataset provisioning and loading."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Mapping

import requests

from .config import BoundariesConfig
from .geometry import decode_geometry
from .models import BoundaryFeature
from .util import write_bytes_atomic

_LOGGER = logging.getLogger("relaymap.boundaries")

FEATURE_NAME_PROPERTIES = ("ADMIN", "name", "NAME", "admin")


class BoundaryDataError(RuntimeError):
    """The boundary dataset is missing or not a usable GeoJSON collection."""


def provision_boundary_dataset(
    cfg: BoundariesConfig,
    *,
    force: bool = False,
    session: requests.Session | None = None,
) -> Path:
    """Download the boundary GeoJSON once; existing files are kept unless forced."""
    dest = cfg.path
    if dest.exists() and not force:
        _LOGGER.info("[boundaries] %s already exists, skipping download.", dest)
        return dest

    http = session or requests.Session()
    _LOGGER.info("[boundaries] Downloading %s ...", cfg.url)
    try:
        content = _download(http, cfg)
    finally:
        if session is None:
            http.close()

    write_bytes_atomic(dest, content)
    _LOGGER.info("[boundaries] Saved %d bytes to %s", len(content), dest)
    return dest


def _download(http: requests.Session, cfg: BoundariesConfig) -> bytes:
    try:
        response = http.get(
            cfg.url,
            headers={"Accept-Encoding": "identity"},
            timeout=cfg.request_timeout_s,
        )
    except requests.RequestException as exc:
        raise BoundaryDataError(f"Failed downloading boundary dataset: {exc}") from exc
    try:
        response.raise_for_status()
        return response.content
    except requests.RequestException as exc:
        raise BoundaryDataError(f"Failed downloading boundary dataset: {exc}") from exc
    finally:
        response.close()


def parse_boundary_collection(payload: Any) -> list[BoundaryFeature]:
    if not isinstance(payload, Mapping):
        raise BoundaryDataError("Boundary dataset must be a GeoJSON object")
    features_raw = payload.get("features")
    if not isinstance(features_raw, list):
        raise BoundaryDataError("Boundary dataset has no 'features' list")

    features: list[BoundaryFeature] = []
    for item in features_raw:
        if not isinstance(item, Mapping):
            continue
        features.append(
            BoundaryFeature(
                name=_feature_name(item.get("properties")),
                geometry=decode_geometry(item.get("geometry")),
            )
        )
    return features


def load_boundary_features(path: Path) -> list[BoundaryFeature]:
    if not path.exists():
        raise BoundaryDataError(
            f"Boundary dataset not found: {path} (run 'relaymap fetch-boundaries')"
        )
    try:
        with path.open("r", encoding="utf-8") as fh:
            payload = json.load(fh)
    except (OSError, ValueError) as exc:
        raise BoundaryDataError(f"Failed reading boundary dataset '{path}': {exc}") from exc
    features = parse_boundary_collection(payload)
    _LOGGER.info("[boundaries] Loaded %d features from %s", len(features), path)
    return features


def _feature_name(properties: Any) -> str:
    if not isinstance(properties, Mapping):
        return ""
    for key in FEATURE_NAME_PROPERTIES:
        value = properties.get(key)
        if isinstance(value, str) and value.strip():
            return value.strip()
    return ""
