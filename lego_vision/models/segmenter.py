"""
Board Segmentation – Remote Service Client
==========================================

The baseplate polygon comes from an external instance-segmentation
service.  We only depend on its request/response shape:

  • **Request**  – ``POST`` JSON ``{"imageBase64": "data:image/jpeg;base64,…"}``
  • **Response** – ``{"predictions": [{"points": [{"x": …, "y": …}, …], …}, …]}``

Failures (network errors, non-2xx status, malformed bodies) are a normal
outcome for a live camera loop: they are logged and reported as ``None``.
No retries happen here – retry policy belongs to the caller.

``StaticSegmenter`` replays a fixed polygon so the pipeline can run
offline (CLI ``--polygon`` and tests).
"""

from __future__ import annotations

import base64
import json
import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Protocol, Sequence, Union

import cv2
import numpy as np
import requests

from lego_vision.models.geometry import Point2D, Polygon

log = logging.getLogger(__name__)


DEFAULT_ENDPOINT: str = "http://localhost:3000/api/segment"
JPEG_QUALITY: int = 80


# ── Data classes ───────────────────────────────────────────────────────

@dataclass
class Prediction:
    """One segmentation instance."""
    points: Polygon
    confidence: float = 1.0
    class_name: str = ""
    raw: Dict[str, Any] = field(default_factory=dict, repr=False)


class Segmenter(Protocol):
    """Anything that can turn a frame into polygon predictions."""

    def segment(self, image: np.ndarray) -> Optional[List[Prediction]]:
        ...


# ── Response parsing ───────────────────────────────────────────────────

_NOT_POINT_KEYS = ("points", "width", "height")


def _is_point(p: Any) -> bool:
    if isinstance(p, Mapping):
        return "x" in p and "y" in p and not any(k in p for k in _NOT_POINT_KEYS)
    return isinstance(p, (list, tuple))


def _parse_point(p: Any) -> Point2D:
    if isinstance(p, Mapping):
        return Point2D(float(p["x"]), float(p["y"]))
    x, y = p[:2]
    return Point2D(float(x), float(y))


def parse_predictions(body: Any) -> List[Prediction]:
    """Parse a segmentation response body into predictions.

    Accepts the service shape (``{"predictions": [...]}``), a bare list of
    predictions, or a bare top-level list of points (a single polygon).

    Raises
    ------
    ValueError
        If the body has none of these shapes.
    """
    if isinstance(body, Mapping):
        if "predictions" not in body:
            raise ValueError("Response has no 'predictions' field")
        items = body["predictions"] or []
        if not isinstance(items, list):
            raise ValueError(f"'predictions' is a {type(items).__name__}, not a list")
    elif isinstance(body, list):
        items = body
        # A bare polygon: list of points rather than list of predictions
        if items and _is_point(items[0]):
            try:
                return [Prediction(points=[_parse_point(p) for p in items])]
            except (KeyError, TypeError, ValueError) as e:
                raise ValueError(f"Malformed polygon: {e}") from e
    else:
        raise ValueError(f"Unexpected response type: {type(body).__name__}")

    preds: List[Prediction] = []
    for i, item in enumerate(items):
        if not isinstance(item, Mapping):
            raise ValueError(f"Prediction {i} is a {type(item).__name__}, not an object")
        if "points" not in item:
            raise ValueError(f"Prediction {i} has no polygon (keys: {sorted(item)})")
        try:
            preds.append(Prediction(
                points=[_parse_point(p) for p in item.get("points") or []],
                confidence=float(item.get("confidence", 1.0)),
                class_name=str(item.get("class", "")),
                raw=dict(item),
            ))
        except (AttributeError, KeyError, TypeError, ValueError) as e:
            raise ValueError(f"Malformed prediction {i}: {e}") from e
    return preds


def encode_image(image: np.ndarray, quality: int = JPEG_QUALITY) -> str:
    """Encode a BGR frame as a JPEG data URL."""
    ok, buf = cv2.imencode(".jpg", image, [cv2.IMWRITE_JPEG_QUALITY, quality])
    if not ok:
        raise ValueError("JPEG encoding failed")
    b64 = base64.b64encode(buf.tobytes()).decode("ascii")
    return f"data:image/jpeg;base64,{b64}"


# ── Segmenters ─────────────────────────────────────────────────────────

class RemoteSegmenter:
    """HTTP client for the segmentation service.

    Parameters
    ----------
    endpoint : str, optional
        Service URL.  Defaults to ``$LEGO_SEGMENT_URL`` or
        ``DEFAULT_ENDPOINT``.
    api_key : str, optional
        Sent as the ``api_key`` query parameter.  Defaults to
        ``$LEGO_SEGMENT_API_KEY``.
    timeout : float
        Request timeout in seconds.
    session : requests.Session, optional
        Reused for connection pooling across frames.  A session passed in
        stays owned by the caller; one created here is closed by
        ``close()`` or on leaving a ``with`` block.
    """

    def __init__(
        self,
        endpoint: Optional[str] = None,
        api_key: Optional[str] = None,
        timeout: float = 15.0,
        jpeg_quality: int = JPEG_QUALITY,
        session: Optional[requests.Session] = None,
    ) -> None:
        self.endpoint = endpoint or os.environ.get("LEGO_SEGMENT_URL", DEFAULT_ENDPOINT)
        self.api_key = api_key or os.environ.get("LEGO_SEGMENT_API_KEY")
        self.timeout = timeout
        self.jpeg_quality = jpeg_quality
        self._owns_session = session is None
        self.session = session if session is not None else requests.Session()

    def segment(self, image: np.ndarray) -> Optional[List[Prediction]]:
        """POST the frame and return its predictions, or ``None`` on failure."""
        payload = {"imageBase64": encode_image(image, self.jpeg_quality)}
        params = {"api_key": self.api_key} if self.api_key else None

        try:
            resp = self.session.post(
                self.endpoint, json=payload, params=params, timeout=self.timeout,
            )
            resp.raise_for_status()
            preds = parse_predictions(resp.json())
        except requests.RequestException as e:
            log.warning("Segmentation request to %s failed: %s", self.endpoint, e)
            return None
        except ValueError as e:
            log.warning("Segmentation response from %s unusable: %s", self.endpoint, e)
            return None

        log.debug("Segmentation returned %d prediction(s)", len(preds))
        return preds

    def close(self) -> None:
        if self._owns_session:
            self.session.close()

    def __enter__(self) -> "RemoteSegmenter":
        return self

    def __exit__(self, *exc: Any) -> None:
        self.close()


class StaticSegmenter:
    """Returns the same predictions for every frame."""

    def __init__(self, predictions: Sequence[Prediction]) -> None:
        self.predictions = list(predictions)

    @classmethod
    def from_polygon(cls, points: Sequence[Any]) -> "StaticSegmenter":
        return cls([Prediction(points=[_parse_point(p) for p in points])])

    @classmethod
    def from_file(cls, path: Union[str, Path]) -> "StaticSegmenter":
        """Load a polygon (or a saved service response) from JSON."""
        with open(path, "r", encoding="utf-8") as f:
            body = json.load(f)
        return cls(parse_predictions(body))

    def segment(self, image: np.ndarray) -> Optional[List[Prediction]]:
        return list(self.predictions)
