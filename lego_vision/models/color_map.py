"""
Colour → Component Lookup
=========================

Each baseplate colour stands for a functional component of some protocol
(e.g. "Red" → the *Sender* of *TCP*).  The mapping is published as JSON
keyed the other way round::

    {
      "TCP": {"Sender": "Red", "Receiver": "Blue"},
      "UDP": {"Socket": "Yellow"}
    }

``load_color_map`` reads that document once at startup (from a file or an
``http(s)`` URL) and inverts it to ``colour → ColorMapping``.  A missing or
broken document is not fatal: regions then fall back to their colour name.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Dict, Mapping, NamedTuple, Optional, Union

import requests

log = logging.getLogger(__name__)


class ColorMapping(NamedTuple):
    """Protocol/component pair a colour stands for."""
    protocol: str
    component: str


ColorMap = Mapping[str, ColorMapping]


def invert_color_map(document: Mapping[str, Mapping[str, str]]) -> Dict[str, ColorMapping]:
    """Turn ``{protocol: {component: colour}}`` into ``{colour: ColorMapping}``.

    If a colour is listed twice the later entry wins, matching a plain
    overwrite in document order.
    """
    lookup: Dict[str, ColorMapping] = {}
    for protocol, components in document.items():
        if not isinstance(components, Mapping):
            log.warning("Skipping malformed colour-map entry for %r", protocol)
            continue
        for component, color in components.items():
            lookup[str(color)] = ColorMapping(str(protocol), str(component))
    return lookup


def load_color_map(
    source: Optional[Union[str, Path]],
    timeout: float = 10.0,
) -> Dict[str, ColorMapping]:
    """Load and invert the colour map from a JSON file or URL.

    Returns an empty dict (and logs a warning) on any failure.
    """
    if source is None:
        return {}

    source_str = str(source)
    try:
        if source_str.startswith(("http://", "https://")):
            resp = requests.get(source_str, timeout=timeout)
            resp.raise_for_status()
            document = resp.json()
        else:
            with open(source_str, "r", encoding="utf-8") as f:
                document = json.load(f)
    except (OSError, ValueError, requests.RequestException) as e:
        log.warning("Could not load colour map from %s: %s", source_str, e)
        return {}

    if not isinstance(document, Mapping):
        log.warning("Colour map %s is not a JSON object", source_str)
        return {}

    lookup = invert_color_map(document)
    log.info("Loaded colour map: %d colours from %s", len(lookup), source_str)
    return lookup


def component_for(color_name: str, color_map: Optional[ColorMap]) -> str:
    """Component label for a colour, falling back to the colour name."""
    if color_map:
        mapping = color_map.get(color_name)
        if mapping is not None:
            return mapping.component
    return color_name
