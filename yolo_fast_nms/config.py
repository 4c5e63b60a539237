from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Dict

from .postprocess import YoloPostConfig


def _optional_number(payload: Dict[str, Any], key: str, default: float) -> float:
    if key not in payload:
        return default
    value = payload[key]
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ValueError(f"{key} must be a number")
    return float(value)


def _optional_bool(payload: Dict[str, Any], key: str, default: bool) -> bool:
    if key not in payload:
        return default
    value = payload[key]
    if not isinstance(value, bool):
        raise ValueError(f"{key} must be a boolean")
    return value


def load_post_config(path: Path) -> YoloPostConfig:
    """
    Load thresholds from a JSON object, e.g.

        {"prob_threshold": 0.4, "iou_threshold": 0.5, "transpose": true}

    Missing keys fall back to the `YoloPostConfig` defaults.
    """

    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Post-process config not found: {path}")
    raw = path.read_text(encoding="utf-8")
    try:
        payload = json.loads(raw)
    except json.JSONDecodeError as exc:
        raise ValueError(f"Invalid post-process config JSON: {path}") from exc
    if not isinstance(payload, dict):
        raise ValueError("Post-process config must be a JSON object")

    allowed = {"prob_threshold", "iou_threshold", "transpose"}
    unknown = sorted(set(payload.keys()) - allowed)
    if unknown:
        raise ValueError(f"Unknown post-process config keys: {unknown}")

    defaults = YoloPostConfig()
    return YoloPostConfig(
        prob_threshold=_optional_number(payload, "prob_threshold", defaults.prob_threshold),
        iou_threshold=_optional_number(payload, "iou_threshold", defaults.iou_threshold),
        transpose=_optional_bool(payload, "transpose", defaults.transpose),
    )
