from __future__ import annotations

from dataclasses import dataclass
from typing import List

import numpy as np

from .types import BBox


@dataclass
class NMSConfig:
    iou_threshold: float = 0.5


def _half(v: np.ndarray) -> np.ndarray:
    # integer halving truncated toward zero (not floor) so negative odd extents match
    return np.sign(v) * (np.abs(v) // 2)


def iou_one_to_many(box: np.ndarray, boxes: np.ndarray) -> np.ndarray:
    """
    IoU of one integer cxcywh box against `boxes` (M, 4).

    Rectangles are `[cx - w//2, cx + w//2] x [cy - h//2, cy + h//2]` with
    truncated halves. Areas are `w * h` as given, so malformed (negative)
    extents are not corrected. A zero union yields 0.0.
    Returns float32 (M,).
    """

    box = np.asarray(box, dtype=np.int64)
    boxes = np.asarray(boxes, dtype=np.int64).reshape(-1, 4)

    cx, cy, w, h = box
    half_w, half_h = _half(w), _half(h)
    bcx, bcy, bw, bh = boxes[:, 0], boxes[:, 1], boxes[:, 2], boxes[:, 3]
    b_half_w, b_half_h = _half(bw), _half(bh)

    xx1 = np.maximum(cx - half_w, bcx - b_half_w)
    yy1 = np.maximum(cy - half_h, bcy - b_half_h)
    xx2 = np.minimum(cx + half_w, bcx + b_half_w)
    yy2 = np.minimum(cy + half_h, bcy + b_half_h)

    inter = np.maximum(0, xx2 - xx1) * np.maximum(0, yy2 - yy1)
    union = w * h + bw * bh - inter

    iou = np.zeros(boxes.shape[0], dtype=np.float32)
    np.divide(
        inter.astype(np.float32),
        union.astype(np.float32),
        out=iou,
        where=union != 0,
    )
    return iou


def calc_iou(a: BBox, b: BBox) -> float:
    """Intersection over union of two candidate boxes."""

    iou = iou_one_to_many(np.array(a.as_cxcywh()), np.array([b.as_cxcywh()]))
    return float(iou[0])


def nms(boxes: np.ndarray, scores: np.ndarray, cfg: NMSConfig) -> np.ndarray:
    """
    Greedy NMS over one class. Expects integer cxcywh boxes (N, 4) and scores (N,).
    Returns indices of boxes to keep, highest score first.

    A box is dropped only when its IoU with an already kept box is strictly
    greater than `cfg.iou_threshold`; the max IoU against an empty kept list
    is 0.0. Equal scores keep their input order.
    """

    if boxes.size == 0:
        return np.empty((0,), dtype=np.int64)

    threshold = np.float32(cfg.iou_threshold)
    # running max IoU starts at 0.0, so a negative (or NaN) threshold keeps nothing
    if not threshold >= 0:
        return np.empty((0,), dtype=np.int64)

    order = np.argsort(-scores, kind="stable")
    keep: List[int] = []

    while order.size > 0:
        i = order[0]
        keep.append(int(i))

        iou = iou_one_to_many(boxes[i], boxes[order[1:]])
        inds = np.where(iou <= threshold)[0]
        order = order[inds + 1]

    return np.array(keep, dtype=np.int64)


def classwise_nms(
    boxes: np.ndarray,
    scores: np.ndarray,
    class_ids: np.ndarray,
    cfg: NMSConfig,
) -> np.ndarray:
    """
    Run `nms` independently for every class; boxes of different classes never
    suppress each other.

    Returns kept indices grouped by ascending class id, each group in
    descending score order.
    """

    kept: List[np.ndarray] = []
    for cls in np.unique(class_ids):
        idx = np.where(class_ids == cls)[0]
        keep_local = nms(boxes[idx], scores[idx], cfg)
        kept.append(idx[keep_local])

    if not kept:
        return np.empty((0,), dtype=np.int64)
    return np.concatenate(kept).astype(np.int64)
