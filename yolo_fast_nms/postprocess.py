from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import List

import numpy as np

from .decode import BufferLike, binary_to_matrix, transpose_matrix
from .errors import DegenerateRowError, ShapeMismatchError
from .nms import NMSConfig, classwise_nms
from .types import BBox


logger = logging.getLogger(__name__)

_I32_MIN = np.iinfo(np.int32).min
_I32_MAX = np.iinfo(np.int32).max
_F32_MIN = np.finfo(np.float32).min


@dataclass
class YoloPostConfig:
    """
    Thresholds for decoding raw YOLO output.

    transpose: set True when the model emits channel-first `(4 + C, A)`,
    e.g. `84 x 8400` for yolov8 COCO exports.
    """

    prob_threshold: float = 0.25
    iou_threshold: float = 0.5
    transpose: bool = True


@dataclass
class Candidates:
    """Column-wise view of extracted candidate boxes."""

    boxes: np.ndarray  # (N, 4) int64 cx, cy, w, h
    scores: np.ndarray  # (N,) float32
    class_ids: np.ndarray  # (N,) int64

    def __len__(self) -> int:
        return int(self.scores.shape[0])

    def select(self, idx: np.ndarray) -> "Candidates":
        return Candidates(self.boxes[idx], self.scores[idx], self.class_ids[idx])

    def to_bboxes(self) -> List[BBox]:
        return [
            BBox(prob=float(score), class_id=int(cls_id), cx=int(cx), cy=int(cy), w=int(w), h=int(h))
            for (cx, cy, w, h), score, cls_id in zip(self.boxes.tolist(), self.scores, self.class_ids)
        ]


def round_to_int(values: np.ndarray) -> np.ndarray:
    """
    Round half away from zero, saturating into the int32 range. NaN -> 0.
    """

    # float32 -> float64 first: adding 0.5 is then exact
    v = np.asarray(values, dtype=np.float64)
    r = np.trunc(v + np.copysign(0.5, v))
    r = np.nan_to_num(r, nan=0.0, posinf=float(_I32_MAX), neginf=float(_I32_MIN))
    return np.clip(r, _I32_MIN, _I32_MAX).astype(np.int64)


def extract_candidates(matrix: np.ndarray) -> Candidates:
    """
    One candidate per row: `[cx, cy, w, h, score_0, ..., score_{C-1}]`.

    The class is the first index holding the row's maximum score, so ties go
    to the lowest class id. Scores that are not above the smallest float32
    (NaN, -inf) never win over it.
    """

    m = np.asarray(matrix, dtype=np.float32)
    if m.ndim != 2:
        raise ShapeMismatchError(f"Expected a 2-D matrix, got shape {m.shape}.")
    if m.shape[1] <= 4:
        raise DegenerateRowError(m.shape[1])

    boxes = round_to_int(m[:, :4])
    class_scores = m[:, 4:]
    class_scores = np.where(class_scores > _F32_MIN, class_scores, _F32_MIN)
    class_ids = np.argmax(class_scores, axis=1).astype(np.int64)
    scores = class_scores[np.arange(class_scores.shape[0]), class_ids].astype(np.float32)
    return Candidates(boxes=boxes, scores=scores, class_ids=class_ids)


def extract_bboxes(matrix: np.ndarray) -> List[BBox]:
    return extract_candidates(matrix).to_bboxes()


def filter_by_prob(candidates: Candidates, prob_threshold: float) -> Candidates:
    keep = candidates.scores >= np.float32(prob_threshold)
    return candidates.select(keep)


class YoloPostprocessor:
    """
    Raw YOLO matrix -> class-wise NMS'd boxes.

    Stages: optional transpose -> best-class extraction -> confidence filter
    -> per-class greedy NMS. Output is grouped by ascending class id, each
    group ordered by descending confidence.
    """

    def __init__(self, cfg: YoloPostConfig):
        self.cfg = cfg

    def process(self, matrix: np.ndarray) -> List[BBox]:
        m = np.asarray(matrix, dtype=np.float32)
        if self.cfg.transpose:
            m = transpose_matrix(m)

        candidates = extract_candidates(m)
        survivors = filter_by_prob(candidates, self.cfg.prob_threshold)
        logger.debug(
            "matrix %s: %d candidates, %d above prob_threshold=%s",
            m.shape,
            len(candidates),
            len(survivors),
            self.cfg.prob_threshold,
        )
        if len(survivors) == 0:
            return []

        keep = classwise_nms(
            survivors.boxes,
            survivors.scores,
            survivors.class_ids,
            NMSConfig(iou_threshold=self.cfg.iou_threshold),
        )
        logger.debug("nms kept %d of %d boxes", keep.size, len(survivors))
        return survivors.select(keep).to_bboxes()


def run_with_binary(
    buffer: BufferLike,
    prob_threshold: float,
    iou_threshold: float,
    rows: int,
    columns: int,
    transpose: bool,
) -> List[List[float]]:
    """
    Run the full pipeline on a raw float32 buffer of declared shape `(rows, columns)`.

    Args:
        buffer: native-endian float32 bytes, exactly `rows * columns * 4` long
        prob_threshold: minimum best-class score kept (inclusive)
        iou_threshold: same-class boxes overlapping a kept box by more than this are dropped
        rows, columns: declared buffer shape
        transpose: True when the buffer is channel-first and must be flipped to one row per anchor

    Returns:
        `[cx, cy, w, h, prob, class_id]` per kept box, all as floats
    """

    matrix = binary_to_matrix(buffer, rows, columns)
    post = YoloPostprocessor(
        YoloPostConfig(prob_threshold=prob_threshold, iou_threshold=iou_threshold, transpose=transpose)
    )
    return [bbox.as_list() for bbox in post.process(matrix)]


def run(
    tensor: np.ndarray,
    *,
    prob_threshold: float = 0.25,
    iou_threshold: float = 0.5,
    transpose: bool = True,
) -> List[List[float]]:
    """
    Run the pipeline on an array of shape `(rows, columns)` or `(1, rows, columns)`.

    Defaults suit channel-first exports such as `(1, 84, 8400)`; pass
    `transpose=False` for `(anchors, 4 + C)` outputs.
    """

    p = np.asarray(tensor, dtype=np.float32)
    if p.ndim == 3:
        if p.shape[0] != 1:
            raise ShapeMismatchError(f"Batch > 1 is not supported (got shape {p.shape}). Pass one image at a time.")
        p = p[0]
    if p.ndim != 2:
        raise ShapeMismatchError(f"Invalid tensor shape {p.shape}; expected (rows, columns) or (1, rows, columns).")

    rows, columns = p.shape
    return run_with_binary(
        np.ascontiguousarray(p).tobytes(),
        prob_threshold,
        iou_threshold,
        rows,
        columns,
        transpose,
    )
