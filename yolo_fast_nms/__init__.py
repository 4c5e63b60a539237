"""
Fast YOLO post-processing: raw float32 output buffer -> class-wise NMS'd boxes.

Pure NumPy, stateless, one image per call.
"""

from .types import BBox
from .errors import DegenerateRowError, ShapeMismatchError, YoloFastNMSError
from .decode import binary_to_matrix, transpose_matrix
from .nms import NMSConfig, calc_iou, classwise_nms, nms
from .postprocess import (
    YoloPostConfig,
    YoloPostprocessor,
    extract_bboxes,
    filter_by_prob,
    run,
    run_with_binary,
)
from .config import load_post_config

__all__ = [
    "BBox",
    "DegenerateRowError",
    "ShapeMismatchError",
    "YoloFastNMSError",
    "binary_to_matrix",
    "transpose_matrix",
    "NMSConfig",
    "calc_iou",
    "classwise_nms",
    "nms",
    "YoloPostConfig",
    "YoloPostprocessor",
    "extract_bboxes",
    "filter_by_prob",
    "run",
    "run_with_binary",
    "load_post_config",
]
