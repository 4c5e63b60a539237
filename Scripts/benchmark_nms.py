from __future__ import annotations

import argparse
import time
from typing import List

import numpy as np

from yolo_fast_nms import binary_to_matrix, run_with_binary
from yolo_fast_nms.postprocess import extract_candidates, filter_by_prob


def _latency_line(label: str, values_s: List[float]) -> str:
    ms = np.asarray(values_s, dtype=np.float64) * 1000.0
    p50, p90, p95 = np.percentile(ms, [50.0, 90.0, 95.0])
    return f"{label}: n={ms.size} mean={ms.mean():.3f}ms p50={p50:.3f}ms p90={p90:.3f}ms p95={p95:.3f}ms"


def _synthetic_buffer(anchors: int, classes: int, seed: int) -> bytes:
    """Channel-first (4 + C, A) float32 buffer, like a yolov8 export."""

    rng = np.random.default_rng(seed)
    cxcy = rng.uniform(0, 640, size=(2, anchors))
    wh = rng.uniform(5, 80, size=(2, anchors))
    # mostly background, a few confident anchors
    scores = rng.beta(0.3, 6.0, size=(classes, anchors))
    preds = np.vstack([cxcy, wh, scores]).astype(np.float32)
    return preds.tobytes()


def main() -> int:
    parser = argparse.ArgumentParser(
        description="Benchmark YOLO post-process latency with class-wise NMS vs confidence filter only."
    )
    parser.add_argument("--anchors", type=int, default=8400, help="Number of anchors (columns of the raw output).")
    parser.add_argument("--classes", type=int, default=80, help="Number of class scores per anchor.")
    parser.add_argument("--prob", type=float, default=0.25, help="Confidence threshold (pre-NMS).")
    parser.add_argument("--iou", type=float, default=0.5, help="IoU threshold for NMS.")
    parser.add_argument("--warmup", type=int, default=10, help="Iterations to run but not record.")
    parser.add_argument("--repeats", type=int, default=200, help="Recorded iterations.")
    parser.add_argument("--seed", type=int, default=0, help="Seed for the synthetic output.")
    args = parser.parse_args()

    if args.anchors < 1:
        raise ValueError("--anchors must be >= 1")
    if args.classes < 1:
        raise ValueError("--classes must be >= 1")
    if args.warmup < 0:
        raise ValueError("--warmup must be >= 0")
    if args.repeats < 1:
        raise ValueError("--repeats must be >= 1")

    rows, columns = 4 + int(args.classes), int(args.anchors)
    buffer = _synthetic_buffer(columns, int(args.classes), int(args.seed))

    t_nms: List[float] = []
    t_filter: List[float] = []
    kept = survivors = 0
    for it in range(int(args.warmup) + int(args.repeats)):
        t0 = time.perf_counter()
        result = run_with_binary(buffer, float(args.prob), float(args.iou), rows, columns, True)
        t1 = time.perf_counter()
        matrix = binary_to_matrix(buffer, rows, columns).T
        filtered = filter_by_prob(extract_candidates(matrix), float(args.prob))
        t2 = time.perf_counter()

        if it < int(args.warmup):
            continue
        t_nms.append(t1 - t0)
        t_filter.append(t2 - t1)
        kept, survivors = len(result), len(filtered)

    print(_latency_line("postprocess_with_nms", t_nms))
    print(_latency_line("postprocess_filter_only", t_filter))
    print(f"shape=({rows}, {columns}) survivors={survivors} kept={kept} warmup={int(args.warmup)}")

    return 0


if __name__ == "__main__":
    raise SystemExit(main())
