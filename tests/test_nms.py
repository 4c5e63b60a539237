import unittest

import numpy as np

from yolo_fast_nms.nms import NMSConfig, _half, calc_iou, classwise_nms, iou_one_to_many, nms
from yolo_fast_nms.types import BBox


def _bbox(cx: int, cy: int, w: int, h: int, prob: float = 0.9, class_id: int = 0) -> BBox:
    return BBox(prob=prob, class_id=class_id, cx=cx, cy=cy, w=w, h=h)


class TestCalcIou(unittest.TestCase):
    def test_identical_boxes(self) -> None:
        self.assertEqual(calc_iou(_bbox(10, 10, 4, 4), _bbox(10, 10, 4, 4)), 1.0)

    def test_partial_overlap(self) -> None:
        # [-5, 5] vs [-4, 6] on both axes: 81 / (100 + 100 - 81)
        iou = calc_iou(_bbox(0, 0, 10, 10), _bbox(1, 1, 10, 10))
        self.assertAlmostEqual(iou, 81.0 / 119.0, places=6)
        self.assertGreater(iou, 0.5)

    def test_disjoint_boxes(self) -> None:
        self.assertEqual(calc_iou(_bbox(0, 0, 4, 4), _bbox(100, 100, 4, 4)), 0.0)

    def test_odd_extents_use_truncated_halves(self) -> None:
        # w // 2 == 1, so each box spans [-1, 1]: intersection 4, union 9 + 9 - 4
        iou = calc_iou(_bbox(0, 0, 3, 3), _bbox(0, 0, 3, 3))
        self.assertEqual(iou, float(np.float32(4) / np.float32(14)))

    def test_half_truncates_toward_zero(self) -> None:
        halves = _half(np.array([-3, -2, -1, 0, 1, 3], dtype=np.int64))
        self.assertTrue(np.array_equal(halves, np.array([-1, -1, 0, 0, 0, 1])))

    def test_zero_union_is_zero(self) -> None:
        self.assertEqual(calc_iou(_bbox(0, 0, 0, 0), _bbox(5, 5, 0, 0)), 0.0)
        # negative extent cancels the other area out
        self.assertEqual(calc_iou(_bbox(0, 0, 2, -2), _bbox(0, 0, 2, 2)), 0.0)

    def test_vectorized_matches_scalar(self) -> None:
        a = _bbox(3, 4, 9, 7)
        others = [_bbox(0, 0, 10, 10), _bbox(5, 5, 3, 11), _bbox(50, 50, 4, 4), _bbox(3, 4, 9, 7)]
        vec = iou_one_to_many(np.array(a.as_cxcywh()), np.array([o.as_cxcywh() for o in others]))
        self.assertEqual(vec.dtype, np.float32)
        self.assertEqual(vec.tolist(), [calc_iou(a, o) for o in others])


class TestNms(unittest.TestCase):
    def test_empty(self) -> None:
        keep = nms(np.empty((0, 4), dtype=np.int64), np.empty((0,), dtype=np.float32), NMSConfig())
        self.assertEqual(keep.size, 0)
        keep = classwise_nms(
            np.empty((0, 4), dtype=np.int64),
            np.empty((0,), dtype=np.float32),
            np.empty((0,), dtype=np.int64),
            NMSConfig(),
        )
        self.assertEqual(keep.size, 0)

    def test_keeps_higher_score_of_overlapping_pair(self) -> None:
        boxes = np.array([[1, 1, 10, 10], [0, 0, 10, 10]], dtype=np.int64)
        scores = np.array([0.6, 0.9], dtype=np.float32)
        keep = nms(boxes, scores, NMSConfig(iou_threshold=0.5))
        self.assertEqual(keep.tolist(), [1])

    def test_iou_equal_to_threshold_survives(self) -> None:
        # intersection 16, union 16 + 32 - 16 -> IoU exactly 0.5
        boxes = np.array([[0, 0, 4, 4], [0, 0, 4, 8]], dtype=np.int64)
        scores = np.array([0.9, 0.8], dtype=np.float32)
        self.assertEqual(nms(boxes, scores, NMSConfig(iou_threshold=0.5)).tolist(), [0, 1])
        self.assertEqual(nms(boxes, scores, NMSConfig(iou_threshold=0.49)).tolist(), [0])

    def test_only_kept_boxes_suppress(self) -> None:
        # A overlaps B, B overlaps C, A and C are disjoint: B is dropped, C survives
        boxes = np.array([[0, 0, 10, 10], [6, 0, 10, 10], [12, 0, 10, 10]], dtype=np.int64)
        scores = np.array([0.9, 0.8, 0.7], dtype=np.float32)
        keep = nms(boxes, scores, NMSConfig(iou_threshold=0.2))
        self.assertEqual(keep.tolist(), [0, 2])

    def test_zero_threshold_drops_any_overlap(self) -> None:
        boxes = np.array([[0, 0, 10, 10], [9, 0, 10, 10], [10, 0, 10, 10]], dtype=np.int64)
        scores = np.array([0.9, 0.8, 0.7], dtype=np.float32)
        # box 2 only touches box 0 (IoU 0) and box 1 is suppressed first
        self.assertEqual(nms(boxes, scores, NMSConfig(iou_threshold=0.0)).tolist(), [0, 2])

    def test_threshold_one_keeps_duplicates(self) -> None:
        boxes = np.array([[5, 5, 4, 4], [5, 5, 4, 4]], dtype=np.int64)
        scores = np.array([0.5, 0.7], dtype=np.float32)
        self.assertEqual(nms(boxes, scores, NMSConfig(iou_threshold=1.0)).tolist(), [1, 0])

    def test_negative_or_nan_threshold_keeps_nothing(self) -> None:
        # disjoint boxes: max IoU against the kept list never drops below 0.0
        boxes = np.array([[0, 0, 10, 10], [100, 100, 10, 10]], dtype=np.int64)
        scores = np.array([0.9, 0.8], dtype=np.float32)
        self.assertEqual(nms(boxes, scores, NMSConfig(iou_threshold=-0.1)).size, 0)
        self.assertEqual(nms(boxes[:1], scores[:1], NMSConfig(iou_threshold=float("nan"))).size, 0)

    def test_negative_area_pair_below_zero_threshold(self) -> None:
        # union is 0 so IoU falls back to 0.0, which still exceeds a negative threshold
        boxes = np.array([[0, 0, 2, -2], [0, 0, 2, 2]], dtype=np.int64)
        scores = np.array([0.9, 0.8], dtype=np.float32)
        self.assertEqual(nms(boxes, scores, NMSConfig(iou_threshold=-0.5)).size, 0)
        self.assertEqual(nms(boxes, scores, NMSConfig(iou_threshold=0.0)).tolist(), [0, 1])
        keep = classwise_nms(boxes, scores, np.array([0, 1], dtype=np.int64), NMSConfig(iou_threshold=-0.5))
        self.assertEqual(keep.size, 0)

    def test_equal_scores_keep_input_order(self) -> None:
        boxes = np.array([[0, 0, 4, 4], [100, 0, 4, 4], [0, 0, 4, 4]], dtype=np.int64)
        scores = np.array([0.5, 0.5, 0.5], dtype=np.float32)
        self.assertEqual(nms(boxes, scores, NMSConfig()).tolist(), [0, 1])

    def test_classwise_never_suppresses_across_classes(self) -> None:
        boxes = np.array([[10, 10, 4, 4], [10, 10, 4, 4]], dtype=np.int64)
        scores = np.array([0.9, 0.85], dtype=np.float32)
        class_ids = np.array([0, 1], dtype=np.int64)
        keep = classwise_nms(boxes, scores, class_ids, NMSConfig(iou_threshold=0.5))
        self.assertEqual(keep.tolist(), [0, 1])

    def test_classwise_groups_by_ascending_class(self) -> None:
        boxes = np.array(
            [[0, 0, 10, 10], [50, 50, 10, 10], [1, 1, 10, 10], [100, 100, 10, 10], [0, 0, 10, 10]],
            dtype=np.int64,
        )
        scores = np.array([0.4, 0.95, 0.8, 0.6, 0.7], dtype=np.float32)
        class_ids = np.array([2, 0, 2, 0, 1], dtype=np.int64)
        keep = classwise_nms(boxes, scores, class_ids, NMSConfig(iou_threshold=0.5))
        # class 0: both disjoint, by score; class 1: single; class 2: box 0 suppressed by box 2
        self.assertEqual(keep.tolist(), [1, 3, 4, 2])


if __name__ == "__main__":
    unittest.main()
