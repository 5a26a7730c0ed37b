import math
import unittest

import numpy as np

from defect_kit.decode import decode


LABELS = ("scratch", "dent")


def _logit(p: float) -> float:
    return math.log(p / (1.0 - p))


def _tensor(rows) -> np.ndarray:
    """Box rows [x, y, w, h, obj, cls...] -> [1, C, N] with offset b*C + c."""
    arr = np.asarray(rows, dtype=np.float32)
    n, c = arr.shape
    return arr.reshape(1, c, n)


class TestDecode(unittest.TestCase):
    def test_single_box_hand_computed(self) -> None:
        # cx=0.5, cy=0.5, bw=0.25, bh=0.5, objectness=0.95, class 0 favoured
        good = [0.0, 0.0, _logit(0.25), 0.0, _logit(0.95), 10.0, 0.0]
        weak = [0.0, 0.0, 0.0, 0.0, -3.0, 10.0, 0.0]
        dets = decode(_tensor([good, weak]), 640, 480, LABELS, 0.7)

        self.assertEqual(len(dets), 1)
        det = dets[0]
        self.assertEqual(det.label, "scratch")
        expected_conf = 0.95 * (1.0 / (1.0 + math.exp(-10.0)))
        self.assertAlmostEqual(det.confidence, expected_conf, places=5)
        self.assertAlmostEqual(det.rect.x, 240.0, places=3)
        self.assertAlmostEqual(det.rect.y, 120.0, places=3)
        self.assertAlmostEqual(det.rect.width, 160.0, places=3)
        self.assertAlmostEqual(det.rect.height, 240.0, places=3)

    def test_low_objectness_excluded(self) -> None:
        rows = [[0.0, 0.0, 0.0, 0.0, _logit(0.6), 20.0, 0.0]]
        self.assertEqual(decode(_tensor(rows), 100, 100, LABELS, 0.7), [])

    def test_low_class_confidence_excluded(self) -> None:
        # objectness 0.9 passes, but an even class split gives 0.45 overall
        rows = [[0.0, 0.0, 0.0, 0.0, _logit(0.9), 1.0, 1.0]]
        self.assertEqual(decode(_tensor(rows), 100, 100, LABELS, 0.7), [])

    def test_best_class_and_tie_goes_to_first(self) -> None:
        rows = [
            [0.0, 0.0, 0.0, 0.0, 8.0, 0.0, 9.0],
            [0.0, 0.0, 0.0, 0.0, 8.0, 5.0, 5.0],
        ]
        dets = decode(_tensor(rows), 100, 100, ("scratch", "dent"), 0.4)
        self.assertEqual([d.label for d in dets], ["dent", "scratch"])

    def test_sorted_by_confidence_stable(self) -> None:
        rows = [
            [-1.0, 0.0, 0.0, 0.0, 3.0, 10.0, 0.0],
            [0.0, 0.0, 0.0, 0.0, 6.0, 10.0, 0.0],
            [1.0, 0.0, 0.0, 0.0, 3.0, 10.0, 0.0],
        ]
        dets = decode(_tensor(rows), 100, 100, LABELS, 0.5)
        self.assertEqual(len(dets), 3)
        self.assertGreater(dets[0].confidence, dets[1].confidence)
        # equal confidences keep box order: raw x -1 before raw x 1
        self.assertEqual(dets[1].confidence, dets[2].confidence)
        self.assertLess(dets[1].rect.x, dets[2].rect.x)

    def test_all_zero_class_scores(self) -> None:
        rows = [[0.0, 0.0, 0.0, 0.0, 10.0, 0.0, 0.0] for _ in range(4)]
        with self.assertLogs("defect_kit.decode", level="INFO"):
            self.assertEqual(decode(_tensor(rows), 100, 100, LABELS, 0.1), [])

    def test_zero_guard_only_samples_first_ten_boxes(self) -> None:
        rows = [[0.0, 0.0, 0.0, 0.0, 10.0, 0.0, 0.0] for _ in range(10)]
        rows.append([0.0, 0.0, 0.0, 0.0, 10.0, 10.0, 0.0])
        self.assertEqual(decode(_tensor(rows), 100, 100, LABELS, 0.1), [])

        rows[9] = [0.0, 0.0, 0.0, 0.0, 10.0, 0.0, 0.5]
        self.assertEqual(len(decode(_tensor(rows), 100, 100, LABELS, 0.1)), 11)

    def test_class_count_mismatch(self) -> None:
        rows = [[0.0, 0.0, 0.0, 0.0, 10.0, 10.0, 0.0]]
        with self.assertLogs("defect_kit.decode", level="WARNING"):
            self.assertEqual(decode(_tensor(rows), 100, 100, ("scratch",), 0.5), [])

    def test_no_class_channels(self) -> None:
        self.assertEqual(decode(np.zeros((1, 5, 3), dtype=np.float32), 100, 100, (), 0.5), [])

    def test_not_three_dimensional(self) -> None:
        with self.assertLogs("defect_kit.decode", level="WARNING"):
            self.assertEqual(decode(np.ones((7, 4), dtype=np.float32), 100, 100, LABELS, 0.5), [])

    def test_flat_buffer_with_shape(self) -> None:
        row = [0.0, 0.0, 0.0, 0.0, 10.0, 10.0, 0.0]
        dets = decode(row, 200, 100, LABELS, 0.5, shape=(1, 7, 1))
        self.assertEqual(len(dets), 1)
        self.assertAlmostEqual(dets[0].rect.width, 100.0)
        self.assertAlmostEqual(dets[0].rect.height, 50.0)

    def test_flat_buffer_size_mismatch(self) -> None:
        self.assertEqual(decode([0.0] * 6, 100, 100, LABELS, 0.5, shape=(1, 7, 1)), [])

    def test_ragged_buffer_returns_empty(self) -> None:
        with self.assertLogs("defect_kit.decode", level="WARNING"):
            self.assertEqual(decode([[[0.0, 1.0], [0.0]]], 100, 100, LABELS, 0.5), [])

    def test_unusable_shape_returns_empty(self) -> None:
        with self.assertLogs("defect_kit.decode", level="WARNING"):
            self.assertEqual(decode([0.0] * 7, 100, 100, LABELS, 0.5, shape=(1, 7, None)), [])
        self.assertEqual(decode([0.0] * 7, 100, 100, LABELS, 0.5, shape=(1, "seven", 1)), [])

    def test_non_numeric_buffer_returns_empty(self) -> None:
        t = np.array([[["a"]] * 7], dtype=object)
        with self.assertLogs("defect_kit.decode", level="WARNING"):
            self.assertEqual(decode(t, 100, 100, LABELS, 0.5), [])

    def test_batch_decodes_first_image(self) -> None:
        first = [0.0, 0.0, 0.0, 0.0, 10.0, 10.0, 0.0]
        second = [0.0, 0.0, 0.0, 0.0, 10.0, 0.0, 10.0]
        flat = np.asarray(first + second, dtype=np.float32)
        with self.assertLogs("defect_kit.decode", level="WARNING"):
            dets = decode(flat.reshape(2, 7, 1), 100, 100, LABELS, 0.5)
        self.assertEqual([d.label for d in dets], ["scratch"])

    def test_confidence_capped_at_one(self) -> None:
        rows = [[0.0, 0.0, 0.0, 0.0, 50.0, 50.0, 0.0]]
        dets = decode(_tensor(rows), 100, 100, LABELS, 0.5)
        self.assertLessEqual(dets[0].confidence, 1.0)

    def test_input_not_mutated(self) -> None:
        t = _tensor([[0.3, -0.2, 0.1, 0.4, 5.0, 10.0, 0.0]])
        before = t.copy()
        decode(t, 100, 100, LABELS, 0.5)
        self.assertTrue(np.array_equal(t, before))


if __name__ == "__main__":
    unittest.main()
