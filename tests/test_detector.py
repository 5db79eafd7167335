import tempfile
import threading
import time
import unittest
from pathlib import Path

import numpy as np

from dnn_helper.backends.base import CallableNetwork
from dnn_helper.classifier import ImageClassifier
from dnn_helper.detector import ObjectDetector
from dnn_helper.errors import NotInitializedError, ShapeError


def _row(x, y, w, h, class_id, conf, num_classes=5, size=100.0):
    """Build one raw row from a pixel-space xywh box on a square image."""
    row = np.zeros(4 + num_classes, dtype=np.float64)
    row[0] = (x + w / 2) / size
    row[1] = (y + h / 2) / size
    row[2] = w / size
    row[3] = h / size
    row[4 + class_id] = conf
    return row


class TestObjectDetector(unittest.TestCase):
    def setUp(self) -> None:
        self.image = np.zeros((100, 100, 3), dtype=np.uint8)

    def _detector(self, outputs, **kwargs) -> ObjectDetector:
        self.blobs = []

        def infer(blob):
            self.blobs.append(blob)
            return outputs

        return ObjectDetector(CallableNetwork(infer), input_size=(32, 32), **kwargs)

    def test_overlapping_rows_collapse_to_most_confident(self) -> None:
        raw = np.stack([_row(10, 10, 50, 50, 3, 0.9), _row(12, 12, 48, 48, 3, 0.8)])
        dets = self._detector([raw]).detect(self.image, 0.5, nms_iou_threshold=0.5, top_k=10)
        self.assertEqual(len(dets), 1)
        self.assertEqual(dets[0].class_id, 3)
        self.assertAlmostEqual(dets[0].confidence, 0.9)
        for got, want in zip(dets[0].box.as_xywh(), (10, 10, 50, 50)):
            self.assertAlmostEqual(got, want)

    def test_disjoint_rows_both_survive(self) -> None:
        raw = np.stack([_row(0, 0, 10, 10, 3, 0.9), _row(80, 80, 10, 10, 3, 0.8)])
        dets = self._detector([raw]).detect(self.image, 0.5, nms_iou_threshold=0.5, top_k=10)
        self.assertEqual([round(d.confidence, 6) for d in dets], [0.9, 0.8])

    def test_top_k_one(self) -> None:
        raw = np.stack(
            [
                _row(0, 0, 10, 10, 0, 0.8),
                _row(40, 40, 10, 10, 1, 0.95),
                _row(80, 80, 10, 10, 2, 0.9),
            ]
        )
        dets = self._detector([raw]).detect(self.image, 0.5, nms_iou_threshold=0.5, top_k=1)
        self.assertEqual(len(dets), 1)
        self.assertEqual(dets[0].class_id, 1)

    def test_all_zero_output_returns_empty_list(self) -> None:
        raw = np.zeros((100, 9), dtype=np.float32)
        self.assertEqual(self._detector([raw]).detect(self.image, 0.25), [])

    def test_heads_are_pooled_before_suppression(self) -> None:
        head_a = np.stack([_row(10, 10, 50, 50, 3, 0.8)])
        head_b = np.stack([_row(12, 12, 48, 48, 3, 0.9), _row(80, 80, 10, 10, 1, 0.7)])
        dets = self._detector([head_a, head_b]).detect(self.image, 0.5, nms_iou_threshold=0.5)
        self.assertEqual([(d.class_id, round(d.confidence, 6)) for d in dets], [(3, 0.9), (1, 0.7)])

    def test_blob_matches_input_size(self) -> None:
        raw = np.zeros((1, 6), dtype=np.float32)
        self._detector([raw]).detect(np.zeros((48, 64, 3), dtype=np.uint8), 0.5)
        self.assertEqual(self.blobs[0].shape, (1, 3, 32, 32))
        self.assertEqual(self.blobs[0].dtype, np.float32)

    def test_boxes_scaled_to_original_image_not_input_size(self) -> None:
        raw = np.array([[0.5, 0.5, 0.5, 0.5, 0.9]], dtype=np.float64)
        dets = self._detector([raw]).detect(np.zeros((200, 400, 3), dtype=np.uint8), 0.5)
        self.assertEqual(dets[0].box.as_xywh(), (100.0, 50.0, 200.0, 100.0))

    def test_calls_are_stateless(self) -> None:
        raw = np.stack([_row(10, 10, 50, 50, 3, 0.9), _row(12, 12, 48, 48, 3, 0.8)])
        detector = self._detector([raw])
        first = detector.detect(self.image, 0.5, nms_iou_threshold=0.5)
        second = detector.detect(self.image, 0.5, nms_iou_threshold=0.5)
        self.assertEqual(first, second)

    def test_shape_error_propagates(self) -> None:
        with self.assertRaises(ShapeError):
            self._detector([np.zeros((3, 4))]).detect(self.image, 0.5)

    def test_engine_errors_propagate_unchanged(self) -> None:
        def infer(blob):
            raise RuntimeError("device lost")

        detector = ObjectDetector(CallableNetwork(infer), input_size=(32, 32))
        with self.assertRaisesRegex(RuntimeError, "^device lost$"):
            detector.detect(self.image, 0.5)

    def test_invalid_parameters(self) -> None:
        detector = self._detector([np.zeros((1, 6))])
        with self.assertRaises(ValueError):
            detector.detect(self.image, 1.5)
        with self.assertRaises(ValueError):
            detector.detect(self.image, 0.5, nms_iou_threshold=-0.1)
        with self.assertRaises(ValueError):
            detector.detect(self.image, 0.5, top_k=0)

    def test_not_initialized(self) -> None:
        detector = ObjectDetector()
        self.assertFalse(detector.initialized)
        with self.assertRaises(NotInitializedError):
            detector.detect(self.image, 0.5)

    def test_failed_initialize_keeps_detector_uninitialized(self) -> None:
        detector = ObjectDetector()
        with tempfile.TemporaryDirectory() as tmp:
            missing = Path(tmp) / "yolov4.cfg"
            with self.assertRaises(FileNotFoundError):
                detector.initialize(missing, Path(tmp) / "yolov4.weights", (416, 416), "opencv", "cpu")
        self.assertFalse(detector.initialized)

    def test_skip_objectness_layout(self) -> None:
        raw = np.array([[0.5, 0.5, 0.2, 0.2, 0.3, 0.1, 0.8]], dtype=np.float64)
        dets = self._detector([raw], skip_objectness=True).detect(self.image, 0.5)
        self.assertEqual(dets[0].class_id, 1)
        self.assertAlmostEqual(dets[0].confidence, 0.8)


class TestImageClassifier(unittest.TestCase):
    def setUp(self) -> None:
        self.image = np.zeros((20, 30, 3), dtype=np.uint8)

    def test_global_argmax(self) -> None:
        scores = np.array([[0.1, 0.05, 0.7, 0.15]], dtype=np.float32)
        classifier = ImageClassifier(CallableNetwork(lambda blob: [scores]), input_size=(8, 8))
        result = classifier.classify(self.image)
        self.assertEqual(result.class_id, 2)
        self.assertAlmostEqual(result.confidence, 0.7, places=6)

    def test_multi_dimensional_output_is_flattened(self) -> None:
        scores = np.zeros((1, 2, 3, 1), dtype=np.float32)
        scores[0, 1, 2, 0] = 0.9
        classifier = ImageClassifier(CallableNetwork(lambda blob: scores), input_size=(8, 8))
        self.assertEqual(classifier.classify(self.image).class_id, 5)

    def test_empty_output(self) -> None:
        classifier = ImageClassifier(CallableNetwork(lambda blob: [np.zeros((1, 0))]), input_size=(8, 8))
        with self.assertRaises(ShapeError):
            classifier.classify(self.image)

    def test_not_initialized(self) -> None:
        with self.assertRaises(NotInitializedError):
            ImageClassifier().classify(self.image)


class TestForwardSerialization(unittest.TestCase):
    def test_concurrent_forward_calls_do_not_overlap(self) -> None:
        state = {"active": 0, "max_active": 0}
        guard = threading.Lock()

        def infer(blob):
            with guard:
                state["active"] += 1
                state["max_active"] = max(state["max_active"], state["active"])
            time.sleep(0.01)
            with guard:
                state["active"] -= 1
            return [np.zeros((1, 6), dtype=np.float32)]

        detector = ObjectDetector(CallableNetwork(infer), input_size=(8, 8))
        image = np.zeros((8, 8, 3), dtype=np.uint8)
        threads = [threading.Thread(target=detector.detect, args=(image, 0.5)) for _ in range(4)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()
        self.assertEqual(state["max_active"], 1)


if __name__ == "__main__":
    unittest.main()
