import json
import tempfile
import unittest
from pathlib import Path

from dnn_helper.config import DetectorProfile, build_detector, load_detector_profile


class TestDetectorProfile(unittest.TestCase):
    def _write_profile(self, payload: dict) -> Path:
        tmpdir = tempfile.TemporaryDirectory()
        self.addCleanup(tmpdir.cleanup)
        path = Path(tmpdir.name) / "profile.json"
        path.write_text(json.dumps(payload), encoding="utf-8")
        return path

    def _base(self, **overrides) -> dict:
        payload = {
            "schema_version": 1,
            "model_config": "models/yolov4.cfg",
            "model_weights": "models/yolov4.weights",
            "input_width": 416,
            "input_height": 416,
            "confidence_threshold": 0.4,
        }
        payload.update(overrides)
        return payload

    def test_load_ok_with_defaults(self) -> None:
        path = self._write_profile(self._base())
        profile = load_detector_profile(path)
        self.assertIsInstance(profile, DetectorProfile)
        self.assertEqual(profile.input_size, (416, 416))
        self.assertEqual(profile.confidence_threshold, 0.4)
        self.assertEqual(profile.nms_iou_threshold, 0.2)
        self.assertEqual(profile.top_k, 300)
        self.assertEqual(profile.backend, "cuda")
        self.assertEqual(profile.target, "cuda")
        self.assertFalse(profile.skip_objectness)
        self.assertIsNone(profile.class_names)

    def test_relative_paths_resolve_against_profile_dir(self) -> None:
        path = self._write_profile(self._base(class_names="models/coco.names"))
        profile = load_detector_profile(path)
        base = path.resolve().parent
        self.assertEqual(profile.model_config, base / "models" / "yolov4.cfg")
        self.assertEqual(profile.model_weights, base / "models" / "yolov4.weights")
        self.assertEqual(profile.class_names, base / "models" / "coco.names")

    def test_all_fields(self) -> None:
        path = self._write_profile(
            self._base(
                backend="opencv",
                target="cpu",
                nms_iou_threshold=0.45,
                top_k=50,
                skip_objectness=True,
                notes="darknet yolov4",
            )
        )
        profile = load_detector_profile(path)
        self.assertEqual((profile.backend, profile.target), ("opencv", "cpu"))
        self.assertEqual(profile.nms_iou_threshold, 0.45)
        self.assertEqual(profile.top_k, 50)
        self.assertTrue(profile.skip_objectness)
        self.assertEqual(profile.notes, "darknet yolov4")

    def test_unknown_keys_rejected(self) -> None:
        with self.assertRaises(ValueError):
            load_detector_profile(self._write_profile(self._base(extra=1)))

    def test_missing_confidence_threshold_rejected(self) -> None:
        payload = self._base()
        del payload["confidence_threshold"]
        with self.assertRaises(ValueError):
            load_detector_profile(self._write_profile(payload))

    def test_invalid_values_rejected(self) -> None:
        for bad in (
            {"confidence_threshold": 1.2},
            {"confidence_threshold": True},
            {"nms_iou_threshold": -0.5},
            {"top_k": 0},
            {"top_k": 2.5},
            {"input_width": 0},
            {"schema_version": 2},
            {"skip_objectness": "yes"},
            {"model_config": 5},
        ):
            with self.subTest(bad=bad):
                with self.assertRaises(ValueError):
                    load_detector_profile(self._write_profile(self._base(**bad)))

    def test_invalid_json(self) -> None:
        tmpdir = tempfile.TemporaryDirectory()
        self.addCleanup(tmpdir.cleanup)
        path = Path(tmpdir.name) / "profile.json"
        path.write_text("{not json", encoding="utf-8")
        with self.assertRaises(ValueError):
            load_detector_profile(path)

    def test_missing_file(self) -> None:
        with self.assertRaises(FileNotFoundError):
            load_detector_profile(Path("does/not/exist.json"))

    def test_build_detector_with_missing_model(self) -> None:
        profile = load_detector_profile(self._write_profile(self._base(backend="opencv", target="cpu")))
        with self.assertRaises(FileNotFoundError):
            build_detector(profile)


if __name__ == "__main__":
    unittest.main()
