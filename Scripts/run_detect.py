from __future__ import annotations

import argparse
from pathlib import Path

import cv2

from dnn_helper import build_classifier, build_detector, load_class_names, load_detector_profile


def read_image(path: str):
    img = cv2.imread(path)
    if img is None:
        raise FileNotFoundError(f"Could not read image at path: {path}")
    return img


def main() -> int:
    parser = argparse.ArgumentParser(description="Run a detector or classifier profile on one image.")
    parser.add_argument("--profile", required=True, help="Detector profile JSON.")
    parser.add_argument("--image", required=True, help="Input image path.")
    parser.add_argument("--classify", action="store_true", help="Run whole-image classification instead of detection.")
    parser.add_argument("--conf", type=float, default=None, help="Override confidence_threshold.")
    args = parser.parse_args()

    profile = load_detector_profile(Path(args.profile))
    image = read_image(args.image)
    class_names = load_class_names(profile.class_names) if profile.class_names is not None else {}

    if args.classify:
        result = build_classifier(profile).classify(image)
        print(class_names.get(result.class_id, result.class_id), f"{result.confidence:.4f}")
        return 0

    conf = profile.confidence_threshold if args.conf is None else float(args.conf)
    detections = build_detector(profile).detect(
        image,
        confidence_threshold=conf,
        nms_iou_threshold=profile.nms_iou_threshold,
        top_k=profile.top_k,
    )
    for det in detections:
        print(class_names.get(det.class_id, det.class_id), f"{det.confidence:.4f}", det.box.as_xywh())
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
