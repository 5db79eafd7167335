from typing import Tuple

import numpy as np


def blob_from_image(
    image_bgr: np.ndarray,
    input_size: Tuple[int, int],
    *,
    scale: float = 1 / 255.0,
    swap_rb: bool = True,
) -> np.ndarray:
    """
    Turn a BGR image into the network input blob.

    The image is stretched to `input_size` (width, height) without padding, so
    normalized network geometry maps straight back onto the original image.

    Returns:
        float32 blob shaped (1, 3, H, W)
    """
    try:
        import cv2  # type: ignore
    except Exception as e:  # pragma: no cover
        raise ImportError("OpenCV is required for blob_from_image(). Install with `pip install opencv-python`.") from e

    if image_bgr is None or not hasattr(image_bgr, "shape"):
        raise TypeError("image_bgr must be a NumPy array (BGR).")
    if image_bgr.ndim != 3 or image_bgr.shape[2] != 3:
        raise ValueError(f"Expected image shape (H, W, 3), got {getattr(image_bgr, 'shape', None)}")

    new_w, new_h = int(input_size[0]), int(input_size[1])
    if new_w <= 0 or new_h <= 0:
        raise ValueError(f"input_size must be positive, got {input_size}")

    h, w = image_bgr.shape[:2]
    img = image_bgr
    if (w, h) != (new_w, new_h):
        img = cv2.resize(img, (new_w, new_h), interpolation=cv2.INTER_LINEAR)

    if swap_rb:
        img = img[:, :, ::-1]
    blob = img.astype(np.float32) * np.float32(scale)
    blob = np.ascontiguousarray(np.transpose(blob, (2, 0, 1))[None, ...])
    return blob
