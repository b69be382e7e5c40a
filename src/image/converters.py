"""
Image format conversion utilities.

Handles conversions between different image formats using OpenCV:
- NumPy arrays (OpenCV BGR format)
- Base64 encoded strings
- Grayscale/color conversions
"""

import base64
import binascii
import logging
from typing import Tuple

import cv2
import numpy as np

logger = logging.getLogger(__name__)


def to_base64(image: np.ndarray, format: str = "JPEG", quality: int = 85) -> str:
    """
    Convert image to base64 string using OpenCV.

    Args:
        image: Input image as NumPy array (BGR format)
        format: Image format (JPEG, PNG, etc.)
        quality: JPEG quality (1-100, ignored for PNG)

    Returns:
        Base64 encoded string
    """
    ext = f".{format.lower()}" if not format.startswith(".") else format.lower()

    if ext in [".jpg", ".jpeg"]:
        params = [cv2.IMWRITE_JPEG_QUALITY, quality, cv2.IMWRITE_JPEG_OPTIMIZE, 1]
    elif ext == ".png":
        # Map quality to PNG compression (0-9 scale, higher = more compression)
        compression = 9 - int(quality / 11)
        params = [cv2.IMWRITE_PNG_COMPRESSION, max(0, min(9, compression))]
    else:
        params = []

    success, buffer = cv2.imencode(ext, image, params)

    if not success:
        raise ValueError(f"Failed to encode image to {format}")

    return base64.b64encode(buffer).decode("utf-8")


def from_base64(base64_string: str) -> np.ndarray:
    """
    Convert base64 string to NumPy array using OpenCV.

    Args:
        base64_string: Base64 encoded image, optionally with a data URL prefix

    Returns:
        NumPy array in BGR format (OpenCV)

    Raises:
        ValueError: If the string is not a decodable image
    """
    if "," in base64_string and base64_string.startswith("data:"):
        base64_string = base64_string.split(",", 1)[1]

    try:
        image_bytes = base64.b64decode(base64_string, validate=True)
    except (binascii.Error, ValueError) as e:
        raise ValueError(f"Invalid base64 image data: {e}") from e

    nparr = np.frombuffer(image_bytes, np.uint8)
    image = cv2.imdecode(nparr, cv2.IMREAD_COLOR) if nparr.size else None

    if image is None:
        raise ValueError("Failed to decode base64 image")

    return image


def ensure_bgr(image: np.ndarray) -> np.ndarray:
    """
    Ensure image is in BGR format (convert from grayscale if needed).

    Args:
        image: Input image (grayscale, BGR or BGRA)

    Returns:
        Image in BGR format
    """
    if image.ndim == 2:
        return cv2.cvtColor(image, cv2.COLOR_GRAY2BGR)
    if image.shape[2] == 4:
        return cv2.cvtColor(image, cv2.COLOR_BGRA2BGR)
    return image.copy()


def ensure_grayscale(image: np.ndarray) -> np.ndarray:
    """
    Ensure image is single channel (convert from BGR/BGRA if needed).

    Args:
        image: Input image (grayscale, BGR or BGRA)

    Returns:
        Grayscale image
    """
    if image.ndim == 3:
        if image.shape[2] == 1:
            return image[:, :, 0].copy()
        if image.shape[2] == 4:
            return cv2.cvtColor(image, cv2.COLOR_BGRA2GRAY)
        return cv2.cvtColor(image, cv2.COLOR_BGR2GRAY)
    return image.copy()


def create_thumbnail(
    image: np.ndarray, width: int = 320, quality: int = 70
) -> Tuple[np.ndarray, str]:
    """
    Downscale image to the given width and encode it as JPEG base64.

    Args:
        image: Input image
        width: Target width (images narrower than this are kept as is)
        quality: JPEG quality

    Returns:
        Tuple of (thumbnail image, base64 string)
    """
    h, w = image.shape[:2]
    if w > width:
        height = max(1, int(h * width / w))
        thumbnail = cv2.resize(image, (width, height), interpolation=cv2.INTER_AREA)
    else:
        thumbnail = image

    return thumbnail, to_base64(thumbnail, "JPEG", quality)
