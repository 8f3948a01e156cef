import numpy as np


# Integer weights for 0.30 R + 0.59 G + 0.11 B, summing to 100. Dividing
# with floor keeps already-gray pixels unchanged.
RED_WEIGHT = 30
GREEN_WEIGHT = 59
BLUE_WEIGHT = 11
WEIGHT_SUM = RED_WEIGHT + GREEN_WEIGHT + BLUE_WEIGHT

BYTES_PER_PIXEL = 4


def luminance(red, green, blue):
    """
    Returns the truncated luminance of an RGB triple. Works on ints and on
    numpy arrays of a type wide enough for the weighted sum.
    """
    return (
        RED_WEIGHT * red + GREEN_WEIGHT * green + BLUE_WEIGHT * blue
    ) // WEIGHT_SUM


def to_grayscale(pixel_data: np.ndarray, width: int, height: int):
    """
    Converts a flat RGBA uint8 buffer to grayscale in place.

    The buffer is row-major, (y * width + x) * 4 + channel. Every pixel's
    R, G and B are replaced with its luminance, alpha is left untouched.
    """
    expected = width * height * BYTES_PER_PIXEL
    if pixel_data.size != expected:
        raise ValueError(
            f"Pixel buffer has {pixel_data.size} values, expected {expected}"
        )
    if expected == 0:
        return

    pixels = pixel_data.reshape((height, width, BYTES_PER_PIXEL))

    # Read all channels before writing any of them.
    rgb = pixels[:, :, :3].astype(np.uint32)
    gray = luminance(rgb[:, :, 0], rgb[:, :, 1], rgb[:, :, 2])

    pixels[:, :, :3] = gray.astype(np.uint8)[:, :, np.newaxis]
