import io
import base64
from typing import List, Sequence, Tuple
import cairo
import pytest

from desaturate import config as config_module


Pixel = Tuple[int, int, int, int]


def _premultiply(channel: int, alpha: int) -> int:
    return (channel * alpha + 127) // 255


def png_bytes(rows: Sequence[Sequence[Pixel]]) -> bytes:
    """Encodes rows of straight RGBA pixels as a PNG."""
    height = len(rows)
    width = len(rows[0]) if rows else 0
    surface = cairo.ImageSurface(cairo.FORMAT_ARGB32, width, height)
    stride = surface.get_stride()
    data = surface.get_data()
    for y, row in enumerate(rows):
        for x, (r, g, b, a) in enumerate(row):
            offset = y * stride + x * 4
            # Cairo's FORMAT_ARGB32 is BGRA in memory on little-endian.
            data[offset:offset + 4] = bytes([
                _premultiply(b, a),
                _premultiply(g, a),
                _premultiply(r, a),
                a,
            ])
    surface.mark_dirty()
    stream = io.BytesIO()
    surface.write_to_png(stream)
    return stream.getvalue()


def png_data_url(rows: Sequence[Sequence[Pixel]]) -> str:
    payload = base64.b64encode(png_bytes(rows)).decode("ascii")
    return f"data:image/png;base64,{payload}"


def read_png_data_url(uri: str) -> List[List[Pixel]]:
    """
    Decodes a PNG data URL into rows of RGBA pixels. Color values are only
    exact for opaque pixels.
    """
    assert uri.startswith("data:image/png;base64,"), uri[:40]
    body = base64.b64decode(uri.split(",", 1)[1])
    surface = cairo.ImageSurface.create_from_png(io.BytesIO(body))
    stride = surface.get_stride()
    data = surface.get_data()
    rows = []
    for y in range(surface.get_height()):
        row = []
        for x in range(surface.get_width()):
            offset = y * stride + x * 4
            b, g, r, a = data[offset:offset + 4]
            row.append((r, g, b, a))
        rows.append(row)
    return rows


@pytest.fixture(autouse=True)
def isolated_config(tmp_path, monkeypatch):
    """Points the process-wide config at an empty temporary file."""
    monkeypatch.setattr(
        config_module, "CONFIG_FILE", tmp_path / "config.yaml"
    )
    monkeypatch.setattr(config_module, "config_mgr", None)
    return config_module.get_config()


@pytest.fixture
def color_rows() -> List[List[Pixel]]:
    """A 3x2 opaque image with one saturated color per pixel."""
    return [
        [(200, 100, 50, 255), (255, 0, 0, 255), (0, 255, 0, 255)],
        [(0, 0, 255, 255), (255, 255, 255, 255), (10, 20, 30, 255)],
    ]


@pytest.fixture
def color_png_url(color_rows) -> str:
    return png_data_url(color_rows)
