"""Render a Julia-set fractal in parallel and save it as a 24-bit bitmap."""

from __future__ import annotations

import argparse
import math
import struct
import sys
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import Iterable, Iterator, Optional, Sequence

Texel = tuple[int, int, int]

IMAGE_WIDTH = 2048
IMAGE_HEIGHT = 2048
SAMPLES_PER_PIXEL_W = 3
SAMPLES_PER_PIXEL_H = 3
WINDOW_MIN_X = -0.5
WINDOW_MAX_X = 0.5
WINDOW_MIN_Y = -0.5
WINDOW_MAX_Y = 0.5
CX = -0.8
CY = 0.156
MAX_ITERATIONS = 1000

_BMP_HEADER_SIZE = 54
_BMP_INFO_HEADER_SIZE = 40
_BMP_RESOLUTION = 72


@dataclass(frozen=True)
class Color:
    """A color made of red, green and blue components."""

    r: float = 0.0
    g: float = 0.0
    b: float = 0.0

    def __add__(self, other: "Color") -> "Color":
        return Color(self.r + other.r, self.g + other.g, self.b + other.b)

    def __truediv__(self, divisor: float) -> "Color":
        return Color(self.r / divisor, self.g / divisor, self.b / divisor)

    def __iter__(self) -> Iterator[float]:
        return iter((self.r, self.g, self.b))

    def to_texel(self) -> Texel:
        """Scale components in [0, 1] to bytes, truncating toward zero."""
        return (int(self.r * 255), int(self.g * 255), int(self.b * 255))


def colorize(v: float) -> Color:
    """Return a rainbow color for the scalar ``v``."""
    third = 2.0 * math.pi / 3.0
    return Color(
        0.5 + 0.5 * math.cos(v),
        0.5 + 0.5 * math.cos(v + third),
        0.5 + 0.5 * math.cos(v + 2 * third),
    )


def lerp(x: float, lo: float, hi: float) -> float:
    """Linearly interpolate between ``lo`` and ``hi`` by the weight ``x``."""
    return lo + x * (hi - lo)


def julia(x: float, y: float, cx: float, cy: float) -> Color:
    """Return the Julia-set color for the point (x, y) and constant (cx, cy)."""
    for i in range(MAX_ITERATIONS):
        if x * x + y * y > 4:
            return colorize(math.sqrt(i))
        x, y = x * x - y * y + cx, 2 * x * y + cy
    return Color()


def write_bmp(texels: Sequence[Texel], width: int, height: int, path: str) -> None:
    """Write ``texels`` (row-major, top row first) as a 24-bit BMP file.

    Raises ValueError if the texel count does not match the dimensions and
    OSError if the file cannot be written.
    """
    if width < 1 or height < 1:
        raise ValueError(f"image dimensions must be positive, got {width}x{height}")
    if len(texels) != width * height:
        raise ValueError(
            f"expected {width * height} texels for {width}x{height}, got {len(texels)}"
        )
    padding = -(3 * width) & 3
    stride = 3 * width + padding
    header = struct.pack(
        "<2sIII", b"BM", _BMP_HEADER_SIZE + stride * height, 0, _BMP_HEADER_SIZE
    )
    info = struct.pack(
        "<IIIHHIIIIII",
        _BMP_INFO_HEADER_SIZE,
        width,
        height,
        1,
        24,
        0,
        0,
        _BMP_RESOLUTION,
        _BMP_RESOLUTION,
        0,
        0,
    )
    data = bytearray(header + info)
    pad = bytes(padding)
    for y in reversed(range(height)):
        for r, g, b in texels[y * width : (y + 1) * width]:
            data += bytes((b, g, r))
        data += pad
    with open(path, "wb") as file:
        file.write(data)


def _render_row(y: int, width: int, height: int) -> list[Texel]:
    row: list[Texel] = []
    samples = SAMPLES_PER_PIXEL_W * SAMPLES_PER_PIXEL_H
    for x in range(width):
        color = Color()
        for sy in range(SAMPLES_PER_PIXEL_H):
            dy = (y + sy / SAMPLES_PER_PIXEL_H) / height
            for sx in range(SAMPLES_PER_PIXEL_W):
                dx = (x + sx / SAMPLES_PER_PIXEL_W) / width
                color += julia(
                    lerp(dx, WINDOW_MIN_X, WINDOW_MAX_X),
                    lerp(dy, WINDOW_MIN_Y, WINDOW_MAX_Y),
                    CX,
                    CY,
                )
        row.append((color / samples).to_texel())
    return row


def render(
    width: int = IMAGE_WIDTH,
    height: int = IMAGE_HEIGHT,
    workers: Optional[int] = None,
) -> list[Texel]:
    """Render the fractal, one task per image row.

    ``workers`` is the number of threads; None lets the executor choose and
    0 renders on the calling thread. Returns row-major texels, top row first.
    """
    if width < 1 or height < 1:
        raise ValueError(f"image dimensions must be positive, got {width}x{height}")
    rows: Iterable[list[Texel]]
    if workers == 0:
        rows = [_render_row(y, width, height) for y in range(height)]
    else:
        with ThreadPoolExecutor(max_workers=workers) as executor:
            rows = list(
                executor.map(lambda y: _render_row(y, width, height), range(height))
            )
    return [texel for row in rows for texel in row]


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Render the fractal and write it to a bitmap file."""
    parser = argparse.ArgumentParser(description="Render a Julia-set fractal.")
    parser.add_argument("--width", type=int, default=IMAGE_WIDTH)
    parser.add_argument("--height", type=int, default=IMAGE_HEIGHT)
    parser.add_argument("--workers", type=int, default=None)
    parser.add_argument("--output", default="fractal.bmp")
    args = parser.parse_args(argv)

    pixels = render(args.width, args.height, args.workers)
    try:
        write_bmp(pixels, args.width, args.height, args.output)
    except OSError:
        print(f"Could not open file '{args.output}'", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())