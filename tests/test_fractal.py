import struct

import pytest

from taskweave.fractal import (
    Color,
    colorize,
    julia,
    lerp,
    main,
    render,
    write_bmp,
)


def test_lerp_endpoints_and_midpoint():
    assert lerp(0.0, -0.5, 0.5) == -0.5
    assert lerp(1.0, -0.5, 0.5) == 0.5
    assert lerp(0.5, -0.5, 0.5) == 0.0


def test_colorize_components_in_unit_range():
    for v in [0.0, 0.3, 1.0, 2.5, 10.0, 31.6]:
        color = colorize(v)
        assert all(0.0 <= c <= 1.0 for c in color)


def test_colorize_zero_has_full_red():
    assert colorize(0.0).r == pytest.approx(1.0)


def test_julia_escaping_point_uses_iteration_zero():
    assert julia(3.0, 0.0, -0.8, 0.156) == colorize(0.0)


def test_julia_bounded_point_is_black():
    assert julia(0.0, 0.0, 0.0, 0.0) == Color(0.0, 0.0, 0.0)


def test_color_arithmetic():
    total = Color(0.2, 0.4, 0.6) + Color(0.2, 0.4, 0.6)
    assert total / 2 == Color(0.2, 0.4, 0.6)


def test_write_bmp_header_and_pixels(tmp_path):
    path = tmp_path / "out.bmp"
    texels = [(10, 20, 30), (40, 50, 60)]
    write_bmp(texels, 1, 2, str(path))
    data = path.read_bytes()

    magic, size, reserved, offset = struct.unpack_from("<2sIII", data, 0)
    assert magic == b"BM"
    assert offset == 54
    assert reserved == 0
    assert size == len(data)

    fields = struct.unpack_from("<IIIHHIIIIII", data, 14)
    assert fields[0] == 40
    assert fields[1:3] == (1, 2)
    assert fields[3:5] == (1, 24)
    assert fields[7:9] == (72, 72)

    # Rows are stored bottom-up in BGR order, padded to 4 bytes.
    stride = (size - offset) // 2
    assert stride % 4 == 0
    assert data[offset : offset + 3] == bytes((60, 50, 40))
    assert data[offset + stride : offset + stride + 3] == bytes((30, 20, 10))


def test_write_bmp_rejects_wrong_texel_count(tmp_path):
    with pytest.raises(ValueError):
        write_bmp([(0, 0, 0)], 2, 2, str(tmp_path / "x.bmp"))


def test_write_bmp_unwritable_path_raises(tmp_path):
    with pytest.raises(OSError):
        write_bmp([(0, 0, 0)], 1, 1, str(tmp_path / "missing" / "x.bmp"))


def test_render_is_deterministic_across_worker_counts():
    inline = render(4, 3, 0)
    threaded = render(4, 3, 3)
    assert inline == threaded
    assert len(inline) == 12
    assert all(0 <= c <= 255 for texel in inline for c in texel)


def test_render_rejects_empty_image():
    with pytest.raises(ValueError):
        render(0, 4, 1)


def test_main_writes_bitmap(tmp_path):
    path = tmp_path / "fractal.bmp"
    assert main(["--width", "3", "--height", "2", "--workers", "2", "--output", str(path)]) == 0
    data = path.read_bytes()
    assert data[:2] == b"BM"
    assert struct.unpack_from("<I", data, 2)[0] == len(data)


def test_main_reports_failure(tmp_path):
    target = tmp_path / "nope" / "fractal.bmp"
    assert main(["--width", "1", "--height", "1", "--output", str(target)]) == 1