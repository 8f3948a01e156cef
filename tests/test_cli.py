import pytest
from conftest import png_bytes, read_png_data_url
from desaturate.cli import build_parser, main


@pytest.fixture
def color_png_file(tmp_path, color_rows):
    path = tmp_path / "color.png"
    path.write_bytes(png_bytes(color_rows))
    return path


def test_prints_data_uri(color_png_file, capsys):
    assert main([str(color_png_file)]) == 0
    out = capsys.readouterr().out.strip()
    rows = read_png_data_url(out)
    assert rows[0][0] == (124, 124, 124, 255)


def test_writes_output_file(color_png_file, tmp_path):
    output = tmp_path / "gray.png"
    assert main([str(color_png_file), "-o", str(output)]) == 0
    assert output.read_bytes()[:8] == b"\x89PNG\r\n\x1a\n"


def test_jpeg_output(color_png_file, tmp_path):
    output = tmp_path / "gray.jpg"
    args = [str(color_png_file), "-o", str(output),
            "--type", "image/jpeg", "--quality", "0.8"]
    assert main(args) == 0
    assert output.read_bytes()[:2] == b"\xff\xd8"


def test_missing_file(tmp_path, capsys):
    assert main([str(tmp_path / "missing.png")]) == 1
    assert capsys.readouterr().out == ""


def test_parser_defaults(monkeypatch):
    monkeypatch.delenv("DESATURATE_DEBUG", raising=False)
    args = build_parser().parse_args(["a.png"])
    assert args.image == "a.png"
    assert args.output is None
    assert args.loglevel == "WARNING"


def test_debug_flag(monkeypatch):
    monkeypatch.setenv("DESATURATE_DEBUG", "1")
    assert build_parser().parse_args(["a.png"]).loglevel == "DEBUG"
