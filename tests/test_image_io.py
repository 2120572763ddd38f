"""
Tests for the Pillow boundary and the command-line driver.
"""
from functools import partial

import numpy as np
import pytest
from PIL import Image

import ConvPipeline
from ImageIO import buffer_to_image, clean_outputs, load_image, output_filename, save_image
from KernelCatalog import KernelCatalog, KernelDescriptor


@pytest.fixture
def rgb_png(tmp_path):
    """A 3x2 PNG whose first pixel is pure red."""
    pixels = np.zeros((2, 3, 3), dtype=np.uint8)
    pixels[0, 0] = (255, 0, 0)
    pixels[1, 2] = (10, 20, 30)
    path = tmp_path / "0_input.png"
    Image.fromarray(pixels).save(path)
    return path


def test_load_image_reorders_to_bgr(rgb_png):
    buffer, width, height = load_image(rgb_png, bytes_per_pixel=3)
    assert (width, height) == (3, 2)
    pixels = buffer.reshape(2, 3, 3)
    assert pixels[0, 0].tolist() == [0, 0, 255]
    assert pixels[1, 2].tolist() == [30, 20, 10]


def test_load_image_adds_opaque_alpha(rgb_png):
    buffer, width, height = load_image(rgb_png)
    pixels = buffer.reshape(height, width, 4)
    assert pixels[0, 0].tolist() == [0, 0, 255, 255]
    assert (pixels[:, :, 3] == 255).all()


def test_load_image_rejects_bad_depth(rgb_png):
    with pytest.raises(ValueError):
        load_image(rgb_png, bytes_per_pixel=2)


def test_buffer_to_image_restores_rgb():
    buffer = np.array([0, 0, 255, 30, 20, 10], dtype=np.uint8)
    img = buffer_to_image(buffer, 2, 1, 3)
    assert img.mode == "RGB"
    assert img.getpixel((0, 0)) == (255, 0, 0)
    assert img.getpixel((1, 0)) == (10, 20, 30)


def test_buffer_to_image_rejects_wrong_size():
    with pytest.raises(ValueError):
        buffer_to_image(np.zeros(5, dtype=np.uint8), 2, 1, 3)


def test_output_filename():
    assert output_filename(1, "Sharpen3x3") == "1_Sharpen3x3.jpeg"
    assert output_filename(12, "Sobel3x3", "tiff") == "12_Sobel3x3.tiff"


def test_save_png_is_lossless(tmp_path, rgb_png):
    buffer, width, height = load_image(rgb_png, bytes_per_pixel=4)
    path = save_image(buffer, width, height, 4, "Copy", 3, tmp_path, extension="png")
    assert path == tmp_path / "3_Copy.png"
    reloaded, _, _ = load_image(path, bytes_per_pixel=4)
    np.testing.assert_array_equal(reloaded, buffer)


def test_save_jpeg_drops_alpha(tmp_path):
    buffer = np.full(4 * 4 * 4, 128, dtype=np.uint8)
    path = save_image(buffer, 4, 4, 4, "Gray", 1, tmp_path)
    with Image.open(path) as img:
        assert img.format == "JPEG"
        assert img.mode == "RGB"
        assert img.size == (4, 4)


def test_clean_outputs(tmp_path):
    for name in ("1_a.jpeg", "2_b.tiff", "0_input.png", "notes.txt"):
        (tmp_path / name).write_bytes(b"x")
    removed = clean_outputs(tmp_path)
    assert sorted(p.name for p in removed) == ["1_a.jpeg", "2_b.tiff"]
    assert sorted(p.name for p in tmp_path.iterdir()) == ["0_input.png", "notes.txt"]


def test_main_writes_one_file_per_kernel(tmp_path, rgb_png, capsys):
    (tmp_path / "99_stale.jpeg").write_bytes(b"x")
    catalog = KernelCatalog([
        KernelDescriptor("Identity", [[1]]),
        KernelDescriptor("Blur", np.ones((3, 3)), factor=1 / 9),
        KernelDescriptor("Edge", [[0, -1, 0], [-1, 4, -1], [0, -1, 0]],
                         grayscale=True, blur_reference="Blur"),
    ])
    saved = ConvPipeline.main(input_path=rgb_png, output_dir=tmp_path, catalog=catalog)

    assert [p.name for p in saved] == ["1_Identity.jpeg", "2_Blur.jpeg", "3_Edge.jpeg"]
    assert not (tmp_path / "99_stale.jpeg").exists()
    assert all(p.exists() for p in saved)
    out = capsys.readouterr().out
    assert "Applied Edge + Grayscale + Blur filter: Blur" in out
    assert "Saved image file 3_Edge.jpeg" in out


def test_main_parallel_entries(tmp_path, rgb_png):
    catalog = KernelCatalog([KernelDescriptor("A", [[1]]), KernelDescriptor("B", [[2]])])
    saved = ConvPipeline.main(input_path=rgb_png, output_dir=tmp_path / "out",
                              catalog=catalog, n_jobs=2, extension="png",
                              backend="threading")
    assert [p.name for p in saved] == ["1_A.png", "2_B.png"]


def test_cli_reports_missing_input(tmp_path, monkeypatch, capsys):
    monkeypatch.chdir(tmp_path)
    assert ConvPipeline.cli([str(tmp_path / "missing.png")]) == 1
    assert "Error:" in capsys.readouterr().out


def test_clean_outputs_keeps_listed_files(tmp_path):
    for name in ("photo.jpeg", "1_Sharpen3x3.jpeg"):
        (tmp_path / name).write_bytes(b"x")
    removed = clean_outputs(tmp_path, keep=[tmp_path / "photo.jpeg"])
    assert [p.name for p in removed] == ["1_Sharpen3x3.jpeg"]
    assert (tmp_path / "photo.jpeg").exists()


def test_cli_keeps_jpeg_input(tmp_path, monkeypatch):
    Image.fromarray(np.full((3, 3, 3), 90, dtype=np.uint8)).save(tmp_path / "photo.jpeg")
    monkeypatch.chdir(tmp_path)
    monkeypatch.setattr(ConvPipeline, "main", partial(
        ConvPipeline.main, catalog=KernelCatalog([KernelDescriptor("Identity", [[1]])])))
    assert ConvPipeline.cli(["photo.jpeg"]) == 0
    assert (tmp_path / "photo.jpeg").exists()
    assert (tmp_path / "1_Identity.jpeg").exists()
