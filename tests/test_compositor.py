import numpy as np

from framereel.media.compositor import blank_frame, load_rgba, resample


def _gradient(w, h):
    src = np.zeros((h, w, 4), dtype=np.uint8)
    src[..., 0] = np.arange(w, dtype=np.uint8)[None, :]
    src[..., 1] = np.arange(h, dtype=np.uint8)[:, None]
    src[..., 3] = 255
    return src


def test_resample_same_size_is_identity():
    src = _gradient(7, 5)
    out = resample(src, 7, 5)
    assert out.shape == (5, 7, 4) and out.dtype == np.uint8
    assert np.array_equal(out, src)


def test_resample_to_one_pixel_takes_top_left():
    src = _gradient(6, 3)
    src[0, 0] = (9, 8, 7, 6)
    out = resample(src, 1, 1)
    assert out.tolist() == [[[9, 8, 7, 6]]]


def test_resample_one_pixel_fills_destination():
    src = np.array([[[1, 2, 3, 4]]], dtype=np.uint8)
    out = resample(src, 5, 3)
    assert out.shape == (3, 5, 4)
    assert (out == np.array([1, 2, 3, 4], dtype=np.uint8)).all()


def test_resample_index_mapping():
    src = _gradient(4, 2)
    out = resample(src, 7, 3)
    # x * (4 - 1) // (7 - 1)
    assert out[0, :, 0].tolist() == [0, 0, 1, 1, 2, 2, 3]
    # y * (2 - 1) // (3 - 1)
    assert out[:, 0, 1].tolist() == [0, 0, 1]


def test_resample_is_deterministic():
    rng = np.random.default_rng(1)
    src = rng.integers(0, 256, size=(13, 17, 4), dtype=np.uint8)
    assert resample(src, 31, 9).tobytes() == resample(src, 31, 9).tobytes()


def test_missing_source_gives_transparent_black():
    out = resample(None, 3, 2)
    assert out.shape == (2, 3, 4)
    assert not out.any()
    assert np.array_equal(resample(np.zeros((0, 0, 4), np.uint8), 3, 2), blank_frame(3, 2))


def test_load_rgba(tmp_path, image_factory):
    path = image_factory(tmp_path / "red.png", color=(255, 0, 0, 128), size=(3, 2))
    pixels = load_rgba(path)
    assert pixels.shape == (2, 3, 4)
    assert pixels[1, 2].tolist() == [255, 0, 0, 128]
    (tmp_path / "junk.png").write_bytes(b"not an image")
    assert load_rgba(tmp_path / "junk.png") is None
    assert load_rgba(tmp_path / "missing.png") is None
