from framereel.media.thumbnails import ThumbnailCache, upload_pixmap


class _FakeGpu:
    """Records uploads/releases instead of creating pixmaps."""

    def __init__(self):
        self.uploaded = 0
        self.released = []

    def upload(self, pixels):
        self.uploaded += 1
        return f"tex{self.uploaded}"

    def release(self, handle):
        self.released.append(handle)


def test_get_or_load_caches_size_and_handle(tmp_path, image_factory):
    image_factory(tmp_path / "media" / "a.png", size=(5, 3))
    gpu = _FakeGpu()
    cache = ThumbnailCache(upload=gpu.upload, release=gpu.release)
    first = cache.get_or_load(tmp_path, "media/a.png")
    assert (first.handle, first.width, first.height) == ("tex1", 5, 3)
    assert cache.get_or_load(tmp_path, "media/a.png") is first
    assert gpu.uploaded == 1
    assert len(cache) == 1


def test_failures_are_not_cached(tmp_path, image_factory):
    gpu = _FakeGpu()
    cache = ThumbnailCache(upload=gpu.upload, release=gpu.release)
    assert cache.get_or_load(tmp_path, "media/late.png") is None
    assert len(cache) == 0
    image_factory(tmp_path / "media" / "late.png")
    assert cache.get_or_load(tmp_path, "media/late.png") is not None


def test_invalidate_and_clear_release_handles(tmp_path, image_factory):
    image_factory(tmp_path / "media" / "a.png")
    image_factory(tmp_path / "media" / "b.png")
    gpu = _FakeGpu()
    cache = ThumbnailCache(upload=gpu.upload, release=gpu.release)
    cache.get_or_load(tmp_path, "media/a.png")
    cache.get_or_load(tmp_path, "media/b.png")
    assert cache.invalidate(tmp_path, "media/a.png")
    assert not cache.invalidate(tmp_path, "media/a.png")
    assert gpu.released == ["tex1"]
    assert ThumbnailCache.key(tmp_path, "media/b.png") in cache
    cache.clear()
    assert len(cache) == 0
    assert gpu.released == ["tex1", "tex2"]


def test_keys_are_per_project(tmp_path, image_factory):
    image_factory(tmp_path / "one" / "media" / "a.png", size=(2, 2))
    image_factory(tmp_path / "two" / "media" / "a.png", size=(6, 6))
    cache = ThumbnailCache(upload=_FakeGpu().upload)
    assert cache.get_or_load(tmp_path / "one", "media/a.png").width == 2
    assert cache.get_or_load(tmp_path / "two", "media/a.png").width == 6


def test_default_upload_makes_pixmap(qapp, tmp_path, image_factory):
    image_factory(tmp_path / "media" / "a.png", size=(8, 4))
    cache = ThumbnailCache(upload=upload_pixmap)
    thumb = cache.get_or_load(tmp_path, "media/a.png")
    assert not thumb.handle.isNull()
    assert (thumb.handle.width(), thumb.handle.height()) == (8, 4)
