from __future__ import annotations

import pytest

from poster_fusion.gallery import Gallery
from poster_fusion.imaging.raster import ImageObject


def test_same_bytes_saved_once(make_png):
    gallery = Gallery()
    data = make_png()
    assert gallery.save(ImageObject(data=data, mime_type="image/png"), "1:1")
    # A different object with identical content is still a duplicate.
    assert not gallery.save(ImageObject(data=bytes(data), mime_type="image/png"), "16:9")
    assert len(gallery) == 1
    assert gallery.get(0).aspect_ratio == "1:1"


def test_order_is_preserved(make_png):
    gallery = Gallery()
    first = ImageObject(data=make_png(color=(1, 2, 3)), mime_type="image/png")
    second = ImageObject(data=make_png(color=(4, 5, 6)), mime_type="image/png")
    gallery.save(first, "1:1")
    gallery.save(second, "9:16")
    assert [e.poster for e in gallery.entries] == [first, second]
    assert [d["index"] for d in gallery.describe()] == [0, 1]


def test_clear(make_png):
    gallery = Gallery()
    poster = ImageObject(data=make_png(), mime_type="image/png")
    gallery.save(poster, "1:1")
    gallery.clear()
    assert len(gallery) == 0
    assert gallery.save(poster, "1:1")


def test_get_out_of_range():
    gallery = Gallery()
    with pytest.raises(IndexError):
        gallery.get(0)
    with pytest.raises(IndexError):
        gallery.get(-1)
