from PIL import Image

from facelapse.alignment.transform import AffineTransform, scaling, translation
from facelapse.render.canvas import Canvas


def test_draw_translates_source():
    canvas = Canvas(20, 20)
    canvas.draw(Image.new("RGB", (10, 10), (255, 0, 0)),
                AffineTransform.from_matrix(translation(5, 5)))
    assert canvas.image.getpixel((10, 10)) == (255, 0, 0)
    assert canvas.image.getpixel((5, 5)) == (255, 0, 0)
    assert canvas.image.getpixel((4, 4)) == (0, 0, 0)
    assert canvas.image.getpixel((15, 15)) == (0, 0, 0)


def test_uncovered_area_keeps_background():
    canvas = Canvas(20, 20, background=(9, 9, 9))
    canvas.draw(Image.new("RGB", (10, 10), (0, 0, 0)),
                AffineTransform.from_matrix(scaling(1.0)))
    assert canvas.image.getpixel((2, 2)) == (0, 0, 0)
    assert canvas.image.getpixel((15, 15)) == (9, 9, 9)


def test_clear_and_snapshot():
    canvas = Canvas(8, 8, background=(1, 2, 3))
    canvas.draw(Image.new("RGB", (8, 8), (200, 200, 200)),
                AffineTransform.from_matrix(scaling(1.0)))
    snap = canvas.snapshot()
    canvas.clear()
    assert canvas.image.getpixel((4, 4)) == (1, 2, 3)
    assert snap.getpixel((4, 4)) == (200, 200, 200)
