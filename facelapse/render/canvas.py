from PIL import Image

from facelapse.alignment.transform import AffineTransform


class Canvas:
    """Output surface: an RGB PIL Image plus an affine draw primitive."""

    def __init__(self, width: int, height: int, background: tuple = (0, 0, 0)):
        self._background = tuple(background)
        self._img = Image.new("RGB", (width, height), self._background)

    @property
    def size(self) -> tuple:
        return self._img.size

    @property
    def image(self) -> Image.Image:
        """The live canvas image (do not modify)."""
        return self._img

    def clear(self):
        self._img.paste(self._background, (0, 0) + self.size)

    def draw(self, image: Image.Image, transform: AffineTransform):
        """Composite image onto the canvas through a source-to-canvas transform."""
        # PIL samples output pixels through the canvas-to-source mapping
        inv = transform.inverse()
        data = (inv.a, inv.b, inv.c, inv.d, inv.e, inv.f)
        warped = image.convert("RGB").transform(
            self.size, Image.Transform.AFFINE, data, resample=Image.Resampling.BILINEAR
        )
        coverage = Image.new("L", image.size, 255).transform(
            self.size, Image.Transform.AFFINE, data, resample=Image.Resampling.NEAREST
        )
        self._img.paste(warped, (0, 0), coverage)

    def snapshot(self) -> Image.Image:
        return self._img.copy()
