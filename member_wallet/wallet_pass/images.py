# member_wallet/wallet_pass/images.py

"""
Wallet Pass Images

Normalizes uploaded artwork to PNG and draws the branded fallback
background used when no background image is configured.
"""

import logging
import os
import tempfile
from contextlib import contextmanager
from io import BytesIO

from PIL import Image, ImageColor, ImageDraw, UnidentifiedImageError

from .errors import ServiceResult, ConversionFailed

logger = logging.getLogger(__name__)

PNG_SIGNATURE = b'\x89PNG\r\n\x1a\n'

# Left end of the gradient bars
GRADIENT_DARK_SHADE = '#083A52'
ACCENT_BAR_WIDTH = 4

DEFAULT_BACKGROUND_SIZE = (640, 400)
DEFAULT_BAR_THICKNESS = 24
DEFAULT_BACKGROUND_COLOR = '#F6F9FA'


def is_png(data: bytes) -> bool:
    return data[:len(PNG_SIGNATURE)] == PNG_SIGNATURE


@contextmanager
def _scoped_temp_png():
    """Yield a temp file path that is removed on every exit path."""
    fd, path = tempfile.mkstemp(prefix='mwp_img_', suffix='.png')
    os.close(fd)
    try:
        yield path
    finally:
        try:
            os.remove(path)
        except FileNotFoundError:
            pass


def to_png(source: bytes) -> ServiceResult[bytes]:
    """
    Convert raster image bytes to PNG.

    PNG input is returned untouched. Anything Pillow can decode is
    re-encoded as RGBA PNG so transparency survives.

    Args:
        source: Raw image bytes in any format Pillow understands

    Returns:
        ServiceResult with the PNG bytes, or ConversionFailed
    """
    if not source:
        return ServiceResult.fail_with(ConversionFailed('empty image data'))

    if is_png(source):
        return ServiceResult.ok(source)

    try:
        with Image.open(BytesIO(source)) as img:
            img.load()
            converted = img.convert('RGBA')

        with _scoped_temp_png() as path:
            converted.save(path, format='PNG')
            with open(path, 'rb') as f:
                png = f.read()
    except (UnidentifiedImageError, OSError, ValueError) as e:
        logger.warning(f"Could not convert image to PNG: {e}")
        return ServiceResult.fail_with(ConversionFailed(e))

    return ServiceResult.ok(png)


def synthesize_background(
    width: int = DEFAULT_BACKGROUND_SIZE[0],
    height: int = DEFAULT_BACKGROUND_SIZE[1],
    bar_thickness: int = DEFAULT_BAR_THICKNESS,
    accent_hex: str = '#0D9DDB',
    bg_hex: str = DEFAULT_BACKGROUND_COLOR,
) -> bytes:
    """
    Draw the fallback pass background.

    Solid ``bg_hex`` fill, a horizontal gradient bar (dark shade to accent)
    along the top and bottom edges, and a narrow vertical accent bar. Output
    depends only on the arguments.

    Args:
        width: Image width in pixels
        height: Image height in pixels
        bar_thickness: Height of the top and bottom gradient bars
        accent_hex: Accent color, '#RRGGBB'
        bg_hex: Fill color, '#RRGGBB'

    Returns:
        PNG image bytes
    """
    if width < 1 or height < 1:
        raise ValueError(f"Invalid background size {width}x{height}")

    accent = ImageColor.getrgb(accent_hex)[:3]
    dark = ImageColor.getrgb(GRADIENT_DARK_SHADE)[:3]
    bg = ImageColor.getrgb(bg_hex)[:3]

    img = Image.new('RGB', (width, height), bg)
    draw = ImageDraw.Draw(img)

    bar = max(0, min(bar_thickness, height))
    if bar:
        for x in range(width):
            t = x / (width - 1) if width > 1 else 0.0
            color = tuple(
                int(round(d + (a - d) * t)) for d, a in zip(dark, accent)
            )
            draw.line([(x, 0), (x, bar - 1)], fill=color)
            draw.line([(x, height - bar), (x, height - 1)], fill=color)

    x0 = int(width * 0.22)
    y0 = 4 * bar
    y1 = int(height * 0.48)
    if y1 > y0:
        draw.rectangle(
            [x0, y0, min(x0 + ACCENT_BAR_WIDTH, width) - 1, y1 - 1],
            fill=accent
        )

    output = BytesIO()
    img.save(output, format='PNG')
    return output.getvalue()
