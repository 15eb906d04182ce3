from typing import Optional, Tuple

from ..config import Color
from ..errors import ColorParseError

Pixel = Tuple[int, int, int, int]

def pixel(red: int, green: int, blue: int, alpha: int = 255) -> Pixel:
    return (red, green, blue, alpha)

BLACK = pixel(0, 0, 0, 255)
TRANSPARENT = pixel(0, 0, 0, 0)
DEFAULT_SHADOW_COLOR = pixel(0, 0, 0, 25)

HEX_DIGITS = frozenset('0123456789abcdefABCDEF')


def parse_color(color: str) -> Pixel:
    """Parses "RRGGBB" or "RRGGBBAA", with or without a leading "#"."""
    hex_str = color[1:] if color.startswith('#') else color
    if len(hex_str) not in (6, 8):
        raise ColorParseError(color)
    # int(x, 16) would also accept "0x", "_" and surrounding whitespace
    if not all(c in HEX_DIGITS for c in hex_str):
        raise ColorParseError(color, 'Color contains non-hex characters')

    value = int(hex_str, 16)
    alpha = 255
    if len(hex_str) == 8:
        alpha = value & 0xFF
        value >>= 8
    return pixel((value >> 16) & 0xFF, (value >> 8) & 0xFF, value & 0xFF, alpha)


def resolve_color(color: Color) -> Pixel:
    if isinstance(color, str):
        return parse_color(color)
    if len(color) == 3:
        r, g, b = color
        return pixel(r, g, b, 255)
    if len(color) == 4:
        r, g, b, a = color
        return pixel(r, g, b, a)
    raise ColorParseError(str(color), 'Color must have 3 or 4 channels')


def resolve_optional(color: Optional[Color], default: Pixel) -> Pixel:
    return default if color is None else resolve_color(color)


def run_color(run_color: Optional[Color], block_color: Optional[Color]) -> Pixel:
    """Effective text color of a run: its own color, then the block color, then black."""
    if run_color is not None:
        return resolve_color(run_color)
    return resolve_optional(block_color, BLACK)
