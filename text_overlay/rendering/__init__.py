from typing import List, Optional, Tuple

import cv2
import numpy as np

from ..config import Block, Rect, RenderConfig, VAlign
from ..errors import GeometryError
from ..utils import get_logger
from .color import (
    BLACK,
    DEFAULT_SHADOW_COLOR,
    TRANSPARENT,
    Pixel,
    resolve_color,
    resolve_optional,
    run_color,
)
from .layout import FittedLine, fit_glyphs
from .text_render import FontCatalog

logger = get_logger('render')


def validate_rect(rect: Rect, width: int, height: int):
    if rect.left > width or rect.right > width or rect.top > height or rect.bottom > height:
        raise GeometryError(
            f'Text rect (top={rect.top}, bottom={rect.bottom}, left={rect.left}, right={rect.right}) '
            f'does not fit in image of size {width}x{height}'
        )
    if rect.left >= rect.right or rect.top > rect.bottom:
        raise GeometryError(
            f'Rect must not have a negative size (top={rect.top}, bottom={rect.bottom}, '
            f'left={rect.left}, right={rect.right})'
        )


def _clip(x: int, y: int, w: int, h: int, shape) -> Optional[Tuple[slice, slice, slice, slice]]:
    """Destination and source slices of a w x h patch pasted at (x, y), or None when fully outside."""
    paste_y_start = max(0, y)
    paste_x_start = max(0, x)
    paste_y_end = min(shape[0], y + h)
    paste_x_end = min(shape[1], x + w)
    if paste_y_start >= paste_y_end or paste_x_start >= paste_x_end:
        return None
    return (
        slice(paste_y_start, paste_y_end),
        slice(paste_x_start, paste_x_end),
        slice(paste_y_start - y, paste_y_end - y),
        slice(paste_x_start - x, paste_x_end - x),
    )


def alpha_composite(dst: np.ndarray, src: np.ndarray):
    """Source-over composites `src` onto `dst` in place. Both are straight-alpha RGBA8."""
    x, y, w, h = cv2.boundingRect(src[:, :, 3])
    if w == 0 or h == 0:
        return
    s = src[y:y+h, x:x+w].astype(np.float32)
    d = dst[y:y+h, x:x+w].astype(np.float32)
    sa = s[:, :, 3:4] / 255.0
    da = d[:, :, 3:4] / 255.0
    out_a = sa + da * (1.0 - sa)
    safe_a = np.where(out_a > 0, out_a, 1.0)
    out_rgb = (s[:, :, :3] * sa + d[:, :, :3] * da * (1.0 - sa)) / safe_a
    dst[y:y+h, x:x+w, :3] = np.clip(np.rint(out_rgb), 0, 255).astype(np.uint8)
    dst[y:y+h, x:x+w, 3] = np.clip(np.rint(out_a[:, :, 0] * 255.0), 0, 255).astype(np.uint8)


def gaussian_blur(layer: np.ndarray, sigma: float) -> np.ndarray:
    # Blur premultiplied color so the transparent surroundings do not darken the edges
    f = layer.astype(np.float32)
    alpha = f[:, :, 3:4] / 255.0
    f[:, :, :3] *= alpha
    f = cv2.GaussianBlur(f, (0, 0), sigmaX=sigma, sigmaY=sigma, borderType=cv2.BORDER_CONSTANT)
    alpha = f[:, :, 3:4] / 255.0
    f[:, :, :3] /= np.where(alpha > 0, alpha, 1.0)
    return np.clip(np.rint(f), 0, 255).astype(np.uint8)


def blend_coverage(layer: np.ndarray, coverage: np.ndarray, color: Pixel, x: int, y: int):
    """
    Blends `color` into `layer` at (x, y) weighted by the glyph coverage,
    dest * (1 - c) + src * c. Color channels are weighted by their alpha so
    that antialiased edges over transparent pixels keep the text color. Full
    coverage replaces the pixel.
    """
    h, w = coverage.shape
    clipped = _clip(x, y, w, h, layer.shape)
    if clipped is None:
        return
    dy, dx, sy, sx = clipped
    c = coverage[sy, sx].astype(np.float32)[:, :, np.newaxis] / 255.0
    src = np.array(color, dtype=np.float32)
    dest = layer[dy, dx].astype(np.float32)

    out_a = dest[:, :, 3:4] * (1.0 - c) + src[3] * c
    out_rgb = dest[:, :, :3] * dest[:, :, 3:4] * (1.0 - c) + src[:3] * src[3] * c
    out_rgb /= np.where(out_a > 0, out_a, 1.0)
    out = np.where(c >= 1.0, src, np.concatenate([out_rgb, out_a], axis=2))
    layer[dy, dx] = np.clip(np.rint(out), 0, 255).astype(np.uint8)


def stamp_shadow(layer: np.ndarray, coverage: np.ndarray, color: Pixel, x: int, y: int):
    """Writes the coverage as alpha of `color`. Pixels outside the layer are skipped."""
    h, w = coverage.shape
    clipped = _clip(x, y, w, h, layer.shape)
    if clipped is None:
        return
    dy, dx, sy, sx = clipped
    c = coverage[sy, sx].astype(np.float32) / 255.0
    alpha = np.rint(color[3] * c).astype(np.uint8)
    target = layer[dy, dx]
    mask = alpha > target[:, :, 3]
    target[mask, :3] = color[:3]
    target[mask, 3] = alpha[mask]


def text_extent(lines: List[FittedLine], catalog: FontCatalog) -> Optional[Tuple[float, float]]:
    """Top and bottom of the rendered text, from the first and last glyph's font metrics."""
    glyphs = [g for line in lines for g in line.glyphs]
    if not glyphs:
        return None
    first, last = glyphs[0], glyphs[-1]
    first_font = catalog[first.font_id]
    last_font = catalog[last.font_id]
    top = first.y - first_font.units_to_px(first_font.ascent_unscaled, first.ppem)
    bottom = last.y - last_font.units_to_px(last_font.descent_unscaled, last.ppem)
    return top, bottom


def vertical_offset(v_align: VAlign, rect: Rect, extent: Optional[Tuple[float, float]]) -> int:
    if extent is None or v_align == VAlign.top:
        return 0
    top, bottom = extent
    if v_align == VAlign.center:
        return int(round(rect.top + (rect.height - (bottom - top)) / 2.0 - top))
    return int(round(rect.bottom - bottom))


def _render_border_shadow(canvas: np.ndarray, block: Block):
    shadow = block.border.shadow
    color = resolve_optional(shadow.color, DEFAULT_SHADOW_COLOR)
    rect = block.rect
    height, width = canvas.shape[:2]

    layer = np.zeros_like(canvas)
    top = max(rect.top + shadow.y, 0)
    bottom = min(rect.bottom + shadow.y, height)
    left = max(rect.left + shadow.x, 0)
    right = min(rect.right + shadow.x, width)
    if top < bottom and left < right:
        layer[top:bottom, left:right] = color
    if shadow.blur:
        layer = gaussian_blur(layer, shadow.blur)

    # The shadow should not show through a transparent block, so clear out the block's rect
    layer[rect.top:rect.bottom, rect.left:rect.right] = TRANSPARENT
    alpha_composite(canvas, layer)


def render(canvas: np.ndarray, block: Block, catalog: FontCatalog, config: Optional[RenderConfig] = None) -> np.ndarray:
    """
    Draws one block onto `canvas` in place: the border shadow, then the text
    shadow, then the background, border and text.
    """
    config = config or RenderConfig()
    height, width = canvas.shape[:2]
    rect = block.rect
    validate_rect(rect, width, height)

    shadow_color = resolve_optional(block.shadow.color if block.shadow else None, DEFAULT_SHADOW_COLOR)
    border_color = resolve_color(block.border.color) if block.border else BLACK
    border_width = block.border.width if block.border else 0
    bg_color = resolve_optional(block.background, TRANSPARENT)
    text_colors = [run_color(t.color, block.color) for t in block.text]

    if block.border and block.border.shadow:
        _render_border_shadow(canvas, block)

    text_layer = np.zeros_like(canvas)
    text_layer[rect.top:rect.bottom, rect.left:rect.right] = border_color
    inner = rect.shrink(border_width, border_width, border_width, border_width)
    if inner.top < inner.bottom and inner.left < inner.right:
        text_layer[inner.top:inner.bottom, inner.left:inner.right] = bg_color

    text_rect = inner
    if block.padding:
        p = block.padding
        text_rect = inner.shrink(p.top, p.bottom, p.left, p.right)
    if text_rect.left >= text_rect.right or text_rect.top > text_rect.bottom:
        raise GeometryError(
            f'Border and padding leave no room for text in rect (top={rect.top}, bottom={rect.bottom}, '
            f'left={rect.left}, right={rect.right})'
        )

    fitted = fit_glyphs(text_rect, catalog, block, config.screen_scale)
    start_y = vertical_offset(block.v_align, text_rect, text_extent(fitted.lines, catalog))
    logger.debug(f'Block at {rect.left},{rect.top}: font size {fitted.font_size}, start_y {start_y}')

    shadow_layer = np.zeros_like(canvas) if block.shadow else None
    for line in fitted.lines:
        for glyph in line.glyphs:
            bitmap = catalog[glyph.font_id].rasterize(glyph.glyph_index, glyph.ppem)
            if bitmap.coverage.size == 0:
                continue
            x = int(round(glyph.x)) + bitmap.left
            y = int(round(glyph.y)) + start_y - bitmap.top
            blend_coverage(text_layer, bitmap.coverage, text_colors[glyph.run_index], x, y)
            if shadow_layer is not None:
                stamp_shadow(shadow_layer, bitmap.coverage, shadow_color,
                             x + block.shadow.x, y + block.shadow.y)

    if shadow_layer is not None:
        if block.shadow.blur:
            shadow_layer = gaussian_blur(shadow_layer, block.shadow.blur)
        alpha_composite(canvas, shadow_layer)

    alpha_composite(canvas, text_layer)
    return canvas
