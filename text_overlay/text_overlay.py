from typing import Iterable, Mapping, Optional, Sequence, Union

import numpy as np
from PIL import Image

from .config import Block, RenderConfig
from .rendering import render, validate_rect
from .rendering.text_render import Font, FontCatalog, FontDef
from .utils import get_logger

logger = get_logger('overlay')

Fonts = Union[FontCatalog, Sequence[FontDef], Mapping[str, Font]]


def to_rgba_array(image: Union[np.ndarray, Image.Image]) -> np.ndarray:
    """Returns a fresh RGBA8 copy of `image`. RGB arrays get an opaque alpha channel."""
    if isinstance(image, Image.Image):
        return np.array(image.convert('RGBA'))
    image = np.asarray(image)
    if image.dtype != np.uint8 or image.ndim != 3 or image.shape[2] not in (3, 4):
        raise ValueError(f'Expected an RGBA8 image array, got shape {image.shape} and dtype {image.dtype}')
    if image.shape[2] == 3:
        alpha = np.full(image.shape[:2] + (1,), 255, dtype=np.uint8)
        return np.concatenate([image, alpha], axis=2)
    return image.copy()


def overlay_text(image: Union[np.ndarray, Image.Image], fonts: Fonts, blocks: Iterable[Union[Block, dict]],
                 config: Optional[RenderConfig] = None) -> np.ndarray:
    """
    Draws every block onto a copy of `image` and returns it as an RGBA8 array.

    Blocks are drawn in order, later blocks on top of earlier ones. All block
    rectangles are checked against the image before anything is drawn. Any
    error aborts the call and the caller gets no partially drawn image.
    """
    canvas = to_rgba_array(image)
    catalog = FontCatalog.coerce(fonts)
    blocks = [b if isinstance(b, Block) else Block.model_validate(b) for b in blocks]
    config = config or RenderConfig()

    height, width = canvas.shape[:2]
    for block in blocks:
        validate_rect(block.rect, width, height)

    for i, block in enumerate(blocks):
        logger.debug(f'Rendering block {i + 1}/{len(blocks)} with {len(block.text)} runs')
        render(canvas, block, catalog, config)
    return canvas
