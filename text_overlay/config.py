import json
import os
from enum import Enum
from typing import Annotated, List, Optional, Tuple, Union

from pydantic import BaseModel, Field, model_validator

Channel = Annotated[int, Field(ge=0, le=255)]

Color = Union[
    Tuple[Channel, Channel, Channel],
    Tuple[Channel, Channel, Channel, Channel],
    str,
]
"""An RGB triple, an RGBA quad or a hex string such as "#FF000080"."""


class HAlign(str, Enum):
    left = "left"
    center = "center"
    right = "right"

class VAlign(str, Enum):
    top = "top"
    center = "center"
    bottom = "bottom"


class Rect(BaseModel):
    """Pixel rectangle. `right` and `bottom` are exclusive."""
    top: int = Field(ge=0)
    bottom: int = Field(ge=0)
    left: int = Field(ge=0)
    right: int = Field(ge=0)

    @property
    def width(self) -> int:
        return self.right - self.left

    @property
    def height(self) -> int:
        return self.bottom - self.top

    def shrink(self, top: int = 0, bottom: int = 0, left: int = 0, right: int = 0) -> 'Rect':
        # model_construct skips the ge=0 checks; callers validate the result
        return Rect.model_construct(
            top=self.top + top,
            bottom=self.bottom - bottom,
            left=self.left + left,
            right=self.right - right,
        )

class Padding(BaseModel):
    top: int = Field(default=0, ge=0)
    bottom: int = Field(default=0, ge=0)
    left: int = Field(default=0, ge=0)
    right: int = Field(default=0, ge=0)


class Shadow(BaseModel):
    x: int = 0
    """Horizontal offset of the shadow in pixels"""
    y: int = 0
    """Vertical offset of the shadow in pixels"""
    blur: Optional[float] = Field(default=None, gt=0)
    """Gaussian blur sigma. No blur when unset"""
    color: Optional[Color] = None
    """Defaults to a translucent black"""

class BlockBorder(BaseModel):
    width: int = Field(default=0, ge=0)
    color: Color = (0, 0, 0)
    shadow: Optional[Shadow] = None
    """Drop shadow cast by the whole block rectangle"""


class Text(BaseModel):
    font: str
    """Name of an entry in the font catalog"""
    text: str
    color: Optional[Color] = None
    """Overrides the block color for this run"""


class Block(BaseModel):
    min_size: float = Field(gt=0)
    """Smallest font size to try, in points"""
    max_size: float = Field(gt=0)
    """Largest font size to try, in points"""
    text: List[Text]
    rect: Rect
    shadow: Optional[Shadow] = None
    """Drop shadow cast by the text glyphs"""
    background: Optional[Color] = None
    border: Optional[BlockBorder] = None
    padding: Optional[Padding] = None
    wrap: bool = True
    """Wrap the text to the rectangle width. When disabled only explicit line breaks start a new line"""
    h_align: HAlign = HAlign.left
    v_align: VAlign = VAlign.top
    color: Color = (0, 0, 0)
    """Text runs in a block that do not have their own color inherit this color."""

    @model_validator(mode='after')
    def _check_sizes(self):
        if self.min_size > self.max_size:
            raise ValueError(f'min_size ({self.min_size}) must not exceed max_size ({self.max_size})')
        return self


class RenderConfig(BaseModel):
    screen_scale: float = Field(default=1.0, gt=0)
    """Multiplier applied to the 96 DPI point-to-pixel conversion"""


class FontConfig(BaseModel):
    name: str
    path: str

class OverlayConfig(BaseModel):
    background: str
    """Path to the background image"""
    fonts: List[FontConfig]
    blocks: List[Block]
    render: RenderConfig = Field(default_factory=RenderConfig)


def load_config(path: str) -> OverlayConfig:
    """
    Reads a .toml or .json configuration file. Relative font and background
    paths are resolved against the directory of the configuration file.
    """
    with open(path, 'r', encoding='utf-8') as f:
        content = f.read()

    ext = os.path.splitext(path)[1].lower()
    if ext == '.toml':
        import tomllib
        data = tomllib.loads(content)
    elif ext == '.json':
        data = json.loads(content)
    else:
        raise ValueError(f'Unsupported configuration file format: {ext}')

    config = OverlayConfig(**data)

    base_dir = os.path.dirname(os.path.abspath(path))
    if not os.path.isabs(config.background):
        config.background = os.path.join(base_dir, config.background)
    for font in config.fonts:
        if not os.path.isabs(font.path):
            font.path = os.path.join(base_dir, font.path)
    return config
