from .config import (
    Block,
    BlockBorder,
    HAlign,
    OverlayConfig,
    Padding,
    Rect,
    RenderConfig,
    Shadow,
    Text,
    VAlign,
    load_config,
)
from .errors import ColorParseError, FitError, FontNotFound, GeometryError, OverlayError
from .rendering import render
from .rendering.color import parse_color
from .rendering.layout import fit_glyphs
from .rendering.text_render import Font, FontCatalog, FontDef
from .text_overlay import overlay_text
