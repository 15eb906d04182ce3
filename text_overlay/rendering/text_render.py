import io
import functools
import unicodedata
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Iterable, Iterator, List, Mapping, Sequence, Tuple, Union

import freetype
import numpy as np

from ..errors import FontNotFound
from ..utils import get_logger

logger = get_logger('text_render')

# Mandatory break characters. "\r\n" is handled as a single break.
HARD_BREAK_CHARS = frozenset('\n\r\v\f\x85\u2028\u2029')
SPACE_CHARS = frozenset(' \t　')
HYPHEN_CHARS = frozenset('-‐/')
NO_START_CHARS = frozenset('》，。．」』】）！；：？、〕〉｝］”’…‥ゝゞ々ーぁぃぅぇぉっゃゅょゎァィゥェォッャュョヮヵヶ!?,.:;)]}')
NO_END_CHARS = frozenset('《「『【（〔〈｛［“‘([{')


@dataclass(frozen=True)
class GlyphBitmap:
    coverage: np.ndarray
    """uint8 coverage map, 255 means the pixel is fully inside the outline"""
    left: int
    """Horizontal offset from the pen position to the first column"""
    top: int
    """Distance from the baseline up to the first row"""


class Font:
    """Outline font backed by a freetype face."""

    def __init__(self, face: freetype.Face):
        self.face = face
        if not face.is_scalable:
            raise ValueError('Only scalable (outline) fonts are supported')

    @classmethod
    def from_file(cls, path: Union[str, Path]) -> 'Font':
        logger.debug(f'Loading font {path}')
        return cls(freetype.Face(str(path)))

    @classmethod
    def from_bytes(cls, data: bytes) -> 'Font':
        return cls(freetype.Face(io.BytesIO(data)))

    @property
    def family_name(self) -> str:
        name = self.face.family_name
        return name.decode('utf-8', 'replace') if name else 'Unknown'

    @property
    def units_per_em(self) -> int:
        return self.face.units_per_EM

    @property
    def ascent_unscaled(self) -> int:
        return self.face.ascender

    @property
    def descent_unscaled(self) -> int:
        return self.face.descender

    @property
    def height_unscaled(self) -> int:
        return self.face.ascender - self.face.descender

    @property
    def line_gap_unscaled(self) -> int:
        return max(self.face.height - self.height_unscaled, 0)

    def glyph_index(self, cdpt: str) -> int:
        index = self.face.get_char_index(cdpt)
        if index == 0 and cdpt in SPACE_CHARS:
            # Whitespace the font has no glyph for is drawn as a plain space instead of .notdef
            index = self.face.get_char_index(' ')
        return index

    def units_to_px(self, units: float, ppem: float) -> float:
        return units * ppem / self.units_per_em

    def advance(self, glyph_index: int, ppem: float) -> float:
        return load_glyph(self.face, glyph_index, ppem_26_6(ppem))[0]

    def kerning(self, left: int, right: int, ppem: float) -> float:
        if not left or not right or not self.face.has_kerning:
            return 0.0
        set_size(self.face, ppem_26_6(ppem))
        return self.face.get_kerning(left, right).x / 64.0

    def rasterize(self, glyph_index: int, ppem: float) -> GlyphBitmap:
        return load_glyph(self.face, glyph_index, ppem_26_6(ppem))[1]

    def __repr__(self):
        return f'<Font {self.family_name!r} upem={self.units_per_em}>'


def ppem_26_6(ppem: float) -> int:
    return max(int(round(ppem * 64)), 1)

def set_size(face: freetype.Face, ppem64: int):
    face.set_char_size(0, ppem64, 72, 72)

@functools.lru_cache(maxsize=4096)
def load_glyph(face: freetype.Face, glyph_index: int, ppem64: int) -> Tuple[float, GlyphBitmap]:
    set_size(face, ppem64)
    face.load_glyph(glyph_index, freetype.FT_LOAD_DEFAULT)
    slot = face.glyph
    advance = slot.advance.x / 64.0
    slot.render(freetype.FT_RENDER_MODE_NORMAL)
    bitmap = slot.bitmap
    if bitmap.rows * bitmap.width == 0:
        coverage = np.zeros((0, 0), dtype=np.uint8)
    else:
        pitch = abs(bitmap.pitch)
        coverage = np.array(bitmap.buffer, dtype=np.uint8).reshape((bitmap.rows, pitch))[:, :bitmap.width]
    return advance, GlyphBitmap(coverage, slot.bitmap_left, slot.bitmap_top)


@dataclass(frozen=True)
class FontDef:
    name: str
    font: Font


class FontCatalog:
    """
    Name to font lookup. Fonts are addressed by their position in the
    caller supplied list so glyphs only carry an index.
    """

    def __init__(self, fonts: Iterable[FontDef]):
        self.fonts: List[FontDef] = list(fonts)
        self._index: Dict[str, int] = {}
        for i, f in enumerate(self.fonts):
            if f.name in self._index:
                raise ValueError(f'Duplicate font name "{f.name}"')
            self._index[f.name] = i

    @classmethod
    def coerce(cls, fonts: Union['FontCatalog', Sequence[FontDef], Mapping[str, Font]]) -> 'FontCatalog':
        if isinstance(fonts, FontCatalog):
            return fonts
        if isinstance(fonts, Mapping):
            return cls(FontDef(name, font) for name, font in fonts.items())
        return cls(f if isinstance(f, FontDef) else FontDef(*f) for f in fonts)

    def index_of(self, name: str) -> int:
        try:
            return self._index[name]
        except KeyError:
            raise FontNotFound(name) from None

    def get(self, name: str) -> Font:
        return self.fonts[self.index_of(name)].font

    def __getitem__(self, index: int) -> Font:
        return self.fonts[index].font

    def __len__(self):
        return len(self.fonts)


def px_per_em(pt_size: float, screen_scale: float = 1.0) -> float:
    return pt_size * screen_scale * (96.0 / 72.0)

def pt_size_to_px_scale(font: Font, pt_size: float, screen_scale: float = 1.0) -> float:
    """
    Pixel height of the ascender-to-descender span for a point size. Fonts whose
    em square differs from their actual glyph extents get a matching correction.
    """
    return px_per_em(pt_size, screen_scale) * font.height_unscaled / font.units_per_em


def is_wide(cdpt: str) -> bool:
    return unicodedata.east_asian_width(cdpt) in ('W', 'F')

def is_hard_break(cdpt: str) -> bool:
    return cdpt in HARD_BREAK_CHARS

def line_breaks(text: str) -> Iterator[Tuple[int, bool]]:
    """
    Yields (offset, hard) for every position where a line may be broken.
    `offset` is the index of the first character of the next line. The end of
    the text is reported as a soft opportunity unless the text ends with a
    hard break.
    """
    n = len(text)
    i = 0
    while i < n:
        c = text[i]
        if c in HARD_BREAK_CHARS:
            if c == '\r' and i + 1 < n and text[i + 1] == '\n':
                i += 1
            yield i + 1, True
            i += 1
            continue

        nxt = text[i + 1] if i + 1 < n else None
        if nxt is None:
            break
        if nxt in HARD_BREAK_CHARS or nxt in SPACE_CHARS:
            # break after the whitespace run or at the hard break instead
            i += 1
            continue
        if c in SPACE_CHARS or c in HYPHEN_CHARS:
            if nxt not in NO_START_CHARS:
                yield i + 1, False
        elif (is_wide(c) or is_wide(nxt)) and c not in NO_END_CHARS and nxt not in NO_START_CHARS:
            yield i + 1, False
        i += 1
    if n == 0 or text[-1] not in HARD_BREAK_CHARS:
        yield n, False
