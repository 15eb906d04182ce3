"""
Font size fitting and glyph positioning.

A block's runs are laid out with a greedy line breaker at a candidate point
size. Starting from the block's max_size the size is lowered in fixed steps
until the text fits the rectangle.
"""
from dataclasses import dataclass, field
from typing import List, Optional, Sequence, Tuple

from ..config import Block, HAlign, Rect, Text
from ..errors import FitError
from ..utils import get_logger
from .text_render import (
    FontCatalog,
    SPACE_CHARS,
    is_hard_break,
    line_breaks,
    pt_size_to_px_scale,
    px_per_em,
)

logger = get_logger('layout')

FONT_SIZE_STEP = 4.0


@dataclass
class Glyph:
    font_id: int
    glyph_index: int
    x: float
    """Pen position"""
    y: float
    """Baseline"""
    scale: float
    """Pixel height of the font's ascender-to-descender span"""
    ppem: float
    line_index: int
    run_index: int
    char_index: int

@dataclass(frozen=True)
class LineSpan:
    """A slice of one run's text. Lines reference the caller's runs instead of copying them."""
    run_index: int
    start: int
    end: int

    def text(self, runs: Sequence[Text]) -> str:
        return runs[self.run_index].text[self.start:self.end]

@dataclass
class FittedLine:
    spans: List[LineSpan]
    glyphs: List[Glyph] = field(default_factory=list)

@dataclass
class FitResult:
    lines: List[FittedLine]
    font_size: float


@dataclass
class _Section:
    span: LineSpan
    text: str
    font_id: int
    ppem: float
    scale: float
    ascent: float
    descent: float
    line_gap: float

@dataclass
class _Word:
    chars: List[Tuple[int, int, int, float]]
    """(section index, char index in run, glyph index, pen offset)"""
    width: float
    """Advance width including trailing whitespace"""
    visible_width: float
    """Width without trailing whitespace"""
    hard: bool
    break_section: Optional[int] = None
    """Section of the hard break character, used to size empty lines"""

@dataclass
class LayoutResult:
    glyphs: List[Glyph]
    bottom: float
    """Lowest extent of the emitted lines, i.e. last baseline minus descent"""
    line_count: int


def _make_sections(catalog: FontCatalog, runs: Sequence[Text], spans: Sequence[LineSpan],
                   font_size: float, screen_scale: float) -> List[_Section]:
    sections = []
    ppem = px_per_em(font_size, screen_scale)
    for span in spans:
        font_id = catalog.index_of(runs[span.run_index].font)
        font = catalog[font_id]
        sections.append(_Section(
            span=span,
            text=span.text(runs),
            font_id=font_id,
            ppem=ppem,
            scale=pt_size_to_px_scale(font, font_size, screen_scale),
            ascent=font.units_to_px(font.ascent_unscaled, ppem),
            descent=font.units_to_px(font.descent_unscaled, ppem),
            line_gap=font.units_to_px(font.line_gap_unscaled, ppem),
        ))
    return sections


def _split_words(catalog: FontCatalog, sections: List[_Section]) -> List[_Word]:
    # Break opportunities are searched over the whole paragraph so that a word may
    # continue across runs.
    owners = []
    for i, section in enumerate(sections):
        owners.extend((i, section.span.start + j) for j in range(len(section.text)))
    text = ''.join(s.text for s in sections)

    words = []
    start = 0
    for offset, hard in line_breaks(text):
        if offset <= start:
            continue
        chars = []
        pen = 0.0
        visible_width = 0.0
        break_section = None
        prev = None
        for pos in range(start, offset):
            cdpt = text[pos]
            section_idx, char_index = owners[pos]
            if is_hard_break(cdpt):
                break_section = section_idx
                continue
            section = sections[section_idx]
            font = catalog[section.font_id]
            glyph_index = font.glyph_index(cdpt)
            if prev is not None and prev[0] == section_idx:
                pen += font.kerning(prev[1], glyph_index, section.ppem)
            chars.append((section_idx, char_index, glyph_index, pen))
            pen += font.advance(glyph_index, section.ppem)
            if cdpt not in SPACE_CHARS:
                visible_width = pen
            prev = (section_idx, glyph_index)
        words.append(_Word(chars, pen, visible_width, hard, break_section))
        start = offset
    return words


def layout_glyphs(catalog: FontCatalog, runs: Sequence[Text], spans: Sequence[LineSpan], rect: Rect,
                  font_size: float, h_align: HAlign, single_line: bool = False,
                  screen_scale: float = 1.0) -> LayoutResult:
    """
    Positions the glyphs of `spans` inside `rect`, breaking lines greedily at
    the rect width. Lines starting at or below the rect bottom are dropped.
    With `single_line` only the first line is kept.
    """
    sections = _make_sections(catalog, runs, spans, font_size, screen_scale)
    words = _split_words(catalog, sections)

    # Group words into lines
    lines: List[List[_Word]] = []
    current: List[_Word] = []
    width = 0.0
    for word in words:
        if current and width + word.visible_width > rect.width:
            lines.append(current)
            current = []
            width = 0.0
        current.append(word)
        width += word.width
        if word.hard:
            lines.append(current)
            current = []
            width = 0.0
    if current:
        lines.append(current)
    if single_line:
        lines = lines[:1]

    glyphs = []
    caret_y = float(rect.top)
    bottom = caret_y
    line_count = 0
    for line_index, line in enumerate(lines):
        if caret_y >= rect.bottom:
            break
        used = {c[0] for w in line for c in w.chars}
        used.update(w.break_section for w in line if w.break_section is not None)
        line_sections = [sections[i] for i in sorted(used)]
        ascent = max(s.ascent for s in line_sections)
        descent = min(s.descent for s in line_sections)
        line_gap = max(s.line_gap for s in line_sections)
        baseline = caret_y + ascent

        line_width = 0.0
        for w in line[:-1]:
            line_width += w.width
        line_width += line[-1].visible_width
        if h_align == HAlign.center:
            x0 = rect.left + (rect.width - line_width) / 2.0
        elif h_align == HAlign.right:
            x0 = rect.right - line_width
        else:
            x0 = float(rect.left)

        pen_x = x0
        for w in line:
            for section_idx, char_index, glyph_index, offset in w.chars:
                s = sections[section_idx]
                glyphs.append(Glyph(
                    font_id=s.font_id,
                    glyph_index=glyph_index,
                    x=pen_x + offset,
                    y=baseline,
                    scale=s.scale,
                    ppem=s.ppem,
                    line_index=line_index,
                    run_index=s.span.run_index,
                    char_index=char_index,
                ))
            pen_x += w.width

        bottom = baseline - descent
        caret_y = bottom + line_gap
        line_count += 1

    return LayoutResult(glyphs, bottom, line_count)


def placeable_positions(runs: Sequence[Text], spans: Sequence[LineSpan]) -> List[Tuple[int, int]]:
    """(run index, char index) of every character that produces a glyph."""
    positions = []
    for span in spans:
        text = runs[span.run_index].text
        positions.extend((span.run_index, i) for i in range(span.start, span.end) if not is_hard_break(text[i]))
    return positions


def _trim_breaks(text: str, start: int, end: int) -> Tuple[int, int]:
    while start < end and is_hard_break(text[start]):
        start += 1
    while end > start and is_hard_break(text[end - 1]):
        end -= 1
    return start, end

def split_hard_lines(runs: Sequence[Text]) -> List[List[LineSpan]]:
    """
    Splits runs at explicit line breaks only. The end of a run does not end the
    line, so consecutive runs share a line until a run contains a break. Two
    consecutive breaks produce an empty line.
    """
    lines = []
    current = []
    for run_index, run in enumerate(runs):
        last = 0
        for offset, hard in line_breaks(run.text):
            if not hard:
                continue
            start, end = _trim_breaks(run.text, last, offset)
            if start < end:
                current.append(LineSpan(run_index, start, end))
            lines.append(current)
            current = []
            last = offset
        start, end = _trim_breaks(run.text, last, len(run.text))
        if start < end:
            current.append(LineSpan(run_index, start, end))
    if current:
        lines.append(current)
    return lines


def _fit_wrapped(catalog: FontCatalog, rect: Rect, block: Block, screen_scale: float) -> FitResult:
    spans = [LineSpan(i, 0, len(t.text)) for i, t in enumerate(block.text)]
    for t in block.text:
        catalog.index_of(t.font)

    positions = placeable_positions(block.text, spans)
    if not positions:
        return FitResult([FittedLine(spans)], block.max_size)
    last_position = positions[-1]

    font_size = block.max_size
    while font_size >= block.min_size:
        result = layout_glyphs(catalog, block.text, spans, rect, font_size, block.h_align,
                               screen_scale=screen_scale)
        # When wrapping, the layout handles the horizontal fit. The text fits if
        # nothing got cut off at the bottom.
        fits = False
        if result.glyphs:
            last = result.glyphs[-1]
            fits = (last.run_index, last.char_index) == last_position and result.bottom <= rect.bottom
        logger.debug(f'size {font_size}, {result.line_count} lines, bottom {result.bottom:.1f} of {rect.bottom}, fits={fits}')
        if fits:
            logger.debug(f'Chose font size {font_size}')
            return FitResult([FittedLine(spans, result.glyphs)], font_size)
        font_size -= FONT_SIZE_STEP

    raise FitError(block.min_size, block.max_size)


def _fit_unwrapped(catalog: FontCatalog, rect: Rect, block: Block, screen_scale: float) -> FitResult:
    lines = split_hard_lines(block.text)
    for spans in lines:
        for span in spans:
            catalog.index_of(block.text[span.run_index].font)
    if not lines:
        return FitResult([], block.max_size)

    # The first run's font is taken as representative for the height of every line
    sizing_font = catalog.get(block.text[0].font)
    line_count = len(lines)
    font_size = block.max_size
    while font_size >= block.min_size and \
            pt_size_to_px_scale(sizing_font, font_size, screen_scale) * line_count > rect.height:
        font_size -= FONT_SIZE_STEP
    if font_size < block.min_size:
        raise FitError(block.min_size, block.max_size)

    # A line fits if every character got a glyph, i.e. nothing was pushed past
    # the right edge and dropped.
    for spans in lines:
        if not spans:
            continue
        expected = len(placeable_positions(block.text, spans))
        while font_size >= block.min_size:
            result = layout_glyphs(catalog, block.text, spans, rect, font_size, block.h_align,
                                   single_line=True, screen_scale=screen_scale)
            logger.debug(f'size {font_size} rendered {len(result.glyphs)} glyphs out of {expected}')
            if len(result.glyphs) == expected:
                break
            font_size -= FONT_SIZE_STEP
        if font_size < block.min_size:
            raise FitError(block.min_size, block.max_size)
    logger.debug(f'Chose font size {font_size}')

    line_height = pt_size_to_px_scale(sizing_font, font_size, screen_scale)
    fitted = []
    for line_index, spans in enumerate(lines):
        glyphs = []
        if spans:
            glyphs = layout_glyphs(catalog, block.text, spans, rect, font_size, block.h_align,
                                   single_line=True, screen_scale=screen_scale).glyphs
        shift = line_index * line_height
        for g in glyphs:
            g.y += shift
            g.line_index = line_index
        fitted.append(FittedLine(spans, glyphs))
    return FitResult(fitted, font_size)


def fit_glyphs(rect: Rect, catalog: FontCatalog, block: Block, screen_scale: float = 1.0) -> FitResult:
    """
    Finds the largest font size between block.min_size and block.max_size, in
    steps of 4pt from max_size, at which the block's text fits `rect`.

    Raises FitError when no size fits and FontNotFound when a run references a
    font missing from the catalog.
    """
    logger.debug(f'Fitting {len(block.text)} runs into {rect.left},{rect.top} {rect.width}x{rect.height} (wrap={block.wrap})')
    if block.wrap:
        return _fit_wrapped(catalog, rect, block, screen_scale)
    return _fit_unwrapped(catalog, rect, block, screen_scale)
