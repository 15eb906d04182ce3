import numpy as np
import pytest

from text_overlay.errors import FontNotFound
from text_overlay.rendering.text_render import (
    Font,
    FontCatalog,
    FontDef,
    line_breaks,
    pt_size_to_px_scale,
    px_per_em,
)


def test_font_metrics(sans_font):
    assert sans_font.units_per_em == 2048
    assert sans_font.ascent_unscaled > 0
    assert sans_font.descent_unscaled < 0
    assert sans_font.height_unscaled == sans_font.ascent_unscaled - sans_font.descent_unscaled
    assert sans_font.line_gap_unscaled >= 0
    assert sans_font.family_name == 'DejaVu Sans'


def test_font_from_bytes(sans_font, sans_path):
    font = Font.from_bytes(sans_path.read_bytes())
    assert font.units_per_em == sans_font.units_per_em
    assert font.glyph_index('A') == sans_font.glyph_index('A')


def test_rasterize(sans_font):
    bitmap = sans_font.rasterize(sans_font.glyph_index('A'), 32.0)
    assert bitmap.coverage.dtype == np.uint8
    assert bitmap.coverage.max() > 200
    assert bitmap.top > 0
    # "A" is roughly cap height tall
    assert 15 < bitmap.coverage.shape[0] < 32


def test_rasterize_space_is_empty(sans_font):
    bitmap = sans_font.rasterize(sans_font.glyph_index(' '), 32.0)
    assert bitmap.coverage.size == 0
    assert sans_font.advance(sans_font.glyph_index(' '), 32.0) > 0


def test_whitespace_without_glyph_uses_space(sans_font):
    assert sans_font.face.get_char_index('\t') == 0
    assert sans_font.glyph_index('\t') == sans_font.glyph_index(' ')
    for cdpt in '\t\u3000':
        assert sans_font.rasterize(sans_font.glyph_index(cdpt), 32.0).coverage.size == 0


def test_point_to_pixel_scale(sans_font):
    assert px_per_em(12) == pytest.approx(16.0)
    assert px_per_em(12, screen_scale=2.0) == pytest.approx(32.0)
    expected = 16.0 * sans_font.height_unscaled / sans_font.units_per_em
    assert pt_size_to_px_scale(sans_font, 12) == pytest.approx(expected)


def test_catalog_lookup(sans_font, mono_font):
    catalog = FontCatalog([FontDef('sans', sans_font), FontDef('mono', mono_font)])
    assert catalog.index_of('mono') == 1
    assert catalog.get('sans') is sans_font
    assert catalog[1] is mono_font
    assert len(catalog) == 2
    with pytest.raises(FontNotFound) as e:
        catalog.index_of('Sans')
    assert e.value.name == 'Sans'


def test_catalog_rejects_duplicates(sans_font):
    with pytest.raises(ValueError):
        FontCatalog([FontDef('a', sans_font), FontDef('a', sans_font)])


def test_catalog_coerce(sans_font, mono_font):
    from_mapping = FontCatalog.coerce({'sans': sans_font, 'mono': mono_font})
    assert from_mapping.index_of('mono') == 1
    from_pairs = FontCatalog.coerce([('sans', sans_font)])
    assert from_pairs.get('sans') is sans_font
    assert FontCatalog.coerce(from_pairs) is from_pairs


@pytest.mark.parametrize('text,expected', [
    ('hello world', [(6, False), (11, False)]),
    ('a  b', [(3, False), (4, False)]),
    ('a\nb', [(2, True), (3, False)]),
    ('a\r\nb', [(3, True), (4, False)]),
    ('a\n', [(2, True)]),
    ('a\n\nb', [(2, True), (3, True), (4, False)]),
    ('well-known', [(5, False), (10, False)]),
    ('你好。', [(1, False), (3, False)]),
    ('「你', [(2, False)]),
    ('', [(0, False)]),
])
def test_line_breaks(text, expected):
    assert list(line_breaks(text)) == expected
