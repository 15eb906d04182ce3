import pytest

from text_overlay.errors import ColorParseError
from text_overlay.rendering.color import BLACK, parse_color, resolve_color, resolve_optional, run_color


def test_parse_rgb_hex():
    assert parse_color('#FF0000') == (255, 0, 0, 255)
    assert parse_color('0a0B0c') == (10, 11, 12, 255)


def test_parse_rgba_hex():
    assert parse_color('00FF0080') == (0, 255, 0, 128)
    assert parse_color('#12345678') == (0x12, 0x34, 0x56, 0x78)


@pytest.mark.parametrize('value', ['FFF', '#FF00000', 'FF00000000', '', '#', 'GG0000', '0x1234', ' FF0000', 'ff_fff'])
def test_parse_invalid(value):
    with pytest.raises(ColorParseError) as e:
        parse_color(value)
    assert e.value.color == value


def test_resolve_tuples():
    assert resolve_color((1, 2, 3)) == (1, 2, 3, 255)
    assert resolve_color((1, 2, 3, 4)) == (1, 2, 3, 4)
    assert resolve_color('#010203') == (1, 2, 3, 255)


def test_resolve_optional_uses_default():
    assert resolve_optional(None, (9, 9, 9, 9)) == (9, 9, 9, 9)
    assert resolve_optional((1, 1, 1), (9, 9, 9, 9)) == (1, 1, 1, 255)


def test_run_color_fallback_chain():
    assert run_color((1, 2, 3), '#00FF00') == (1, 2, 3, 255)
    assert run_color(None, '#00FF00') == (0, 255, 0, 255)
    assert run_color(None, None) == BLACK
