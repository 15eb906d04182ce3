from pathlib import Path

import matplotlib
import numpy as np
import pytest

from text_overlay.rendering.text_render import Font, FontCatalog, FontDef

FONT_DIR = Path(matplotlib.get_data_path()) / 'fonts' / 'ttf'
SANS_PATH = FONT_DIR / 'DejaVuSans.ttf'
MONO_PATH = FONT_DIR / 'DejaVuSansMono.ttf'


@pytest.fixture(scope='session')
def sans_font():
    return Font.from_file(SANS_PATH)


@pytest.fixture(scope='session')
def mono_font():
    return Font.from_file(MONO_PATH)


@pytest.fixture(scope='session')
def catalog(sans_font, mono_font):
    return FontCatalog([FontDef('sans', sans_font), FontDef('mono', mono_font)])


@pytest.fixture
def white_image():
    return np.full((100, 200, 4), 255, dtype=np.uint8)


@pytest.fixture(scope='session')
def sans_path():
    return SANS_PATH
