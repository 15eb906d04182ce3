import numpy as np
from PIL import Image

from text_overlay.__main__ import main, parse_arguments


def write_config(tmp_path, sans_path, rect='{ top = 10, bottom = 90, left = 10, right = 190 }'):
    Image.new('RGB', (200, 100), 'white').save(tmp_path / 'bg.png')
    config = tmp_path / 'overlay.toml'
    config.write_text(f'''
background = "bg.png"

[[fonts]]
name = "sans"
path = "{sans_path}"

[[blocks]]
min_size = 6
max_size = 48
rect = {rect}

[[blocks.text]]
font = "sans"
text = "placeholder"
color = "#FF0000"
''', encoding='utf-8')
    return config


def test_parse_arguments():
    args = parse_arguments(['-c', 'a.toml', '-o', 'out.png', '--text', 'Hi', '-v'])
    assert args.config == 'a.toml'
    assert args.output == 'out.png'
    assert args.text == 'Hi'
    assert args.verbose is True
    assert parse_arguments(['-c', 'a.toml', '-o', 'out.png']).text is None


def test_cli_renders_image(tmp_path, sans_path):
    config = write_config(tmp_path, sans_path)
    output = tmp_path / 'out.png'
    assert main(['-c', str(config), '-o', str(output), '-t', 'Hello']) == 0

    result = np.array(Image.open(output).convert('RGBA'))
    assert result.shape == (100, 200, 4)
    red = (result[:, :, 0] == 255) & (result[:, :, 1] == 0)
    assert red[10:90, 10:190].any()


def test_cli_reports_bad_geometry(tmp_path, sans_path):
    config = write_config(tmp_path, sans_path, rect='{ top = 10, bottom = 90, left = 10, right = 400 }')
    output = tmp_path / 'out.png'
    assert main(['-c', str(config), '-o', str(output)]) == 1
    assert not output.exists()


def test_cli_reports_missing_config(tmp_path):
    assert main(['-c', str(tmp_path / 'missing.toml'), '-o', str(tmp_path / 'out.png')]) == 1


def test_cli_reports_invalid_config(tmp_path):
    config = tmp_path / 'overlay.json'
    config.write_text('{"background": "bg.png", "fonts": [], "blocks": [{"min_size": 1}]}', encoding='utf-8')
    assert main(['-c', str(config), '-o', str(tmp_path / 'out.png')]) == 1
