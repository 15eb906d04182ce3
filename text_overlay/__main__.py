import argparse
import sys

import freetype
from PIL import Image
from pydantic import ValidationError

from .config import load_config
from .errors import OverlayError
from .rendering.text_render import Font, FontDef
from .text_overlay import overlay_text
from .utils import get_logger, init_logging

logger = get_logger('main')


def parse_arguments(argv=None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(prog='text_overlay', description='Overlay auto-sized text blocks onto an image')
    parser.add_argument('-c', '--config', required=True, help='Configuration file (.toml or .json)')
    parser.add_argument('-o', '--output', required=True, help='Output image path')
    parser.add_argument('-t', '--text', default=None, help='Replace the text of the first run of the first block')
    parser.add_argument('-v', '--verbose', action='store_true', help='Print debug logs')
    return parser.parse_args(argv)


def run(args: argparse.Namespace):
    config = load_config(args.config)
    if args.text is not None and config.blocks and config.blocks[0].text:
        config.blocks[0].text[0].text = args.text

    background = Image.open(config.background)
    fonts = [FontDef(f.name, Font.from_file(f.path)) for f in config.fonts]
    logger.debug(f'Loaded {len(fonts)} fonts and background of size {background.size}')

    result = overlay_text(background, fonts, config.blocks, config.render)
    Image.fromarray(result, 'RGBA').save(args.output)
    logger.info(f'Saved {args.output}')


def main(argv=None) -> int:
    args = parse_arguments(argv)
    init_logging(args.verbose)
    try:
        run(args)
    except (OverlayError, ValidationError, freetype.FT_Exception, OSError, ValueError) as e:
        if args.verbose:
            logger.exception(e)
        else:
            logger.error(e)
        return 1
    return 0


if __name__ == '__main__':
    sys.exit(main())
