class OverlayError(Exception):
    """Base class for every error raised while overlaying text blocks."""
    pass

class GeometryError(OverlayError):
    pass

class FontNotFound(OverlayError):
    def __init__(self, name: str):
        self.name = name
        super().__init__('Could not find font named "%s"' % name)

class ColorParseError(OverlayError):
    def __init__(self, color: str, reason: str = 'Color must be 6 or 8 hex digits'):
        self.color = color
        super().__init__('%s: "%s"' % (reason, color))

class FitError(OverlayError):
    def __init__(self, min_size: float, max_size: float):
        self.min_size = min_size
        self.max_size = max_size
        super().__init__(
            f'Could not fit text in rectangle with a font size between {min_size:g}pt and {max_size:g}pt'
        )
