from .models import PageClass, PageDimensions

SIZE_TOLERANCE_INCHES = 0.5


def _matches(dimensions: PageDimensions, width: float, height: float) -> bool:
    """True when the page is width x height inches in either orientation."""
    def close(value: float, target: float) -> bool:
        return abs(value - target) < SIZE_TOLERANCE_INCHES

    return ((close(dimensions.width, width) and close(dimensions.height, height))
            or (close(dimensions.width, height) and close(dimensions.height, width)))


def classify_page(dimensions: PageDimensions) -> PageClass:
    """Classify a page by its physical size. Raster resolution plays no part."""
    if _matches(dimensions, 4.0, 6.0):
        return PageClass.FOUR_BY_SIX
    if _matches(dimensions, 8.5, 11.0):
        if dimensions.height > dimensions.width:
            return PageClass.LETTER_PORTRAIT
        return PageClass.LETTER_LANDSCAPE
    return PageClass.UNKNOWN
