from .models import BorderBox, LabelExtractorError, OutputLabel, PageClass, PageDimensions
from .image_processing import build_edge_mask, detect_border, crop_border, rotate_clockwise, split_left_right, split_top_bottom
from .classifier import classify_page
from .compositor import LANDSCAPE_CANVAS, PORTRAIT_CANVAS, composite_label, fit_to_canvas
from .pdf_processing import (
    RasterizeError,
    load_image_bytes,
    open_pdf_bytes,
    open_pdf_path,
    page_dimensions,
    rasterize_pdf_page,
    upscale_to_working_resolution,
)
from .pipeline import (
    PageResult,
    collect_labels,
    extract_labels_from_image,
    extract_labels_from_pdf,
    is_pdf_bytes,
    process_image,
    process_page,
    process_path_and_save_labels,
)
from .log_setup import configure_logging
