"""
Extract 4x6 shipping labels from a PDF or image file.

Usage:
    python -m label_extractor <input.pdf|image> [output_dir]

Each label is written to output_dir (default: output_png) using the
label_page{N}_{position}.png naming scheme, or shipping_label.png for images.
"""

import sys
from .log_setup import configure_logging
from .models import LabelExtractorError
from .pipeline import process_path_and_save_labels

DEFAULT_OUTPUT_DIR = "output_png"


def main(argv=None) -> int:
    argv = sys.argv[1:] if argv is None else argv
    if not argv:
        print(__doc__.strip())
        return 2

    configure_logging()
    input_path = argv[0]
    output_dir = argv[1] if len(argv) > 1 else DEFAULT_OUTPUT_DIR

    try:
        saved = process_path_and_save_labels(input_path, output_dir)
    except (LabelExtractorError, OSError) as e:
        print(f"Failed to extract labels from {input_path}: {e}", file=sys.stderr)
        return 1

    for path in saved:
        print(f"Label saved to: {path}")
    if not saved:
        print("No labels extracted.")
    return 0


if __name__ == "__main__":
    sys.exit(main())
