"""Tests for page classification, splitting, rotation and compositing per page."""

import time

import numpy as np
import pytest

from conftest import FOUR_BY_SIX_PT, build_pdf, draw_outline, white_page
from label_extractor import pipeline
from label_extractor.image_processing import detect_border, rotate_clockwise, split_top_bottom
from label_extractor.models import PageDimensions
from label_extractor.pdf_processing import RasterizeError
from label_extractor.pipeline import (
    collect_labels,
    extract_labels_from_image,
    extract_labels_from_pdf,
    is_pdf_bytes,
    process_image,
    process_page,
    process_path_and_save_labels,
)

LETTER_PORTRAIT = PageDimensions(8.5, 11)
LETTER_LANDSCAPE = PageDimensions(11, 8.5)
FOUR_BY_SIX = PageDimensions(4, 6)


class TestProcessPage:
    def test_letter_portrait_yields_top_then_bottom(self):
        labels = process_page(white_page(1100, 850), LETTER_PORTRAIT, page_number=1)
        assert [label.filename for label in labels] == ["label_page1_top.png", "label_page1_bottom.png"]
        assert [label.label_id for label in labels] == ["1-1", "1-2"]
        assert [label.source for label in labels] == [
            "8.5x11 portrait (top, rotated)",
            "8.5x11 portrait (bottom, rotated)",
        ]
        for label in labels:
            assert label.orientation == "portrait"
            assert label.image.shape == (1800, 1200, 3)

    def test_letter_portrait_halves_are_rotated_clockwise(self):
        page = white_page(1100, 850)
        page[0:50, 0:50] = 0  # Mark the top-left corner of the top half
        top, _ = process_page(page, LETTER_PORTRAIT, page_number=1)
        # The rotated half is 550 x 850 and scales to 1165 x 1800 starting at x=17,
        # so the mark ends up in the top-right corner
        assert (top.image[50, 1130] == 0).all()
        assert (top.image[50, 100] == 255).all()

    def test_letter_landscape_yields_left_then_right_unrotated(self):
        page = white_page(850, 1100)
        page[0:50, 0:50] = 0  # Mark the top-left corner of the left half
        labels = process_page(page, LETTER_LANDSCAPE, page_number=4)
        assert [label.filename for label in labels] == ["label_page4_left.png", "label_page4_right.png"]
        assert [label.source for label in labels] == ["11x8.5 landscape (left)", "11x8.5 landscape (right)"]
        left, right = labels
        assert left.orientation == right.orientation == "portrait"
        assert (left.image[50, 60] == 0).all()
        assert (left.image[50, 1130] == 255).all()
        assert (right.image == 255).all()

    def test_four_by_six_yields_one_label(self):
        labels = process_page(white_page(600, 400), FOUR_BY_SIX, page_number=2)
        assert len(labels) == 1
        label = labels[0]
        assert label.filename == "label_page2_1.png"
        assert label.label_id == "2-1"
        assert label.source == "4x6 page"
        assert label.orientation == "portrait"

    def test_blank_four_by_six_is_a_blank_label(self):
        label = process_page(white_page(1800, 1200), FOUR_BY_SIX, page_number=1)[0]
        assert label.image.shape == (1800, 1200, 3)
        assert (label.image == 255).all()

    def test_four_by_six_with_border_is_cropped(self):
        page = draw_outline(white_page(600, 400), left=40, top=60, right=360, bottom=540)
        label = process_page(page, FOUR_BY_SIX, page_number=1)[0]
        assert label.source == "4x6 page (border detected)"
        # The 320 x 480 border region scales to fill the canvas, so the outline reaches the canvas edges
        assert label.image[8:10, 600].max() < 64
        assert label.image[900, 8:10].max() < 64
        assert (label.image[900, 600] == 255).all()

    def test_unknown_size_yields_one_label(self):
        labels = process_page(white_page(500, 500), PageDimensions(5, 5), page_number=3)
        assert [label.filename for label in labels] == ["label_page3.png"]
        assert labels[0].source == "unknown size page"
        assert labels[0].image.shape == (1800, 1200, 3)

    def test_letter_portrait_with_label_border_in_top_half(self):
        # 8.5 x 11 inches at 300 dpi with a rectangle from (200, 200) to (2350, 1600)
        page = draw_outline(white_page(3300, 2550), left=200, top=200, right=2350, bottom=1600, thickness=10)
        top, bottom = process_page(page, LETTER_PORTRAIT, page_number=1)
        assert top.source == "8.5x11 portrait (top, rotated, border detected)"
        assert bottom.source == "8.5x11 portrait (bottom, rotated)"
        assert top.image.shape == bottom.image.shape == (1800, 1200, 3)

        # Detection runs on the rotated half, where page x becomes the row
        rotated = rotate_clockwise(split_top_bottom(page)[0])
        border = detect_border(rotated)
        assert border is not None
        assert abs(border.top - 200) <= 2
        assert abs(border.bottom - 2350) <= 2
        assert abs(border.right - (1649 - 200)) <= 2
        # The rectangle's lower edge is 50 px from the cut, inside the scan margin
        assert border.left <= 1649 - 1600
        # The box fills the canvas width, so the outline sits close to the canvas edges
        assert top.image[900, 45].max() < 64
        assert (top.image[10:20, :] < 64).any()


class TestProcessImage:
    def test_portrait_image(self):
        label = process_image(white_page(300, 200))
        assert label.image.shape == (1800, 1200, 3)
        assert label.orientation == "portrait"
        assert label.filename == "shipping_label.png"
        assert label.label_id == "1-1"
        assert label.source == "image upload"

    def test_landscape_image_gets_landscape_canvas(self):
        label = process_image(white_page(200, 300))
        assert label.image.shape == (1200, 1800, 3)
        assert label.orientation == "landscape"

    def test_image_border_is_detected_after_upscaling(self):
        image = draw_outline(white_page(600, 400), left=40, top=60, right=360, bottom=540)
        label = process_image(image)
        assert label.source == "image upload (border detected)"

    def test_extract_labels_from_image_bytes(self):
        from PIL import Image
        import io

        with io.BytesIO() as output:
            Image.new("RGB", (120, 80), "white").save(output, format="PNG")
            labels = extract_labels_from_image(output.getvalue())
        assert len(labels) == 1
        assert labels[0].orientation == "landscape"


class TestExtractLabelsFromPdf:
    def test_label_counts_and_order(self, mixed_pdf_bytes):
        results = extract_labels_from_pdf(mixed_pdf_bytes, max_workers=2)
        assert [result.page_number for result in results] == [1, 2, 3, 4]
        assert all(result.ok for result in results)
        assert [label.filename for label in collect_labels(results)] == [
            "label_page1_top.png",
            "label_page1_bottom.png",
            "label_page2_1.png",
            "label_page3_left.png",
            "label_page3_right.png",
            "label_page4.png",
        ]

    def test_border_detected_on_rendered_page(self):
        results = extract_labels_from_pdf(build_pdf([FOUR_BY_SIX_PT], border_inset=30))
        assert results[0].labels[0].source == "4x6 page (border detected)"

    def test_page_that_fails_to_render_does_not_stop_others(self, mixed_pdf_bytes, monkeypatch):
        rasterize = pipeline.rasterize_pdf_page

        def failing_first_page(doc, page_num, *args, **kwargs):
            if page_num == 0:
                raise RasterizeError("render failed")
            return rasterize(doc, page_num, *args, **kwargs)

        monkeypatch.setattr(pipeline, "rasterize_pdf_page", failing_first_page)
        results = extract_labels_from_pdf(mixed_pdf_bytes)

        assert not results[0].ok
        assert isinstance(results[0].error, RasterizeError)
        assert results[0].labels == ()
        assert all(result.ok for result in results[1:])
        assert len(collect_labels(results)) == 4

    @pytest.mark.parametrize("max_workers", [1, 2])
    def test_rendered_pages_in_flight_are_bounded(self, monkeypatch, max_workers):
        rasterize = pipeline.rasterize_pdf_page
        process = pipeline.process_page
        rendered = []
        processed = []
        backlog = []

        def counting_rasterize(doc, page_num, *args, **kwargs):
            rendered.append(page_num)
            return rasterize(doc, page_num, *args, **kwargs)

        def slow_process(image, dimensions, page_number):
            backlog.append(len(rendered) - len(processed))
            time.sleep(0.05)
            labels = process(image, dimensions, page_number)
            processed.append(page_number)
            return labels

        monkeypatch.setattr(pipeline, "rasterize_pdf_page", counting_rasterize)
        monkeypatch.setattr(pipeline, "process_page", slow_process)
        results = extract_labels_from_pdf(build_pdf([FOUR_BY_SIX_PT] * 6), max_workers=max_workers)

        assert [result.page_number for result in results] == [1, 2, 3, 4, 5, 6]
        assert max(backlog) <= max_workers


def test_is_pdf_bytes():
    assert is_pdf_bytes(b"%PDF-1.4\n...")
    assert is_pdf_bytes(b"\n  %PDF-1.7")
    assert not is_pdf_bytes(b"\x89PNG\r\n\x1a\n")


def test_process_path_and_save_labels(tmp_path, mixed_pdf_bytes):
    pdf_path = tmp_path / "labels.pdf"
    pdf_path.write_bytes(mixed_pdf_bytes)
    output_dir = tmp_path / "out"

    saved = process_path_and_save_labels(str(pdf_path), str(output_dir))

    assert [path.name for path in saved] == [
        "label_page1_top.png",
        "label_page1_bottom.png",
        "label_page2_1.png",
        "label_page3_left.png",
        "label_page3_right.png",
        "label_page4.png",
    ]
    assert all(path.read_bytes().startswith(b"\x89PNG") for path in saved)


def test_process_image_path_and_save_label(tmp_path):
    from PIL import Image

    image_path = tmp_path / "label.jpg"
    Image.fromarray(np.full((90, 60, 3), 255, dtype=np.uint8)).save(image_path)

    saved = process_path_and_save_labels(str(image_path), str(tmp_path / "out"))
    assert [path.name for path in saved] == ["shipping_label.png"]
