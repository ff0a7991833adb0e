from io import BytesIO
from pathlib import Path

import pytest
from PIL import Image
from pypdf import PdfReader

from mtg_dividers.errors import AssemblyError
from mtg_dividers.models import ExportDocument, RasterSnapshot
from mtg_dividers.pdf_generator import assemble_pdf, fit_to_page_width, paginate, save_pdf


def _snapshot(width: int = 120, height: int = 200) -> RasterSnapshot:
    return RasterSnapshot(image=Image.new("RGB", (width, height), "white"), scale_factor=4)


class TestFitToPageWidth:
    def test_wider_than_a4_scales_down(self) -> None:
        width, height = fit_to_page_width(250, 500)

        assert width == 210
        assert height == pytest.approx(500 * 0.84)

    def test_narrower_is_not_upscaled(self) -> None:
        assert fit_to_page_width(189, 198) == (189, 198)


class TestPaginate:
    def test_fits_on_one_page(self) -> None:
        document = paginate(189, 198)

        assert document.page_count == 1
        assert document.bands[0].vertical_offset_mm == 0
        assert document.bands[0].height_mm == 198

    def test_overflow_to_second_page(self) -> None:
        document = paginate(189, 400)

        assert document.page_count == 2
        assert document.bands[1].vertical_offset_mm == (400 - 297) - 400
        assert document.bands[1].height_mm == pytest.approx(103)

    def test_exact_page_height_has_no_blank_page(self) -> None:
        assert paginate(189, 297).page_count == 1
        assert paginate(189, 594).page_count == 2

    @pytest.mark.parametrize("height", [99, 396, 891, 1287, 2079])
    def test_page_count_and_bands_reconstruct_height(self, height: float) -> None:
        document = paginate(189, height)

        assert document.page_count == -(-height // 297)
        assert sum(b.height_mm for b in document.bands) == pytest.approx(height)
        # Each page starts where the previous one stopped
        for index, band in enumerate(document.bands):
            assert band.page_index == index
            assert band.vertical_offset_mm == pytest.approx(-297 * index)

    def test_scaling_applies_before_pagination(self) -> None:
        document = paginate(250, 400)

        assert document.image_width_mm == 210
        assert document.image_height_mm == pytest.approx(336)
        assert document.page_count == 2

    def test_zero_height_rejected(self) -> None:
        with pytest.raises(ValueError):
            paginate(0, 0)


class TestAssemblePdf:
    def test_one_a4_page_per_band(self) -> None:
        data = assemble_pdf(_snapshot(), paginate(189, 400))

        reader = PdfReader(BytesIO(data))
        assert len(reader.pages) == 2
        for page in reader.pages:
            assert float(page.mediabox.width) == pytest.approx(595.2756, abs=0.01)
            assert float(page.mediabox.height) == pytest.approx(841.8898, abs=0.01)

    def test_sets_title(self) -> None:
        data = assemble_pdf(_snapshot(), paginate(63, 99), title="Dividers")

        assert PdfReader(BytesIO(data)).metadata.title == "Dividers"

    def test_document_without_bands_fails(self) -> None:
        with pytest.raises(AssemblyError):
            assemble_pdf(_snapshot(), ExportDocument(image_width_mm=63, image_height_mm=99))


class TestSavePdf:
    def test_writes_file(self, tmp_path: Path) -> None:
        path = save_pdf(b"%PDF-1.4 test", tmp_path / "out" / "cards.pdf")

        assert path.read_bytes() == b"%PDF-1.4 test"
        assert not (tmp_path / "out" / "cards.pdf.part").exists()

    def test_failed_write_leaves_no_file(self, tmp_path: Path) -> None:
        blocker = tmp_path / "not-a-dir"
        blocker.write_text("x")

        with pytest.raises(AssemblyError):
            save_pdf(b"%PDF-1.4", blocker / "cards.pdf")

        assert not (blocker / "cards.pdf").exists()
