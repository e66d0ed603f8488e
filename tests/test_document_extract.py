import base64
import io
from pathlib import Path

from docx import Document
from PIL import Image

from document_extract import DocumentTextExtractor, image_to_data_url


def _png_bytes(size=(10, 10), mode="RGB") -> bytes:
    buffer = io.BytesIO()
    Image.new(mode, size, color="red").save(buffer, format="PNG")
    return buffer.getvalue()


def _decode(url: str) -> Image.Image:
    prefix = "data:image/png;base64,"
    assert url.startswith(prefix)
    return Image.open(io.BytesIO(base64.b64decode(url[len(prefix):])))


def test_image_to_data_url_caps_longest_side() -> None:
    url = image_to_data_url(_png_bytes((400, 100)), max_dimension=200)
    assert _decode(url).size == (200, 50)


def test_image_to_data_url_keeps_small_images() -> None:
    url = image_to_data_url(_png_bytes((30, 20), mode="RGBA"), max_dimension=200)
    assert _decode(url).size == (30, 20)


def test_image_to_data_url_rejects_non_images() -> None:
    assert image_to_data_url(b"not an image", max_dimension=200) is None


def test_extract_docx_in_document_order(tmp_path: Path) -> None:
    image_path = tmp_path / "diagram.png"
    image_path.write_bytes(_png_bytes())

    doc = Document()
    doc.add_paragraph("Reading passage: The water cycle")
    doc.add_paragraph("")
    table = doc.add_table(rows=2, cols=2)
    table.cell(0, 0).text = "Question"
    table.cell(0, 1).text = "Answer"
    merged = table.cell(1, 0).merge(table.cell(1, 1))
    merged.text = "Evaporation"
    doc.add_paragraph("1. What drives evaporation?")
    doc.add_picture(str(image_path))

    doc_path = tmp_path / "sample.docx"
    doc.save(doc_path)

    document = DocumentTextExtractor(doc_path).extract()

    assert document.text.splitlines() == [
        "Reading passage: The water cycle",
        "Question | Answer",
        "Evaporation",
        "1. What drives evaporation?",
    ]
    assert len(document.images) == 1
    assert _decode(document.images[0]).size == (10, 10)
    assert "Images extracted: 1" in document.logs
    assert "Tables read: 1" in document.logs


def test_extract_limits_images(tmp_path: Path) -> None:
    doc = Document()
    for index in range(3):
        image_path = tmp_path / f"image{index}.png"
        Image.new("RGB", (10 + index, 10), color="blue").save(image_path)
        doc.add_picture(str(image_path))
    buffer = io.BytesIO()
    doc.save(buffer)
    buffer.seek(0)

    document = DocumentTextExtractor(buffer, max_images=2).extract()

    assert len(document.images) == 2
    assert "Images skipped: 1" in document.logs
