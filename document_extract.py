from __future__ import annotations

import base64
import io
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import BinaryIO, Union

from docx import Document
from docx.table import Table
from docx.text.paragraph import Paragraph
from PIL import Image, UnidentifiedImageError

log = logging.getLogger(__name__)

METAFILE_EXTENSIONS = {".wmf", ".emf"}


@dataclass
class ExtractedDocument:
    text: str
    images: list[str] = field(default_factory=list)
    logs: list[str] = field(default_factory=list)


def image_to_data_url(data: bytes, max_dimension: int) -> str | None:
    """Re-encode image bytes as a PNG data URL, longest side <= max_dimension."""
    try:
        with Image.open(io.BytesIO(data)) as img:
            img.load()
            if img.mode not in ("RGB", "L"):
                img = img.convert("RGB")
            img.thumbnail((max_dimension, max_dimension), Image.Resampling.LANCZOS)
            buffer = io.BytesIO()
            img.save(buffer, format="PNG", optimize=True)
    except (UnidentifiedImageError, OSError) as exc:
        log.warning("Skipping unreadable image: %s", exc)
        return None
    encoded = base64.b64encode(buffer.getvalue()).decode("ascii")
    return f"data:image/png;base64,{encoded}"


class DocumentTextExtractor:
    """
    Flattens a .docx into plain text plus its embedded images.

    Paragraphs and tables are read in document order; each table row becomes
    one line with cells joined by `` | ``. The output feeds the AI question
    extraction call, which works on text and image data URLs.
    """

    def __init__(
        self,
        source: Union[Path, BinaryIO],
        max_images: int = 10,
        max_image_dimension: int = 1600,
    ):
        self.source = source
        self.max_images = max_images
        self.max_image_dimension = max_image_dimension
        self.logs: list[str] = []

    def _iter_blocks(self, doc):
        body = doc.element.body
        for child in body.iterchildren():
            if child.tag.endswith("}p"):
                yield Paragraph(child, doc)
            elif child.tag.endswith("}tbl"):
                yield Table(child, doc)

    def _table_lines(self, table: Table) -> list[str]:
        lines = []
        for row in table.rows:
            cells: list[str] = []
            for cell in row.cells:
                text = cell.text.strip()
                # merged cells repeat the same text across the span
                if text and (not cells or cells[-1] != text):
                    cells.append(text)
            if cells:
                lines.append(" | ".join(cells))
        return lines

    def _extract_images(self, doc) -> list[str]:
        images: list[str] = []
        skipped = 0
        for rel_id, part in doc.part.related_parts.items():
            if "image" not in part.content_type:
                continue
            if Path(part.partname).suffix.lower() in METAFILE_EXTENSIONS:
                skipped += 1
                continue
            if len(images) >= self.max_images:
                skipped += 1
                continue
            url = image_to_data_url(part.blob, self.max_image_dimension)
            if url is None:
                skipped += 1
                continue
            images.append(url)
        log.info("Extracted embedded images: %d (skipped %d)", len(images), skipped)
        self.logs.append(f"Images extracted: {len(images)}")
        if skipped:
            self.logs.append(f"Images skipped: {skipped}")
        return images

    def extract(self) -> ExtractedDocument:
        self.logs.clear()
        doc = Document(self.source)

        lines: list[str] = []
        tables = 0
        for block in self._iter_blocks(doc):
            if isinstance(block, Table):
                tables += 1
                lines.extend(self._table_lines(block))
                continue
            text = block.text.strip()
            if text:
                lines.append(text)

        images = self._extract_images(doc)
        log.info("Document flattened: %d lines, %d tables", len(lines), tables)
        self.logs.append(f"Lines extracted: {len(lines)}")
        self.logs.append(f"Tables read: {tables}")
        return ExtractedDocument(text="\n".join(lines), images=images, logs=list(self.logs))
