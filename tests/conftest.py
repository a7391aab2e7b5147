import asyncio

import pytest

from docconv.docs.buffer import BufferManager
from docconv.docs.ingest import ingest_files
from docconv.docs.model import RawFile
from helpers import PDF_BYTES, make_jpeg


@pytest.fixture
def buffer():
    return BufferManager()


@pytest.fixture
def sample_raws():
    return [
        RawFile("a_photo.jpg", "image/jpeg", make_jpeg()),
        RawFile("b_notes.txt", "text/plain", b"hello world"),
        RawFile("c_report.pdf", "application/pdf", PDF_BYTES),
    ]


@pytest.fixture
def sample_items(buffer, sample_raws):
    return asyncio.run(ingest_files(sample_raws, buffer)).accepted
