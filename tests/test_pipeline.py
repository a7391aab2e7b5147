import asyncio
import json
import time

import fitz
import numpy as np

from helpers import make_jpeg

from docconv.docs.ingest import ingest_files
from docconv.docs.model import DONE, FAILED, NOTHING_TO_CONVERT, ConversionSpec, CoverPageSpec, EnhancementSpec, RawFile
from docconv.docs.ordering import CUSTOM_ORDER, OrderingStore
from docconv.image.processing import decode_image
from docconv.pipeline import process
from docconv.pipeline.process import IDLE, RUNNING, ConversionOrchestrator, ConversionRequest


def _store(buffer, raws, mode=CUSTOM_ORDER):
    store = OrderingStore(buffer, mode=mode)
    store.add(asyncio.run(ingest_files(raws, buffer)).accepted)
    return store


def _run(request, orchestrator=None):
    orchestrator = orchestrator or ConversionOrchestrator()
    return orchestrator, asyncio.run(orchestrator.convert(request))


def test_txt_conversion_follows_store_order(buffer, sample_raws):
    store = _store(buffer, sample_raws)
    orchestrator, result = _run(ConversionRequest.from_store(store, conversion=ConversionSpec(output_format="txt")))
    assert result.status == DONE
    assert orchestrator.state == IDLE
    assert orchestrator.history == [RUNNING, DONE, IDLE]
    [artifact] = result.artifacts
    assert artifact.name == "converted-documents.txt"
    assert artifact.mime_type == "text/plain"
    text = artifact.data.decode("utf-8")
    markers = [
        "Document: a_photo.jpg",
        "[Image file: a_photo.jpg]",
        "Document: b_notes.txt",
        "hello world",
        "Document: c_report.pdf",
        "[PDF file: c_report.pdf]",
    ]
    positions = [text.index(m) for m in markers]
    assert positions == sorted(positions)


def test_pdf_conversion_with_cover(buffer, sample_raws):
    store = _store(buffer, sample_raws)
    request = ConversionRequest.from_store(
        store,
        conversion=ConversionSpec(output_format="pdf", include_metadata=True),
        enhancement=EnhancementSpec(brightness=10, denoise=True),
        cover=CoverPageSpec(title="Bundle", author="Max"),
    )
    _, result = _run(request)
    assert result.status == DONE
    [artifact] = result.artifacts
    assert artifact.name == "converted-documents.pdf"
    doc = fitz.open(stream=artifact.data, filetype="pdf")
    assert doc.page_count == 4
    assert doc.metadata["title"] == "Bundle"


def test_json_metadata_counts(buffer, sample_raws):
    store = _store(buffer, sample_raws)
    request = ConversionRequest.from_store(
        store, conversion=ConversionSpec(output_format="json", include_metadata=True)
    )
    _, result = _run(request)
    payload = json.loads(result.artifacts[0].data)
    meta = payload["metadata"]
    assert meta["total_files"] == 3
    assert meta["counts"] == {"image": 1, "document": 1, "pdf": 1}
    assert meta["title"] == "Document Collection"
    assert meta["conversion_settings"]["include_metadata"] is True
    assert payload["generated_at"] == meta["generated_at"]


def test_unsupported_format_fails_without_artifacts(buffer, sample_raws):
    store = _store(buffer, sample_raws)
    orchestrator, result = _run(ConversionRequest.from_store(store, conversion=ConversionSpec(output_format="xyz")))
    assert result.status == FAILED
    assert result.artifacts == []
    assert "xyz" in result.message
    assert orchestrator.history == [RUNNING, FAILED, IDLE]


def test_image_export_without_images_is_nothing_to_convert(buffer):
    raws = [RawFile("notes.txt", "text/plain", b"text"), RawFile("doc.pdf", "application/pdf", b"%PDF")]
    store = _store(buffer, raws)
    for fmt in ("png", "jpg"):
        _, result = _run(ConversionRequest.from_store(store, conversion=ConversionSpec(output_format=fmt)))
        assert result.status == NOTHING_TO_CONVERT
        assert result.artifacts == []


def test_empty_collection_is_nothing_to_convert():
    _, result = _run(ConversionRequest(items=(), conversion=ConversionSpec(output_format="pdf")))
    assert result.status == NOTHING_TO_CONVERT


def test_png_export_one_artifact_per_image(buffer, sample_raws):
    raws = list(sample_raws) + [RawFile("d_scan.jpeg", "image/jpeg", make_jpeg(10, 10))]
    store = _store(buffer, raws)
    _, result = _run(ConversionRequest.from_store(store, conversion=ConversionSpec(output_format="png")))
    assert result.status == DONE
    assert [a.name for a in result.artifacts] == ["a_photo.png", "d_scan.png"]
    assert all(a.mime_type == "image/png" for a in result.artifacts)
    assert all(a.data[:4] == b"\x89PNG" for a in result.artifacts)
    assert decode_image(result.artifacts[1].data).shape == (10, 10, 3)


def test_jpg_export_applies_quality(buffer, sample_raws):
    raws = [RawFile("noise.png", "image/png", _noise_png())]
    store = _store(buffer, raws)
    _, low = _run(ConversionRequest.from_store(store, conversion=ConversionSpec(output_format="jpg", quality=10)))
    _, high = _run(ConversionRequest.from_store(store, conversion=ConversionSpec(output_format="jpg", quality=95)))
    assert low.artifacts[0].name == "noise.jpg"
    assert len(low.artifacts[0].data) < len(high.artifacts[0].data)


def _noise_png():
    import cv2

    rng = np.random.default_rng(1)
    ok, buf = cv2.imencode(".png", rng.integers(0, 256, size=(64, 64, 3), dtype=np.uint8))
    assert ok
    return buf.tobytes()


def test_decode_failure_fails_whole_run(buffer, sample_raws):
    raws = list(sample_raws) + [RawFile("broken.png", "image/png", b"not really a png")]
    store = _store(buffer, raws)
    orchestrator, result = _run(ConversionRequest.from_store(store, conversion=ConversionSpec(output_format="pdf")))
    assert result.status == FAILED
    assert result.artifacts == []
    assert orchestrator.state == IDLE


def test_no_merge_writes_one_artifact_per_item(buffer):
    raws = [RawFile("a.txt", "text/plain", b"one"), RawFile("a.md", "text/markdown", b"two")]
    store = _store(buffer, raws)
    request = ConversionRequest.from_store(
        store,
        conversion=ConversionSpec(output_format="txt", merge_documents=False),
        cover=CoverPageSpec(title="Ignored"),
    )
    _, result = _run(request)
    assert [a.name for a in result.artifacts] == ["a.txt", "a-2.txt"]
    assert result.artifacts[0].data.decode().startswith("Document: a.txt")
    assert b"Ignored" not in result.artifacts[1].data


def test_second_request_while_running_is_ignored(buffer, sample_raws):
    store = _store(buffer, sample_raws)
    request = ConversionRequest.from_store(store, conversion=ConversionSpec(output_format="txt"))
    orchestrator = ConversionOrchestrator()

    async def scenario():
        first = asyncio.create_task(orchestrator.convert(request))
        await asyncio.sleep(0)
        assert orchestrator.state == RUNNING
        second = await orchestrator.convert(request)
        return await first, second

    first, second = asyncio.run(scenario())
    assert first.status == DONE
    assert len(first.artifacts) == 1
    assert second is None
    assert orchestrator.history == [RUNNING, DONE, IDLE]


def test_items_awaited_in_collection_order(buffer, monkeypatch):
    delays = {b"first": 0.2, b"second": 0.0, b"third": 0.05}
    finished = []

    def fake_prepare(data, enhancement, fmt, quality, compression):
        time.sleep(delays[data])
        finished.append(data)
        return data

    monkeypatch.setattr(process, "prepare_image", fake_prepare)
    raws = [RawFile(f"{name.decode()}.png", "image/png", name) for name in delays]
    store = _store(buffer, raws)
    _, result = _run(ConversionRequest.from_store(store, conversion=ConversionSpec(output_format="png")))
    assert result.status == DONE
    assert [a.data for a in result.artifacts] == [b"first", b"second", b"third"]
    assert finished[0] != b"first"


def test_request_snapshot_ignores_later_store_changes(buffer, sample_raws):
    store = _store(buffer, sample_raws)
    request = ConversionRequest.from_store(store, conversion=ConversionSpec(output_format="json"))
    store.move(0, 2)
    store.remove(request.items[1].id)
    _, result = _run(request)
    names = [f["name"] for f in json.loads(result.artifacts[0].data)["files"]]
    assert names == ["a_photo.jpg", "b_notes.txt", "c_report.pdf"]


def test_orchestrator_can_run_again_after_failure(buffer, sample_raws):
    store = _store(buffer, sample_raws)
    orchestrator = ConversionOrchestrator()
    _, failed = _run(ConversionRequest.from_store(store, conversion=ConversionSpec(output_format="nope")), orchestrator)
    _, ok = _run(ConversionRequest.from_store(store, conversion=ConversionSpec(output_format="csv")), orchestrator)
    assert failed.status == FAILED
    assert ok.status == DONE
    assert orchestrator.last_result is ok


def test_image_export_keeps_images_with_the_same_stem(buffer):
    raws = [
        RawFile("scan.jpg", "image/jpeg", make_jpeg(8, 8)),
        RawFile("scan.png", "image/png", _noise_png()),
        RawFile("scan.txt", "text/plain", b"skipped"),
    ]
    store = _store(buffer, raws)
    _, result = _run(ConversionRequest.from_store(store, conversion=ConversionSpec(output_format="png")))
    names = [a.name for a in result.artifacts]
    assert names == ["scan.png", "scan-2.png"]
    assert decode_image(result.artifacts[0].data).shape == (8, 8, 3)
    assert decode_image(result.artifacts[1].data).shape == (64, 64, 3)


def test_json_drops_image_ref_released_during_run(buffer, sample_raws):
    raws = list(sample_raws) + [RawFile("d_scan.jpeg", "image/jpeg", make_jpeg(10, 10))]
    store = _store(buffer, raws)
    request = ConversionRequest.from_store(store, conversion=ConversionSpec(output_format="json"))
    removed = request.items[0]
    store.remove(removed.id)
    assert removed.handle not in buffer

    _, result = _run(request)
    files = json.loads(result.artifacts[0].data)["files"]
    assert [f["name"] for f in files] == ["a_photo.jpg", "b_notes.txt", "c_report.pdf", "d_scan.jpeg"]
    assert files[0]["image_ref"] is None
    assert files[3]["image_ref"] == request.items[3].handle
    assert files[3]["image_ref"] in buffer
