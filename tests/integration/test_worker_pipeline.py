"""End-to-end runs through the real worker thread with local providers only."""

import asyncio

import pytest

from docflow.config.settings import Settings
from docflow.documents.models import FileInput
from docflow.merge.models import MergeOptions
from docflow.orchestrator.orchestrator import DocumentOrchestrator, build_orchestrator

DOCX_MIME = "application/vnd.openxmlformats-officedocument.wordprocessingml.document"


async def _run_with_worker(settings: Settings, scenario) -> DocumentOrchestrator:
    orchestrator = build_orchestrator(settings)
    assert await orchestrator.worker.initialize() is True
    try:
        await scenario(orchestrator)
    finally:
        await orchestrator.worker.cleanup()
    return orchestrator


@pytest.mark.integration
class TestWorkerPipeline:
    def test_ingest_process_and_export(
        self,
        settings: Settings,
        sample_pdf_bytes: bytes,
        docx_bytes: bytes,
    ) -> None:
        files = [
            FileInput("report.pdf", "application/pdf", sample_pdf_bytes),
            FileInput("quarterly.docx", DOCX_MIME, docx_bytes),
            FileInput("notes.txt", "text/plain", "The team shipped the release on time.".encode()),
        ]

        async def scenario(orchestrator: DocumentOrchestrator) -> None:
            documents = await orchestrator.add_files(files)
            for document in documents:
                orchestrator.select_document(document.id)
            await orchestrator.analyze_selected()
            await orchestrator.compress_selected("gzip")
            await orchestrator.translate_selected("fr")
            await orchestrator.merge_selected(MergeOptions(output_format="md", title="Bundle.md"))

        orchestrator = asyncio.run(_run_with_worker(settings, scenario))

        state = orchestrator.snapshot()
        assert state.errors == ()
        assert [d.name for d in state.documents.values()] == ["report.pdf", "quarterly.docx", "notes.txt"]
        assert "Revenue grew this quarter." in next(
            d.content for d in state.documents.values() if d.name == "quarterly.docx"
        )
        assert set(state.analyses) == set(state.documents)
        assert all(r.method == "gzip" for r in state.compression_results.values())
        assert len(state.merged_documents) == 1
        assert state.is_processing is False

        notes_id = next(doc_id for doc_id, d in state.documents.items() if d.name == "notes.txt")
        assert orchestrator.export_document(notes_id, "compressed").mime_type == "application/gzip"
        translated = orchestrator.export_document(notes_id, "translated")
        assert translated.data.decode("utf-8") == state.translations[notes_id]["fr"].translated_text

    def test_large_file_is_chunked(self, settings: Settings) -> None:
        text = " ".join(f"word{i}" for i in range(400))
        chunked_settings = settings.model_copy(update={"chunk_size_bytes": 1024})

        async def scenario(orchestrator: DocumentOrchestrator) -> None:
            await orchestrator.add_file(FileInput("long.txt", "text/plain", text.encode()))

        orchestrator = asyncio.run(_run_with_worker(chunked_settings, scenario))

        document = next(iter(orchestrator.snapshot().documents.values()))
        assert document.metadata.chunks is not None and document.metadata.chunks > 1
        assert document.content.startswith("word0 ")
        assert document.content.endswith("word399")

    def test_bad_file_does_not_stop_batch(self, settings: Settings) -> None:
        files = [
            FileInput("broken.pdf", "application/pdf", b"%PDF-not really"),
            FileInput("ok.txt", "text/plain", b"still processed"),
        ]

        progress = []

        async def scenario(orchestrator: DocumentOrchestrator) -> None:
            await orchestrator.add_files(files, progress.append)

        orchestrator = asyncio.run(_run_with_worker(settings, scenario))

        state = orchestrator.snapshot()
        assert [d.name for d in state.documents.values()] == ["ok.txt"]
        assert progress[-1].task_id.startswith("task_")
        assert progress[-1].completed == progress[-1].total == 2
        assert len(state.errors) == 1
        assert state.errors[0].startswith("Extraction: ")
        assert orchestrator.worker.restarts == 0
