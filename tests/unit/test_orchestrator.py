import asyncio
from unittest.mock import MagicMock

import pytest

from docflow.analysis.models import DetectedLanguage, DocumentAnalysis, DocumentInsights, Sentiment
from docflow.compression.engine import CompressionEngine
from docflow.config.settings import Settings
from docflow.documents.exceptions import FileValidationError, NotFoundError
from docflow.documents.models import FileInput
from docflow.documents.validation import FileValidator
from docflow.extraction.exceptions import ExtractionError
from docflow.extraction.factory import ExtractorFactory
from docflow.merge.engine import MergeEngine
from docflow.merge.models import MergeOptions
from docflow.orchestrator.orchestrator import DocumentOrchestrator, build_orchestrator
from docflow.orchestrator.state import AppendError
from docflow.translation.models import DocumentTranslation
from docflow.worker.exceptions import WorkerError
from docflow.worker.manager import BatchItemResult
from docflow.worker.protocol import BatchProgress, ExtractionPayload


def _analysis(language: str = "en") -> DocumentAnalysis:
    return DocumentAnalysis(
        sentiment=Sentiment("positive", 0.8, {"positive": 0.8, "negative": 0.1, "neutral": 0.1}),
        key_phrases=["report"],
        entities=[],
        language=DetectedLanguage("French" if language == "fr" else "English", language, 0.9),
        summary="A report.",
        topics=["business"],
        readability_score=60.0,
    )


def _make_orchestrator(settings: Settings, worker=None) -> DocumentOrchestrator:
    """Create an orchestrator with real extraction and mocked providers."""
    mock_analysis = MagicMock()
    mock_analysis.analyze.return_value = _analysis()
    mock_analysis.generate_insights.return_value = DocumentInsights(["Short document"], ["Add detail"])
    mock_translation = MagicMock()
    mock_translation.translate.side_effect = lambda text, target, source=None: DocumentTranslation(
        source or "en", target, f"[{target}] {text}", 0.9
    )
    return DocumentOrchestrator(
        settings,
        validator=FileValidator(settings),
        extractor=ExtractorFactory.create(settings),
        analysis=mock_analysis,
        translation=mock_translation,
        compression=CompressionEngine(),
        merge=MergeEngine(),
        worker=worker,
    )


def _text_file(name: str = "notes.txt", text: str = "hello world from the report") -> FileInput:
    return FileInput(name, "text/plain", text.encode("utf-8"))


class TestAddFile:
    def test_adds_extracted_document(self, settings: Settings) -> None:
        orchestrator = _make_orchestrator(settings)

        document = asyncio.run(orchestrator.add_file(_text_file()))

        state = orchestrator.snapshot()
        assert state.documents[document.id] is document
        assert document.content == "hello world from the report"
        assert document.metadata.words == 5
        assert document.original == b"hello world from the report"
        assert document.metadata.language
        assert document.thumbnail is None
        assert state.is_processing is False

    def test_image_gets_thumbnail(self, settings: Settings, png_bytes: bytes) -> None:
        orchestrator = _make_orchestrator(settings)

        document = asyncio.run(orchestrator.add_file(FileInput("scan.png", "image/png", png_bytes)))

        assert document.thumbnail is not None
        assert document.content == "Image file: scan.png (OCR disabled)"

    def test_invalid_file_records_error(self, settings: Settings) -> None:
        orchestrator = _make_orchestrator(settings)

        with pytest.raises(FileValidationError):
            asyncio.run(orchestrator.add_file(FileInput("run.exe", "", b"MZ")))

        state = orchestrator.snapshot()
        assert state.documents == {}
        assert state.errors == ("Extraction: run.exe: Executable files are not allowed",)
        assert state.active_operations == 0


class TestAddFiles:
    def test_failed_file_is_skipped(self, settings: Settings) -> None:
        orchestrator = _make_orchestrator(settings)
        progress = []

        documents = asyncio.run(
            orchestrator.add_files([_text_file("good.txt"), FileInput("bad.exe", "", b"MZ")], progress.append)
        )

        state = orchestrator.snapshot()
        assert [d.name for d in documents] == ["good.txt"]
        assert len(state.documents) == 1
        assert len(state.errors) == 1
        assert state.errors[0].startswith("Extraction: bad.exe")
        assert progress[-1].completed == progress[-1].total == 2
        assert state.active_operations == 0

    def test_too_many_files(self, settings: Settings) -> None:
        orchestrator = _make_orchestrator(settings.model_copy(update={"max_batch_files": 1}))

        with pytest.raises(FileValidationError, match="Too many files"):
            asyncio.run(orchestrator.add_files([_text_file("a.txt"), _text_file("b.txt")]))

        assert orchestrator.snapshot().errors[0].startswith("Extraction: Too many files")


class TestOperations:
    def _with_document(self, settings: Settings) -> tuple[DocumentOrchestrator, str]:
        orchestrator = _make_orchestrator(settings)
        document = asyncio.run(orchestrator.add_file(_text_file(text="hello    world\n\n\nagain")))
        return orchestrator, document.id

    def test_compress_without_worker(self, settings: Settings) -> None:
        orchestrator, doc_id = self._with_document(settings)

        result = asyncio.run(orchestrator.compress_document(doc_id, "basic"))

        assert result.compressed_data == b"hello world again"
        assert orchestrator.snapshot().compression_results[doc_id] is result
        assert orchestrator.export_document(doc_id, "compressed").data == b"hello world again"

    def test_analysis_updates_language(self, settings: Settings) -> None:
        orchestrator, doc_id = self._with_document(settings)
        orchestrator._analysis.analyze.return_value = _analysis("fr")

        asyncio.run(orchestrator.analyze_document(doc_id))

        state = orchestrator.snapshot()
        assert state.analyses[doc_id].language.code == "fr"
        assert state.documents[doc_id].metadata.language == "fr"

    def test_translate_defaults_target(self, settings: Settings) -> None:
        orchestrator, doc_id = self._with_document(settings)

        translation = asyncio.run(orchestrator.translate_document(doc_id))

        assert translation.target_language == settings.default_target_language
        blob = orchestrator.export_document(doc_id, "translated")
        assert blob.data.decode("utf-8") == translation.translated_text

    def test_generate_insights(self, settings: Settings) -> None:
        orchestrator, doc_id = self._with_document(settings)

        insights = asyncio.run(orchestrator.generate_insights(doc_id))

        assert orchestrator.snapshot().insights[doc_id] is insights

    def test_unknown_document_records_error(self, settings: Settings) -> None:
        orchestrator = _make_orchestrator(settings)

        with pytest.raises(NotFoundError):
            asyncio.run(orchestrator.analyze_document("ghost"))

        state = orchestrator.snapshot()
        assert state.errors == ("Analysis: Document ghost not found",)
        assert state.is_processing is False


class TestSelectedOperations:
    def test_partial_failure_returns_successes(self, settings: Settings) -> None:
        orchestrator = _make_orchestrator(settings)
        first = asyncio.run(orchestrator.add_file(_text_file("a.txt")))
        second = asyncio.run(orchestrator.add_file(_text_file("b.txt")))
        orchestrator.select_document(first.id)
        orchestrator.select_document(second.id)
        orchestrator._analysis.analyze.side_effect = [RuntimeError("provider down"), _analysis()]

        results = asyncio.run(orchestrator.analyze_selected())

        assert list(results) == [second.id]
        assert orchestrator.snapshot().errors == ("Analysis: provider down",)

    def test_merge_selected_in_selection_order(self, settings: Settings) -> None:
        orchestrator = _make_orchestrator(settings)
        first = asyncio.run(orchestrator.add_file(_text_file("a.txt", "alpha")))
        second = asyncio.run(orchestrator.add_file(_text_file("b.txt", "beta")))
        orchestrator.select_document(second.id)
        orchestrator.select_document(first.id)

        merged = asyncio.run(
            orchestrator.merge_selected(MergeOptions(include_metadata=False, title="Both.txt"))
        )

        state = orchestrator.snapshot()
        assert merged.content == "beta\n\n---\n\nalpha"
        assert state.merged_documents == (merged,)
        assert merged.id not in state.documents
        assert orchestrator.export_document(merged.id).data == b"beta\n\n---\n\nalpha"

    def test_merge_with_empty_selection(self, settings: Settings) -> None:
        orchestrator = _make_orchestrator(settings)

        assert asyncio.run(orchestrator.merge_selected()) is None
        assert orchestrator.snapshot().errors[0].startswith("Merge: ")


class TestStore:
    def test_subscribe_and_unsubscribe(self, settings: Settings) -> None:
        orchestrator = _make_orchestrator(settings)
        listener = MagicMock()
        unsubscribe = orchestrator.subscribe(listener)

        orchestrator.dispatch(AppendError("x"))
        unsubscribe()
        orchestrator.dispatch(AppendError("y"))

        listener.assert_called_once()
        state, action = listener.call_args.args
        assert action == AppendError("x")
        assert state.errors == ("x",)

    def test_remove_and_clear_errors(self, settings: Settings) -> None:
        orchestrator = _make_orchestrator(settings)
        document = asyncio.run(orchestrator.add_file(_text_file()))
        orchestrator.dispatch(AppendError("x"))

        orchestrator.remove_document(document.id)
        orchestrator.clear_errors()

        state = orchestrator.snapshot()
        assert state.documents == {}
        assert state.errors == ()

    def test_validate_environment(self, settings: Settings) -> None:
        orchestrator = _make_orchestrator(settings)

        status = orchestrator.validate_environment({"OPENAI_API_KEY": "sk-test"})

        assert status.valid is True
        assert orchestrator.snapshot().environment is status


class TestWorkerRouting:
    def test_timeout_cancels_worker_task(self, settings: Settings) -> None:
        async def never_finishes(*args, **kwargs):
            await asyncio.sleep(5)

        mock_worker = MagicMock()
        mock_worker.is_ready.return_value = True
        mock_worker.new_task_id.return_value = "t1"
        mock_worker.extract_document = never_finishes
        orchestrator = _make_orchestrator(
            settings.model_copy(update={"task_timeout_seconds": 0.05}), worker=mock_worker
        )

        with pytest.raises(TimeoutError, match="timed out"):
            asyncio.run(orchestrator.add_file(_text_file()))

        mock_worker.cancel_task.assert_called_once_with("t1")
        assert orchestrator.snapshot().errors[0].startswith("Extraction: Task timed out")

    def test_timeout_after_task_finished_still_times_out(self, settings: Settings) -> None:
        async def never_finishes(*args, **kwargs):
            await asyncio.sleep(5)

        mock_worker = MagicMock()
        mock_worker.is_ready.return_value = True
        mock_worker.new_task_id.return_value = "t1"
        mock_worker.extract_document = never_finishes
        mock_worker.cancel_task.side_effect = NotFoundError("Task t1 not found")
        orchestrator = _make_orchestrator(
            settings.model_copy(update={"task_timeout_seconds": 0.05}), worker=mock_worker
        )

        with pytest.raises(TimeoutError):
            asyncio.run(orchestrator.add_file(_text_file()))

    def test_not_ready_worker_falls_back_in_process(self, settings: Settings) -> None:
        mock_worker = MagicMock()
        mock_worker.is_ready.return_value = False
        orchestrator = _make_orchestrator(settings, worker=mock_worker)

        document = asyncio.run(orchestrator.add_file(_text_file()))

        assert document.content == "hello world from the report"
        mock_worker.extract_document.assert_not_called()

    def test_add_files_extracts_in_one_worker_batch(self, settings: Settings) -> None:
        batches = []

        async def process_batch(files, operations, on_progress=None, task_id=None):
            batches.append(([f.name for f in files], operations, task_id))
            on_progress(BatchProgress(task_id, len(files), len(files), "Batch processing completed"))
            return [
                BatchItemResult(file=f, success=True, data=ExtractionPayload(f"text of {f.name}", 3, 14))
                for f in files
            ]

        mock_worker = MagicMock()
        mock_worker.is_ready.return_value = True
        mock_worker.new_task_id.return_value = "batch1"
        mock_worker.process_batch = process_batch
        orchestrator = _make_orchestrator(settings, worker=mock_worker)
        progress = []

        documents = asyncio.run(
            orchestrator.add_files(
                [_text_file("a.txt"), FileInput("bad.exe", "", b"MZ"), _text_file("b.txt")],
                progress.append,
            )
        )

        assert batches == [(["a.txt", "b.txt"], ("extract",), "batch1")]
        assert [d.content for d in documents] == ["text of a.txt", "text of b.txt"]
        assert progress == [BatchProgress("batch1", 2, 2, "Batch processing completed")]
        state = orchestrator.snapshot()
        assert len(state.errors) == 1
        assert state.errors[0].startswith("Extraction: bad.exe")
        assert state.active_operations == 0
        mock_worker.extract_document.assert_not_called()

    def test_failed_batch_item_is_skipped(self, settings: Settings) -> None:
        async def process_batch(files, operations, on_progress=None, task_id=None):
            good, broken = files
            return [
                BatchItemResult(file=good, success=True, data=ExtractionPayload("fine", 1, 4)),
                BatchItemResult(
                    file=broken,
                    success=False,
                    error="Failed to extract broken.txt: bad bytes",
                    exception=ExtractionError("broken.txt", "bad bytes"),
                ),
            ]

        mock_worker = MagicMock()
        mock_worker.is_ready.return_value = True
        mock_worker.process_batch = process_batch
        orchestrator = _make_orchestrator(settings, worker=mock_worker)

        documents = asyncio.run(orchestrator.add_files([_text_file("good.txt"), _text_file("broken.txt")]))

        assert [d.name for d in documents] == ["good.txt"]
        assert orchestrator.snapshot().errors == ("Extraction: Failed to extract broken.txt: bad bytes",)

    def test_batch_failure_extracts_one_by_one(self, settings: Settings) -> None:
        async def process_batch(*args, **kwargs):
            raise WorkerError("Worker crashed")

        async def extract_document(file, on_progress=None, task_id=None):
            return ExtractionPayload(file.data.decode(), 5, 27)

        mock_worker = MagicMock()
        mock_worker.is_ready.return_value = True
        mock_worker.process_batch = process_batch
        mock_worker.extract_document = extract_document
        orchestrator = _make_orchestrator(settings, worker=mock_worker)

        documents = asyncio.run(orchestrator.add_files([_text_file("a.txt"), _text_file("b.txt")]))

        assert [d.name for d in documents] == ["a.txt", "b.txt"]
        assert orchestrator.snapshot().errors == ()


class TestBuildOrchestrator:
    def test_builds_with_worker(self, settings: Settings) -> None:
        orchestrator = build_orchestrator(settings)
        assert orchestrator.worker is not None
        assert orchestrator.worker.is_ready() is False

    def test_builds_without_worker(self, settings: Settings) -> None:
        assert build_orchestrator(settings, with_worker=False).worker is None
