from unittest.mock import MagicMock

from docflow.compression.engine import CompressionEngine
from docflow.compression.models import CompressionResult
from docflow.documents.models import FileInput
from docflow.extraction.exceptions import ExtractionError
from docflow.worker.cancellation import CancellationRegistry
from docflow.worker.protocol import (
    COMPRESS_CONTENT,
    EXTRACT_CONTENT,
    PROCESS_BATCH,
    BatchPayload,
    BatchProgress,
    BatchTask,
    CompressPayload,
    ExtractionPayload,
    ExtractPayload,
    ProgressEvent,
    TaskRequest,
    TaskResult,
)
from docflow.worker.task_runner import TaskRunner


def _make_runner(extracted: str = "hello world") -> tuple[TaskRunner, MagicMock, CancellationRegistry]:
    """Create a TaskRunner with a mocked extractor and a real compressor."""
    extractor = MagicMock()
    extractor.extract_bytes.return_value = extracted
    registry = CancellationRegistry()
    return TaskRunner(extractor, CompressionEngine(), registry), extractor, registry


def _extract_request(task_id: str = "t1") -> TaskRequest:
    return TaskRequest(task_id, EXTRACT_CONTENT, ExtractPayload(b"data", "a.txt", "text/plain"))


class TestExtractContent:
    def test_returns_extraction_payload(self) -> None:
        runner, extractor, _registry = _make_runner("hello world")

        result = runner.run(_extract_request(), MagicMock())

        assert result.success is True
        assert isinstance(result.data, ExtractionPayload)
        assert result.data.content == "hello world"
        assert result.data.word_count == 2
        assert result.data.character_count == 11
        extractor.extract_bytes.assert_called_once_with(b"data", "a.txt", "text/plain")

    def test_posts_progress(self) -> None:
        runner, _extractor, _registry = _make_runner()
        post = MagicMock()

        runner.run(_extract_request(), post)

        events = [c.args[0] for c in post.call_args_list]
        assert [e.progress for e in events] == [0, 100]
        assert all(isinstance(e, ProgressEvent) and e.stage == "extraction" for e in events)

    def test_failure_is_captured(self) -> None:
        runner, extractor, _registry = _make_runner()
        error = ExtractionError("a.txt", "corrupt")
        extractor.extract_bytes.side_effect = error

        result = runner.run(_extract_request(), MagicMock())

        assert result.success is False
        assert result.error == "Failed to extract a.txt: corrupt"
        assert result.exception is error

    def test_cancelled_before_start(self) -> None:
        runner, extractor, registry = _make_runner()
        registry.register("t1")
        registry.cancel("t1")

        result = runner.run(_extract_request("t1"), MagicMock())

        assert result.cancelled is True
        assert result.success is False
        extractor.extract_bytes.assert_not_called()

    def test_releases_cancellation_flag(self) -> None:
        runner, _extractor, registry = _make_runner()
        runner.run(_extract_request(), MagicMock())
        assert len(registry) == 0


class TestCompressContent:
    def test_returns_compression_result(self) -> None:
        runner, _extractor, _registry = _make_runner()
        post = MagicMock()
        request = TaskRequest("c1", COMPRESS_CONTENT, CompressPayload("a   b", "basic"))

        result = runner.run(request, post)

        assert isinstance(result.data, CompressionResult)
        assert result.data.compressed_data == b"a b"
        assert post.call_args_list[-1].args[0].stage == "compression"

    def test_unknown_method_fails(self) -> None:
        runner, _extractor, _registry = _make_runner()
        request = TaskRequest("c1", COMPRESS_CONTENT, CompressPayload("x", "brotli"))

        result = runner.run(request, MagicMock())

        assert result.success is False
        assert "Unknown compression method" in result.error


class TestProcessBatch:
    def test_one_failure_does_not_abort_batch(self) -> None:
        runner, extractor, _registry = _make_runner()

        def extract(data: bytes, filename: str, mime_type: str) -> str:
            if filename == "bad.txt":
                raise ExtractionError(filename, "unreadable")
            return "fine"

        extractor.extract_bytes.side_effect = extract
        tasks = [
            BatchTask("b_0", "extract", FileInput("good.txt", "text/plain", b"1")),
            BatchTask("b_1", "extract", FileInput("bad.txt", "text/plain", b"2")),
        ]
        post = MagicMock()

        result = runner.run(TaskRequest("b", PROCESS_BATCH, BatchPayload(tasks)), post)

        assert result.success is True
        sub_results: list[TaskResult] = result.data
        assert [r.success for r in sub_results] == [True, False]
        assert sub_results[0].data.content == "fine"

        batch_events = [c.args[0] for c in post.call_args_list if isinstance(c.args[0], BatchProgress)]
        assert [(e.completed, e.total) for e in batch_events] == [(0, 2), (1, 2), (2, 2)]
        assert batch_events[-1].overall_progress == 100.0

    def test_compress_sub_task(self) -> None:
        runner, _extractor, _registry = _make_runner()
        tasks = [BatchTask("b_0", "compress", FileInput("a.txt", "text/plain", b"a   b"), method="basic")]

        result = runner.run(TaskRequest("b", PROCESS_BATCH, BatchPayload(tasks)), MagicMock())

        assert result.data[0].data.compressed_data == b"a b"

    def test_unknown_sub_task_type_fails_alone(self) -> None:
        runner, _extractor, _registry = _make_runner()
        tasks = [BatchTask("b_0", "analyze", FileInput("a.txt", "text/plain", b"x"))]

        result = runner.run(TaskRequest("b", PROCESS_BATCH, BatchPayload(tasks)), MagicMock())

        assert result.success is True
        assert result.data[0].success is False

    def test_empty_batch_progress(self) -> None:
        assert BatchProgress("b", 0, 0).overall_progress == 100.0


class TestUnknownMethod:
    def test_reports_failure(self) -> None:
        runner, _extractor, _registry = _make_runner()

        result = runner.run(TaskRequest("x", "analyze", None), MagicMock())

        assert result.success is False
        assert "Unknown worker method" in result.error
