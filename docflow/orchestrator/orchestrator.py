"""The document store and the operations that sequence engine calls into it.

Every operation validates the document ids it references, raises the
processing counter, runs an engine (directly, in a thread, or in the worker),
commits the result through ``dispatch``, and on failure appends
``"<operation>: <message>"`` to the error log before re-raising. The
``*_selected`` variants run the single-document operation over the selection
and return only what succeeded.
"""

import asyncio
import time
from collections.abc import AsyncIterator, Awaitable, Callable, Mapping, Sequence
from contextlib import asynccontextmanager, suppress
from typing import TypeVar

from docflow.analysis.engine import AnalysisEngine
from docflow.analysis.factory import AnalysisEngineFactory
from docflow.analysis.language import detect_language
from docflow.analysis.models import DocumentAnalysis, DocumentInsights
from docflow.compression.engine import CompressionEngine
from docflow.compression.factory import CompressionEngineFactory
from docflow.compression.models import CompressionResult
from docflow.config.environment import EnvironmentStatus, validate_environment
from docflow.config.settings import Settings
from docflow.documents.exceptions import FileValidationError, NotFoundError
from docflow.documents.models import FileInput, ProcessedDocument
from docflow.documents.thumbnails import make_thumbnail
from docflow.documents.validation import FileValidator
from docflow.extraction.dispatcher import ContentExtractor
from docflow.extraction.factory import ExtractorFactory
from docflow.logging.logger import Log
from docflow.merge.engine import MergeEngine
from docflow.merge.models import MergeOptions
from docflow.orchestrator.export import DocumentExporter, ExportBlob
from docflow.orchestrator.state import (
    Action,
    AddDocument,
    AddMergedDocument,
    AppendError,
    ClearErrors,
    ClearSelection,
    DeselectDocument,
    DocumentState,
    RemoveDocument,
    SelectDocument,
    SetAnalysis,
    SetCompressionResult,
    SetEnvironmentStatus,
    SetInsights,
    SetProcessing,
    SetTranslation,
    UpdateDocument,
    reduce,
)
from docflow.translation.engine import TranslationEngine
from docflow.translation.factory import TranslationEngineFactory
from docflow.translation.models import DocumentTranslation
from docflow.worker.exceptions import WorkerError
from docflow.worker.manager import (
    BatchItemResult,
    BatchProgressCallback,
    DocumentWorkerManager,
    ProgressCallback,
)
from docflow.worker.protocol import BatchProgress

T = TypeVar("T")
Listener = Callable[[DocumentState, Action], None]


class DocumentOrchestrator:
    """Owns document state and sequences extraction, analysis and export."""

    def __init__(
        self,
        settings: Settings,
        *,
        validator: FileValidator,
        extractor: ContentExtractor,
        analysis: AnalysisEngine,
        translation: TranslationEngine,
        compression: CompressionEngine,
        merge: MergeEngine,
        worker: DocumentWorkerManager | None = None,
        exporter: DocumentExporter | None = None,
    ) -> None:
        self._settings = settings
        self._validator = validator
        self._extractor = extractor
        self._analysis = analysis
        self._translation = translation
        self._compression = compression
        self._merge = merge
        self._worker = worker
        self._exporter = exporter or DocumentExporter()
        self._state = DocumentState()
        self._listeners: list[Listener] = []

    @property
    def worker(self) -> DocumentWorkerManager | None:
        return self._worker

    # -- store -------------------------------------------------------------

    def dispatch(self, action: Action) -> DocumentState:
        self._state = reduce(self._state, action)
        for listener in list(self._listeners):
            listener(self._state, action)
        return self._state

    def snapshot(self) -> DocumentState:
        return self._state

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register ``listener`` for every dispatch; returns an unsubscribe callable."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    # -- selection and housekeeping ----------------------------------------

    def select_document(self, document_id: str) -> None:
        self.dispatch(SelectDocument(document_id))

    def deselect_document(self, document_id: str) -> None:
        self.dispatch(DeselectDocument(document_id))

    def clear_selection(self) -> None:
        self.dispatch(ClearSelection())

    def remove_document(self, document_id: str) -> None:
        self.dispatch(RemoveDocument(document_id))

    def update_document(self, document: ProcessedDocument) -> None:
        self.dispatch(UpdateDocument(document))

    def clear_errors(self) -> None:
        self.dispatch(ClearErrors())

    def validate_environment(self, env: Mapping[str, str] | None = None) -> EnvironmentStatus:
        status = validate_environment(env)
        self.dispatch(SetEnvironmentStatus(status))
        if not status.valid:
            Log.warning(f"Missing required environment variables: {', '.join(status.missing)}")
        return status

    # -- ingestion ---------------------------------------------------------

    async def add_file(self, file: FileInput, on_progress: ProgressCallback | None = None) -> ProcessedDocument:
        """Validate, extract and store one file.

        Raises:
            FileValidationError: if the file breaks a size, type or name rule.
            ExtractionError: if the extractor failed.
            WorkerError: if the worker crashed mid-extraction.
        """
        async with self._operation("Extraction"):
            self._check_file(file)
            started = time.perf_counter()
            content, chunks = await self._extract(file, on_progress)
            return await self._store(file, content, chunks, started)

    async def add_files(
        self,
        files: Sequence[FileInput],
        on_progress: BatchProgressCallback | None = None,
    ) -> list[ProcessedDocument]:
        """Add several files; failed files are logged and skipped.

        With the worker running, valid files go to it as one batch task and
        ``on_progress`` receives the worker's batch progress.

        Raises:
            FileValidationError: if the batch exceeds the file-count limit.
        """
        async with self._operation("Extraction"):
            batch = self._validator.validate_many(list(files))
            if batch.global_errors:
                raise FileValidationError("; ".join(batch.global_errors))
            if self._use_worker():
                return await self._add_files_in_worker(files, on_progress)

            documents: list[ProcessedDocument] = []
            total = len(files)
            for index, file in enumerate(files):
                if on_progress is not None:
                    on_progress(BatchProgress("add_files", index, total, f"Extracting {file.name}"))
                try:
                    documents.append(await self.add_file(file))
                except Exception as exc:
                    Log.warning(f"Skipping {file.name}: {exc}")
            if on_progress is not None:
                on_progress(BatchProgress("add_files", total, total, "Batch processing completed"))
            return documents

    async def _add_files_in_worker(
        self,
        files: Sequence[FileInput],
        on_progress: BatchProgressCallback | None,
    ) -> list[ProcessedDocument]:
        # Invalid and chunked files take the single-file path.
        batched = [
            file
            for file in files
            if file.size <= self._settings.chunk_size_bytes and self._validator.validate(file).is_valid
        ]
        started = time.perf_counter()
        items: dict[int, BatchItemResult] = {}
        if batched:
            task_id = self._worker.new_task_id()
            try:
                results = await self._with_timeout(
                    self._worker.process_batch(batched, ("extract",), on_progress, task_id=task_id),
                    task_id,
                )
                items = {id(item.file): item for item in results}
            except WorkerError as exc:
                Log.warning(f"Batch extraction failed, extracting files one by one: {exc}")

        documents: list[ProcessedDocument] = []
        for file in files:
            item = items.get(id(file))
            try:
                if item is None:
                    documents.append(await self.add_file(file))
                else:
                    documents.append(await self._add_extracted(file, item, started))
            except Exception as exc:
                Log.warning(f"Skipping {file.name}: {exc}")
        return documents

    async def _add_extracted(self, file: FileInput, item: BatchItemResult, started: float) -> ProcessedDocument:
        async with self._operation("Extraction"):
            if not item.success:
                raise item.exception or WorkerError(item.error or f"Failed to extract {file.name}")
            for warning in self._validator.validate(file).warnings:
                Log.warning(f"{file.name}: {warning}")
            return await self._store(file, item.data.content, None, started)

    def _check_file(self, file: FileInput) -> None:
        validation = self._validator.validate(file)
        if not validation.is_valid:
            raise FileValidationError(f"{file.name}: {'; '.join(validation.errors)}")
        for warning in validation.warnings:
            Log.warning(f"{file.name}: {warning}")

    async def _store(
        self,
        file: FileInput,
        content: str,
        chunks: int | None,
        started: float,
    ) -> ProcessedDocument:
        language = await asyncio.to_thread(detect_language, content)
        thumbnail = make_thumbnail(file.data) if self._is_image(file) else None
        document = ProcessedDocument.create(
            name=file.name,
            type=file.mime_type,
            size=file.size,
            content=content,
            language=language.code,
            processing_time_ms=(time.perf_counter() - started) * 1000,
            chunks=chunks,
            thumbnail=thumbnail,
            original=file.data,
        )
        self.dispatch(AddDocument(document))
        Log.info(f"Added document {document.id} ({file.name}, {document.metadata.words} words)")
        return document

    # -- compression -------------------------------------------------------

    async def compress_document(
        self,
        document_id: str,
        method: str = "basic",
        on_progress: ProgressCallback | None = None,
    ) -> CompressionResult:
        async with self._operation("Compression"):
            document = self._require_document(document_id)
            if self._use_worker():
                task_id = self._worker.new_task_id()
                result = await self._with_timeout(
                    self._worker.compress_document(
                        document.content,
                        method,
                        original=document.original,
                        mime_type=document.type,
                        on_progress=on_progress,
                        task_id=task_id,
                    ),
                    task_id,
                )
            else:
                result = await asyncio.to_thread(
                    self._compression.compress,
                    document.content,
                    method,
                    original=document.original,
                    mime_type=document.type,
                )
            self.dispatch(SetCompressionResult(document_id, result))
            return result

    async def compress_selected(self, method: str = "basic") -> dict[str, CompressionResult]:
        return await self._for_selected(lambda doc_id: self.compress_document(doc_id, method))

    # -- merge -------------------------------------------------------------

    async def merge_documents(
        self,
        document_ids: Sequence[str],
        options: MergeOptions | None = None,
    ) -> ProcessedDocument:
        """Merge documents in the given order and keep the result.

        Raises:
            NotFoundError: if any id is unknown.
            MergeError: if no ids were given.
        """
        async with self._operation("Merge"):
            documents = [self._require_document(doc_id) for doc_id in document_ids]
            merged = self._merge.merge(documents, options)
            self.dispatch(AddMergedDocument(merged))
            return merged

    async def merge_selected(self, options: MergeOptions | None = None) -> ProcessedDocument | None:
        """Merge the selection in selection order; None if the merge failed."""
        try:
            return await self.merge_documents(self._state.selected, options)
        except Exception as exc:
            Log.warning(f"Merging selected documents failed: {exc}")
            return None

    # -- analysis ----------------------------------------------------------

    async def analyze_document(self, document_id: str) -> DocumentAnalysis:
        async with self._operation("Analysis"):
            document = self._require_document(document_id)
            analysis = await asyncio.to_thread(self._analysis.analyze, document.content)
            self.dispatch(SetAnalysis(document_id, analysis))
            detected = analysis.language.code
            if detected != document.metadata.language:
                self.dispatch(UpdateDocument(document.with_language(detected)))
            return analysis

    async def analyze_selected(self) -> dict[str, DocumentAnalysis]:
        return await self._for_selected(self.analyze_document)

    async def translate_document(
        self,
        document_id: str,
        target_language: str | None = None,
    ) -> DocumentTranslation:
        async with self._operation("Translation"):
            document = self._require_document(document_id)
            target = target_language or self._settings.default_target_language
            translation = await asyncio.to_thread(
                self._translation.translate,
                document.content,
                target,
                document.metadata.language,
            )
            self.dispatch(SetTranslation(document_id, translation))
            return translation

    async def translate_selected(self, target_language: str | None = None) -> dict[str, DocumentTranslation]:
        return await self._for_selected(lambda doc_id: self.translate_document(doc_id, target_language))

    async def generate_insights(self, document_id: str) -> DocumentInsights:
        async with self._operation("Insights"):
            document = self._require_document(document_id)
            insights = await asyncio.to_thread(self._analysis.generate_insights, document)
            self.dispatch(SetInsights(document_id, insights))
            return insights

    async def generate_insights_selected(self) -> dict[str, DocumentInsights]:
        return await self._for_selected(self.generate_insights)

    # -- export ------------------------------------------------------------

    def export_document(
        self,
        document_id: str,
        fmt: str = "original",
        target_language: str | None = None,
    ) -> ExportBlob:
        return self._exporter.export(self._state, document_id, fmt, target_language)

    # -- plumbing ----------------------------------------------------------

    @asynccontextmanager
    async def _operation(self, name: str) -> AsyncIterator[None]:
        self.dispatch(SetProcessing(True))
        try:
            yield
        except Exception as exc:
            Log.error(f"{name} failed: {exc}")
            self.dispatch(AppendError(f"{name}: {exc}"))
            raise
        finally:
            self.dispatch(SetProcessing(False))

    async def _for_selected(self, operation: Callable[[str], Awaitable[T]]) -> dict[str, T]:
        results: dict[str, T] = {}
        for document_id in self._state.selected:
            try:
                results[document_id] = await operation(document_id)
            except Exception as exc:
                Log.warning(f"Skipping document {document_id}: {exc}")
        return results

    def _require_document(self, document_id: str) -> ProcessedDocument:
        document = self._state.documents.get(document_id)
        if document is None:
            raise NotFoundError(f"Document {document_id} not found")
        return document

    def _use_worker(self) -> bool:
        return self._worker is not None and self._settings.worker_enabled and self._worker.is_ready()

    async def _extract(
        self,
        file: FileInput,
        on_progress: ProgressCallback | None,
    ) -> tuple[str, int | None]:
        if not self._use_worker():
            return await asyncio.to_thread(self._extractor.extract, file), None

        if file.size > self._settings.chunk_size_bytes:
            payload = await self._with_timeout(
                self._worker.process_large_document(file, on_progress=on_progress),
                None,
            )
            return payload.content, payload.chunks

        task_id = self._worker.new_task_id()
        payload = await self._with_timeout(
            self._worker.extract_document(file, on_progress, task_id),
            task_id,
        )
        return payload.content, None

    async def _with_timeout(self, work: Awaitable[T], task_id: str | None) -> T:
        timeout = self._settings.task_timeout_seconds
        if timeout <= 0:
            return await work
        try:
            return await asyncio.wait_for(work, timeout)
        except TimeoutError:
            if task_id is not None:
                with suppress(NotFoundError):
                    self._worker.cancel_task(task_id)
            raise TimeoutError(f"Task timed out after {timeout}s") from None

    def _is_image(self, file: FileInput) -> bool:
        return file.mime_type.startswith("image/") or file.extension in self._settings.image_extensions


def build_orchestrator(settings: Settings, with_worker: bool = True) -> DocumentOrchestrator:
    """Build a DocumentOrchestrator with all engines configured from settings.

    The worker manager is created but not started; call ``initialize()`` on it
    from a running event loop.
    """
    extractor = ExtractorFactory.create(settings)
    compression = CompressionEngineFactory.create(settings)
    worker = None
    if with_worker and settings.worker_enabled:
        worker = DocumentWorkerManager(settings, extractor, compression)
    return DocumentOrchestrator(
        settings,
        validator=FileValidator(settings),
        extractor=extractor,
        analysis=AnalysisEngineFactory.create(settings),
        translation=TranslationEngineFactory.create(settings),
        compression=compression,
        merge=MergeEngine(),
        worker=worker,
    )
