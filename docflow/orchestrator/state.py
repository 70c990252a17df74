"""Document state and the intents that change it.

``reduce(state, action)`` never mutates its input: every handler copies the
maps it touches, so a snapshot taken earlier stays valid after later
dispatches. The maps of a ``DocumentState`` are read-only views; the only
way to change the store is to dispatch an intent.
"""

from collections.abc import Callable, Mapping
from dataclasses import dataclass, field, replace
from types import MappingProxyType

from docflow.analysis.models import DocumentAnalysis, DocumentInsights
from docflow.compression.models import CompressionResult
from docflow.config.environment import EnvironmentStatus
from docflow.documents.exceptions import NotFoundError
from docflow.documents.models import ProcessedDocument
from docflow.translation.models import DocumentTranslation


def _read_only(mapping: Mapping) -> Mapping:
    if isinstance(mapping, MappingProxyType):
        return mapping
    return MappingProxyType(dict(mapping))


@dataclass(frozen=True)
class DocumentState:
    documents: Mapping[str, ProcessedDocument] = field(default_factory=dict)
    selected: tuple[str, ...] = ()
    analyses: Mapping[str, DocumentAnalysis] = field(default_factory=dict)
    translations: Mapping[str, Mapping[str, DocumentTranslation]] = field(default_factory=dict)
    compression_results: Mapping[str, CompressionResult] = field(default_factory=dict)
    merged_documents: tuple[ProcessedDocument, ...] = ()
    insights: Mapping[str, DocumentInsights] = field(default_factory=dict)
    errors: tuple[str, ...] = ()
    active_operations: int = 0
    environment: EnvironmentStatus | None = None

    def __post_init__(self) -> None:
        for name in ("documents", "analyses", "compression_results", "insights"):
            object.__setattr__(self, name, _read_only(getattr(self, name)))
        translations = {doc_id: _read_only(by_target) for doc_id, by_target in self.translations.items()}
        object.__setattr__(self, "translations", MappingProxyType(translations))

    @property
    def is_processing(self) -> bool:
        return self.active_operations > 0

    @property
    def selected_documents(self) -> list[ProcessedDocument]:
        return [self.documents[doc_id] for doc_id in self.selected]

    def find_document(self, document_id: str) -> ProcessedDocument | None:
        """Look up a document in the collection, then among merged documents."""
        if document_id in self.documents:
            return self.documents[document_id]
        return next((d for d in self.merged_documents if d.id == document_id), None)

    def latest_translation(self, document_id: str) -> DocumentTranslation | None:
        by_target = self.translations.get(document_id)
        if not by_target:
            return None
        return next(reversed(by_target.values()))


# -- intents -----------------------------------------------------------------


@dataclass(frozen=True)
class AddDocument:
    document: ProcessedDocument


@dataclass(frozen=True)
class RemoveDocument:
    document_id: str


@dataclass(frozen=True)
class UpdateDocument:
    document: ProcessedDocument


@dataclass(frozen=True)
class SelectDocument:
    document_id: str


@dataclass(frozen=True)
class DeselectDocument:
    document_id: str


@dataclass(frozen=True)
class ClearSelection:
    pass


@dataclass(frozen=True)
class SetAnalysis:
    document_id: str
    analysis: DocumentAnalysis


@dataclass(frozen=True)
class SetTranslation:
    document_id: str
    translation: DocumentTranslation


@dataclass(frozen=True)
class SetCompressionResult:
    document_id: str
    result: CompressionResult


@dataclass(frozen=True)
class AddMergedDocument:
    document: ProcessedDocument


@dataclass(frozen=True)
class SetInsights:
    document_id: str
    insights: DocumentInsights


@dataclass(frozen=True)
class SetEnvironmentStatus:
    status: EnvironmentStatus


@dataclass(frozen=True)
class AppendError:
    message: str


@dataclass(frozen=True)
class ClearErrors:
    pass


@dataclass(frozen=True)
class SetProcessing:
    """Raise (``active=True``) or lower the active-operation counter."""

    active: bool


Action = (
    AddDocument
    | RemoveDocument
    | UpdateDocument
    | SelectDocument
    | DeselectDocument
    | ClearSelection
    | SetAnalysis
    | SetTranslation
    | SetCompressionResult
    | AddMergedDocument
    | SetInsights
    | SetEnvironmentStatus
    | AppendError
    | ClearErrors
    | SetProcessing
)


# -- reducer -----------------------------------------------------------------


def _require(state: DocumentState, document_id: str) -> None:
    if document_id not in state.documents:
        raise NotFoundError(f"Document {document_id} not found")


def _without(mapping: Mapping, key: str) -> dict:
    return {k: v for k, v in mapping.items() if k != key}


def _add_document(state: DocumentState, action: AddDocument) -> DocumentState:
    return replace(state, documents={**state.documents, action.document.id: action.document})


def _remove_document(state: DocumentState, action: RemoveDocument) -> DocumentState:
    doc_id = action.document_id
    _require(state, doc_id)
    return replace(
        state,
        documents=_without(state.documents, doc_id),
        selected=tuple(s for s in state.selected if s != doc_id),
        analyses=_without(state.analyses, doc_id),
        translations=_without(state.translations, doc_id),
        compression_results=_without(state.compression_results, doc_id),
        insights=_without(state.insights, doc_id),
    )


def _update_document(state: DocumentState, action: UpdateDocument) -> DocumentState:
    _require(state, action.document.id)
    return replace(state, documents={**state.documents, action.document.id: action.document})


def _select(state: DocumentState, action: SelectDocument) -> DocumentState:
    _require(state, action.document_id)
    if action.document_id in state.selected:
        return state
    return replace(state, selected=(*state.selected, action.document_id))


def _deselect(state: DocumentState, action: DeselectDocument) -> DocumentState:
    return replace(state, selected=tuple(s for s in state.selected if s != action.document_id))


def _clear_selection(state: DocumentState, action: ClearSelection) -> DocumentState:
    return replace(state, selected=())


def _set_analysis(state: DocumentState, action: SetAnalysis) -> DocumentState:
    _require(state, action.document_id)
    return replace(state, analyses={**state.analyses, action.document_id: action.analysis})


def _set_translation(state: DocumentState, action: SetTranslation) -> DocumentState:
    _require(state, action.document_id)
    target = action.translation.target_language
    # Re-inserting moves the target to the end, so the last entry is the latest.
    by_target = _without(state.translations.get(action.document_id, {}), target)
    by_target[target] = action.translation
    return replace(state, translations={**state.translations, action.document_id: by_target})


def _set_compression(state: DocumentState, action: SetCompressionResult) -> DocumentState:
    _require(state, action.document_id)
    return replace(
        state,
        compression_results={**state.compression_results, action.document_id: action.result},
    )


def _add_merged(state: DocumentState, action: AddMergedDocument) -> DocumentState:
    return replace(state, merged_documents=(*state.merged_documents, action.document))


def _set_insights(state: DocumentState, action: SetInsights) -> DocumentState:
    _require(state, action.document_id)
    return replace(state, insights={**state.insights, action.document_id: action.insights})


def _set_environment(state: DocumentState, action: SetEnvironmentStatus) -> DocumentState:
    return replace(state, environment=action.status)


def _append_error(state: DocumentState, action: AppendError) -> DocumentState:
    return replace(state, errors=(*state.errors, action.message))


def _clear_errors(state: DocumentState, action: ClearErrors) -> DocumentState:
    return replace(state, errors=())


def _set_processing(state: DocumentState, action: SetProcessing) -> DocumentState:
    delta = 1 if action.active else -1
    return replace(state, active_operations=max(0, state.active_operations + delta))


REDUCERS: dict[type, Callable[[DocumentState, Action], DocumentState]] = {
    AddDocument: _add_document,
    RemoveDocument: _remove_document,
    UpdateDocument: _update_document,
    SelectDocument: _select,
    DeselectDocument: _deselect,
    ClearSelection: _clear_selection,
    SetAnalysis: _set_analysis,
    SetTranslation: _set_translation,
    SetCompressionResult: _set_compression,
    AddMergedDocument: _add_merged,
    SetInsights: _set_insights,
    SetEnvironmentStatus: _set_environment,
    AppendError: _append_error,
    ClearErrors: _clear_errors,
    SetProcessing: _set_processing,
}


def reduce(state: DocumentState, action: Action) -> DocumentState:
    """Apply one intent and return the new state.

    Raises:
        NotFoundError: if the intent references an unknown document id.
        TypeError: for an object that is not a known intent.
    """
    handler = REDUCERS.get(type(action))
    if handler is None:
        raise TypeError(f"Unknown action {type(action).__name__}")
    return handler(state, action)
