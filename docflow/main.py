import argparse
import asyncio
import mimetypes
import sys
from pathlib import Path

from docflow.config.settings import Settings
from docflow.documents.models import FileInput
from docflow.logging.logger import Log
from docflow.merge.models import MergeOptions
from docflow.orchestrator.orchestrator import DocumentOrchestrator, build_orchestrator
from docflow.orchestrator.state import AppendError


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(prog="docflow", description="Extract, analyze, translate, compress and merge documents")
    parser.add_argument("files", nargs="+", help="Files to process")
    parser.add_argument("--analyze", action="store_true", help="Run document analysis")
    parser.add_argument("--insights", action="store_true", help="Generate insights and recommendations")
    parser.add_argument("--translate", metavar="LANG", help="Translate into LANG (e.g. ar, en, fr)")
    parser.add_argument("--compress", metavar="METHOD", help="Compress with METHOD (basic, aggressive, ghostscript, gzip, deflate)")
    parser.add_argument("--merge", action="store_true", help="Merge all documents into one")
    parser.add_argument("--merge-format", default="txt", choices=list(MergeOptions.FORMATS), help="Merged document format")
    parser.add_argument("--title", help="Title of the merged document")
    parser.add_argument("--output", metavar="DIR", help="Write exports into DIR")
    parser.add_argument("--no-worker", action="store_true", help="Run extraction in-process instead of the background worker")
    return parser.parse_args(argv)


def load_file(path: Path) -> FileInput:
    mime_type, _ = mimetypes.guess_type(path.name)
    return FileInput(name=path.name, mime_type=mime_type or "", data=path.read_bytes())


async def run(args: argparse.Namespace, settings: Settings) -> int:
    """Ingest files, run the requested operations, export, and report errors."""
    orchestrator = build_orchestrator(settings, with_worker=not args.no_worker)
    status = orchestrator.validate_environment()
    if status.missing_optional:
        Log.info(f"Optional providers not configured: {', '.join(status.missing_optional)}")

    worker = orchestrator.worker
    if worker is not None and not await worker.initialize():
        Log.warning("Background worker unavailable, extracting in-process")

    try:
        files = []
        for raw_path in args.files:
            path = Path(raw_path)
            try:
                files.append(load_file(path))
            except OSError as exc:
                orchestrator.dispatch(AppendError(f"Extraction: {path.name}: {exc}"))

        try:
            documents = await orchestrator.add_files(files)
        except Exception:
            # already recorded in the error log
            documents = []
        for document in documents:
            orchestrator.select_document(document.id)

        if args.analyze:
            await orchestrator.analyze_selected()
        if args.insights:
            await orchestrator.generate_insights_selected()
        if args.translate:
            await orchestrator.translate_selected(args.translate)
        if args.compress:
            await orchestrator.compress_selected(args.compress)
        if args.merge:
            await orchestrator.merge_selected(MergeOptions(output_format=args.merge_format, title=args.title))

        if args.output:
            write_exports(orchestrator, Path(args.output))
    finally:
        if worker is not None:
            await worker.cleanup()

    print_report(orchestrator)
    return 1 if orchestrator.snapshot().errors else 0


def write_exports(orchestrator: DocumentOrchestrator, output_dir: Path) -> None:
    output_dir.mkdir(parents=True, exist_ok=True)
    state = orchestrator.snapshot()
    exports = []
    for document_id in state.documents:
        if document_id in state.compression_results:
            exports.append(orchestrator.export_document(document_id, "compressed"))
        if state.translations.get(document_id):
            exports.append(orchestrator.export_document(document_id, "translated"))
    for merged in state.merged_documents:
        exports.append(orchestrator.export_document(merged.id, "original"))

    for blob in exports:
        target = output_dir / blob.filename
        target.write_bytes(blob.data)
        Log.info(f"Wrote {target} ({len(blob.data)} bytes)")


def print_report(orchestrator: DocumentOrchestrator) -> None:
    state = orchestrator.snapshot()
    for document_id, document in state.documents.items():
        meta = document.metadata
        print(f"{document.name}: {meta.words} words, {meta.characters} characters, language={meta.language}")
        analysis = state.analyses.get(document_id)
        if analysis is not None:
            print(f"  sentiment: {analysis.sentiment.overall} ({analysis.sentiment.confidence:.2f})")
            print(f"  key phrases: {', '.join(analysis.key_phrases)}")
            print(f"  readability: {analysis.readability_score}")
            print(f"  summary: {analysis.summary}")
        insights = state.insights.get(document_id)
        if insights is not None:
            for line in insights.insights:
                print(f"  insight: {line}")
            for line in insights.recommendations:
                print(f"  recommendation: {line}")
        compression = state.compression_results.get(document_id)
        if compression is not None:
            print(
                f"  compressed ({compression.method}): {compression.original_size} -> "
                f"{compression.compressed_size} bytes"
            )
    for merged in state.merged_documents:
        print(f"merged: {merged.name} ({merged.metadata.words} words)")
    for error in state.errors:
        print(f"error: {error}", file=sys.stderr)


def main(argv: list[str] | None = None) -> int:
    """Entry point: settings -> logging -> orchestrator -> requested operations."""
    args = parse_args(argv)
    settings = Settings()
    Log.configure(settings.log_level)
    return asyncio.run(run(args, settings))


if __name__ == "__main__":
    sys.exit(main())
