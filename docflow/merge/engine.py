from datetime import date

from docflow.documents.models import DocumentMetadata, ProcessedDocument
from docflow.documents.text_stats import format_file_size, generate_id
from docflow.logging.logger import Log
from docflow.merge.exceptions import MergeError
from docflow.merge.models import MergeOptions

PAGE_BREAK = "\n\n---\n\n"


class MergeEngine:
    """Concatenates processed documents in input order."""

    def merge(
        self,
        documents: list[ProcessedDocument],
        options: MergeOptions | None = None,
    ) -> ProcessedDocument:
        """Combine ``documents`` into one.

        Size and word count are sums over the sources; the character count is
        measured on the merged text.

        Raises:
            MergeError: if no documents are given.
        """
        if not documents:
            raise MergeError("At least one document is required to merge")
        options = options or MergeOptions()

        content = self.merge_content(documents, options)
        merged = ProcessedDocument(
            id=generate_id(),
            name=options.title
            or f"Merged_Document_{date.today().isoformat()}.{options.output_format}",
            type=options.mime_type,
            size=sum(doc.size for doc in documents),
            content=content,
            metadata=DocumentMetadata(
                words=sum(doc.metadata.words for doc in documents),
                characters=len(content),
                pages=len(documents),
            ),
        )
        Log.info(f"Merged {len(documents)} documents into {merged.name}")
        return merged

    @staticmethod
    def merge_content(documents: list[ProcessedDocument], options: MergeOptions) -> str:
        parts: list[str] = []
        if options.include_metadata and options.title:
            parts.append(f"# {options.title}\n\n")
            if options.author:
                parts.append(f"Author: {options.author}\n\n")

        last = len(documents) - 1
        for index, doc in enumerate(documents):
            if options.include_metadata:
                parts.append(
                    f"## Document {index + 1}: {doc.name}\n"
                    f"- Type: {doc.type}\n"
                    f"- Size: {format_file_size(doc.size)}\n"
                    f"- Words: {doc.metadata.words}\n\n"
                )
            parts.append(doc.content)
            if options.add_page_breaks and index < last:
                parts.append(PAGE_BREAK)
        return "".join(parts)
