import pytest

from docflow.documents.models import DocumentMetadata, FileInput, ProcessedDocument


class TestFileInput:
    def test_size_is_byte_length(self) -> None:
        assert FileInput("a.txt", "text/plain", b"abcd").size == 4

    def test_extension_is_lowercased(self) -> None:
        assert FileInput("Report.PDF", "application/pdf", b"").extension == ".pdf"

    def test_extension_empty_without_suffix(self) -> None:
        assert FileInput("README", "", b"").extension == ""


class TestProcessedDocument:
    def test_create_derives_counts_from_content(self) -> None:
        doc = ProcessedDocument.create(name="a.txt", type="text/plain", size=11, content="hello world")

        assert doc.metadata.words == 2
        assert doc.metadata.characters == 11
        assert doc.id

    def test_character_count_must_match_content(self) -> None:
        with pytest.raises(ValueError, match="does not match"):
            ProcessedDocument(
                id="x",
                name="a.txt",
                type="text/plain",
                size=3,
                content="abc",
                metadata=DocumentMetadata(words=1, characters=99),
            )

    def test_with_language_refines_metadata_only(self) -> None:
        doc = ProcessedDocument.create(name="a.txt", type="text/plain", size=2, content="hi", language="en")

        refined = doc.with_language("fr")

        assert refined.metadata.language == "fr"
        assert refined.content == doc.content
        assert refined.id == doc.id
        assert doc.metadata.language == "en"

    def test_original_bytes_hidden_from_repr(self) -> None:
        doc = ProcessedDocument.create(
            name="a.txt", type="text/plain", size=2, content="hi", original=b"secret-bytes"
        )
        assert "secret-bytes" not in repr(doc)
