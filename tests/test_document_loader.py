"""Unit tests for DocumentLoader."""
import sys
from pathlib import Path

# Add backend to path
sys.path.insert(0, str(Path(__file__).parent.parent / "backend"))

from services.document_loader import DocumentLoader


class TestDocumentLoader:
    """Test suite for DocumentLoader."""

    def test_loads_markdown_files_sorted(self, tmp_path):
        """Only markdown files are loaded, in filename order."""
        (tmp_path / "b.md").write_text("## B\nsecond", encoding="utf-8")
        (tmp_path / "a.markdown").write_text("## A\nfirst", encoding="utf-8")
        (tmp_path / "notes.txt").write_text("ignored", encoding="utf-8")

        documents = DocumentLoader(str(tmp_path)).load_documents()

        assert [d.name for d in documents] == ["a.markdown", "b.md"]
        assert documents[0].content == "## A\nfirst"

    def test_document_fields(self, tmp_path):
        """Size is the byte size and the id is stable across loads."""
        (tmp_path / "guide.md").write_text("café", encoding="utf-8")

        first = DocumentLoader(str(tmp_path)).load_documents()[0]
        second = DocumentLoader(str(tmp_path)).load_documents()[0]

        assert first.size == 5
        assert first.id == second.id
        assert len(first.id) == 16

    def test_missing_directory(self, tmp_path):
        """A missing directory yields no documents."""
        assert DocumentLoader(str(tmp_path / "missing")).load_documents() == []

    def test_unreadable_file_is_skipped(self, tmp_path):
        """Files that are not valid UTF-8 are skipped."""
        (tmp_path / "bad.md").write_bytes(b"\xff\xfe\x00bad")
        (tmp_path / "good.md").write_text("fine", encoding="utf-8")

        documents = DocumentLoader(str(tmp_path)).load_documents()

        assert [d.name for d in documents] == ["good.md"]
