"""Document loading service for markdown files."""
import hashlib
import logging
import os
from typing import List

from models.document import Document

logger = logging.getLogger(__name__)

MARKDOWN_EXTENSIONS = (".md", ".markdown")


class DocumentLoader:
    """Loads markdown files from a directory."""

    def __init__(self, docs_directory: str = "docs"):
        """
        Initialize DocumentLoader.

        Args:
            docs_directory: Path to directory containing markdown files
        """
        self.docs_directory = docs_directory

    def load_documents(self) -> List[Document]:
        """
        Load all markdown files from the documents directory.

        Returns:
            List of Document objects, sorted by filename
        """
        documents = []

        if not os.path.isdir(self.docs_directory):
            logger.error(f"Documents directory not found: {self.docs_directory}")
            return documents

        md_files = [
            f for f in os.listdir(self.docs_directory)
            if f.lower().endswith(MARKDOWN_EXTENSIONS)
        ]
        logger.info(f"Found {len(md_files)} markdown files in {self.docs_directory}")

        for filename in sorted(md_files):
            filepath = os.path.join(self.docs_directory, filename)

            try:
                documents.append(self._load_markdown(filepath, filename))
            except (OSError, UnicodeDecodeError) as e:
                logger.error(f"Error loading {filename}: {str(e)}")
                # Skip unreadable file and continue
                continue

        logger.info(f"Successfully loaded {len(documents)} documents")
        return documents

    def _load_markdown(self, filepath: str, filename: str) -> Document:
        with open(filepath, "rb") as f:
            raw = f.read()

        return Document(
            id=hashlib.sha1(filename.encode("utf-8")).hexdigest()[:16],
            name=filename,
            size=len(raw),
            content=raw.decode("utf-8")
        )
