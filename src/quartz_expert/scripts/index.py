"""Script to index the Quartz documentation into the vector store."""

import argparse
import sys
from pathlib import Path

from quartz_expert.config import get_settings
from quartz_expert.exceptions import QuartzExpertError
from quartz_expert.logger import configure_logging
from quartz_expert.service import QuartzExpert


def main():
    """Main entry point for the indexing script."""
    parser = argparse.ArgumentParser(
        description="Index Quartz documentation into the vector store"
    )
    parser.add_argument(
        "--docs-path",
        type=Path,
        help="Path to the Quartz docs directory (overrides config)",
    )
    parser.add_argument(
        "--reset",
        action="store_true",
        help="Reset the vector store before indexing (drops chunks of deleted documents)",
    )
    parser.add_argument(
        "--verbose",
        "-v",
        action="store_true",
        help="Print verbose output",
    )
    args = parser.parse_args()

    settings = get_settings()
    configure_logging("DEBUG" if args.verbose else settings.log_level)
    docs_path = args.docs_path or settings.docs_path

    if not docs_path.exists():
        print(f"Error: Docs path does not exist: {docs_path}")
        sys.exit(1)

    print(f"Indexing documentation from: {docs_path}")
    print(f"Vector store: {settings.store_connection} ({settings.collection_name})")
    print(f"Embedding model: {settings.embedding_model}")
    print(f"Chunking: size={settings.chunk_size} overlap={settings.chunk_overlap}")
    print()

    try:
        with QuartzExpert(settings) as expert:
            if args.reset:
                print("Resetting vector store...")
                expert.vector_store.reset()

            result = expert.ingest(docs_path)

            print()
            print("Indexing complete!")
            print(f"  Total documents processed: {result.document_count}")
            print(f"  Total chunks indexed: {result.chunk_count}")
            print(f"  Vector store count: {expert.vector_store.count()}")
    except QuartzExpertError as e:
        print(f"Error: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
