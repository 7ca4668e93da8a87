import argparse
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent / "src"))

from docrag.config import find_config_path, load_config, setup_logging
from docrag.errors import DocRAGError
from docrag.service import RAGService


def print_sources(sources) -> None:
    for i, result in enumerate(sources):
        print(f"[{i}] {result.metadata.filename} (distance: {result.score:.4f})")


def main():
    parser = argparse.ArgumentParser(description="Ask questions about indexed documents")
    parser.add_argument("question", nargs="?", help="Question or search query")
    parser.add_argument(
        "--config",
        type=Path,
        default=None,
        help="Path to configuration file (default: config.toml in project root)",
    )
    parser.add_argument(
        "--stream",
        action="store_true",
        help="Print the answer as it is generated",
    )
    parser.add_argument(
        "--search",
        action="store_true",
        help="Only run a similarity search, no generation",
    )
    parser.add_argument(
        "--limit",
        type=int,
        default=None,
        help="Number of search results (with --search)",
    )
    parser.add_argument(
        "--list",
        action="store_true",
        help="List indexed documents",
    )

    args = parser.parse_args()
    if not args.list and not args.question:
        parser.error("a question is required unless --list is given")

    try:
        config_path = find_config_path(args.config)
        config = load_config(config_path)
        setup_logging(config)

        service = RAGService.from_config(config, config_path)

        if args.list:
            listing = service.list_documents()
            for summary in listing.files:
                print(
                    f"{summary.filename}\t{summary.chunk_count} chunks\t"
                    f"{summary.last_uploaded_at.isoformat()}"
                )
            print(f"Total chunks: {listing.total_chunks}")
            return 0

        if args.search:
            for result in service.search(args.question, args.limit):
                print(f"--- {result.metadata.filename} (distance: {result.score:.4f})")
                print(result.content)
            return 0

        if args.stream:
            events = service.stream_query(args.question)
            try:
                for event in events:
                    if event.type == "sources":
                        print_sources(event.data)
                        print()
                    elif event.type == "answer":
                        print(event.data, end="", flush=True)
                    else:
                        print()
            finally:
                events.close()
            return 0

        response = service.query(args.question)
        print(response.answer)
        print("\nSources:")
        print_sources(response.sources)
        print(
            f"\nTokens: {response.tokens_used.input_tokens} in, "
            f"{response.tokens_used.output_tokens} out"
        )
        return 0
    except DocRAGError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
