import argparse
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent / "src"))

from docrag.config import find_config_path, load_config, setup_logging
from docrag.errors import DocRAGError
from docrag.models import ProjectFile
from docrag.service import RAGService


def collect_files(service: RAGService, paths: list[Path]) -> list[Path]:
    files = []
    for path in paths:
        if path.is_dir():
            files.extend(service.ingestion.discover_files(path))
        else:
            files.append(path)
    return files


def ingest_project(service: RAGService, root: Path) -> int:
    """Index every supported text file under root as project files."""
    project_files = []
    for file_path in service.ingestion.discover_files(root):
        if file_path.suffix.lower() == ".docx":
            continue
        project_files.append(
            ProjectFile(
                path=str(file_path.relative_to(root)),
                content=file_path.read_text(encoding="utf-8", errors="replace"),
            )
        )
    return service.ingest(project_files)


def main():
    parser = argparse.ArgumentParser(
        description="Ingest documents into the vector store"
    )
    parser.add_argument(
        "paths",
        nargs="*",
        type=Path,
        help="Files or directories to ingest (.txt, .md, .docx)",
    )
    parser.add_argument(
        "--config",
        type=Path,
        default=None,
        help="Path to configuration file (default: config.toml in project root)",
    )
    parser.add_argument(
        "--project",
        type=Path,
        default=None,
        help="Index a project directory as whole-file text chunks",
    )
    parser.add_argument(
        "--clear",
        action="store_true",
        help="Delete all indexed documents before ingesting",
    )

    args = parser.parse_args()

    try:
        config_path = find_config_path(args.config)
        config = load_config(config_path)
        setup_logging(config)

        service = RAGService.from_config(config, config_path)

        if args.clear:
            service.clear_all()
            print("Cleared all documents")

        total = 0
        files = collect_files(service, args.paths)
        for file_path in files:
            total += service.ingest_upload(file_path.name, file_path.read_bytes())

        if args.project:
            total += ingest_project(service, args.project)

        listing = service.list_documents()
        print("\n=== Ingestion Complete ===")
        print(f"Files processed: {len(files)}")
        print(f"Chunks created: {total}")
        print(f"Total chunks in store: {listing.total_chunks}")
        return 0
    except (DocRAGError, OSError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
