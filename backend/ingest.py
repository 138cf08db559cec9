import argparse
import logging
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent / "src"))

from config import find_config_path, get_log_level, load_config
from errors import NotebookRAGError
from models import FileInput, TextInput, UrlInput
from pipelines import IngestionPipeline


def build_raw_input(args: argparse.Namespace):
    if args.url:
        return UrlInput(url=args.url)
    if args.text:
        return TextInput(text=args.text)
    return FileInput.from_path(args.file, file_type=args.file_type)


def main():
    parser = argparse.ArgumentParser(
        description="Ingest one URL, text or file into the vector store"
    )
    source = parser.add_mutually_exclusive_group(required=True)
    source.add_argument("--url", help="Web page to fetch")
    source.add_argument("--text", help="Text to store as-is")
    source.add_argument("--file", type=Path, help="PDF, CSV or TXT file")
    parser.add_argument(
        "--file-type",
        default=None,
        help="File type of --file (default: taken from the extension)",
    )
    parser.add_argument(
        "--config",
        type=Path,
        default=None,
        help="Path to configuration file (default: config.toml in project root)",
    )

    args = parser.parse_args()

    config_path = find_config_path(args.config)
    config = load_config(config_path)

    logging.basicConfig(
        level=get_log_level(config),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    try:
        pipeline = IngestionPipeline.from_config(config, config_path)
        stats = pipeline.ingest(build_raw_input(args))
        print("\n=== Ingestion Complete ===")
        print(f"Documents loaded: {stats.originalDocuments}")
        print(f"Chunks created: {stats.chunksCreated}")
        print(f"Chunks stored: {stats.chunksStored}")
        print(f"Average chunk size: {stats.averageChunkSize}")
        return 0
    except NotebookRAGError as e:
        print(f"Error ({e.stage}): {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
