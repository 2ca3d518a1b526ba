# main.py
import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Optional, Sequence

from .adapter import CloudinaryAdapter
from .client import CloudinaryClient
from .config import Settings, get_settings


def setup_logging(settings: Settings):
    """Configures logging to console and, if LOG_FILE is set, to a file."""
    log_level_name = settings.LOG_LEVEL.upper()

    root_logger = logging.getLogger()
    root_logger.setLevel(log_level_name)

    # Clear any existing handlers to prevent duplicate logs on re-runs or implicit configs
    for handler in list(root_logger.handlers):
        root_logger.removeHandler(handler)

    formatter = logging.Formatter(
        "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    )

    # Log to stderr so command output on stdout stays clean
    stream_handler = logging.StreamHandler(sys.stderr)
    stream_handler.setFormatter(formatter)
    root_logger.addHandler(stream_handler)

    if settings.LOG_FILE:
        try:
            file_handler = logging.FileHandler(settings.LOG_FILE)
            file_handler.setFormatter(formatter)
            root_logger.addHandler(file_handler)
        except IOError as e:
            root_logger.error(f"Failed to set up file logging to {settings.LOG_FILE}: {e}")

    # Reducing "noise" from third-party libraries
    logging.getLogger("cloudinary").setLevel(logging.WARNING)
    logging.getLogger("urllib3").setLevel(logging.WARNING)


def build_adapter(settings: Settings) -> CloudinaryAdapter:
    """Creates a Cloudinary client from settings and wraps it in the adapter."""
    client = CloudinaryClient(settings.api_config)
    return CloudinaryAdapter(
        client,
        prefix=settings.CLOUDINARY_PATH_PREFIX,
        page_size=settings.LIST_PAGE_SIZE,
    )


def _print_record(record) -> bool:
    if record is None:
        return False
    print(record.model_dump_json(exclude_none=True))
    return True


def run_command(adapter: CloudinaryAdapter, args: argparse.Namespace) -> bool:
    """Executes a parsed command. Returns False when the operation reports failure."""
    command = args.command

    if command == "ls":
        for record in adapter.list_contents(args.prefix):
            print(record.model_dump_json(exclude_none=True))
        return True
    if command == "put":
        local_path = Path(args.local)
        return _print_record(adapter.write(args.path or local_path.name, local_path.read_bytes()))
    if command == "cat":
        response = adapter.read(args.path)
        if response is None:
            return False
        sys.stdout.buffer.write(response.contents)
        return True
    if command == "get":
        response = adapter.read_stream(args.path)
        if response is None:
            return False
        with open(args.local, "wb") as f:
            f.write(response.stream.read())
        logging.info(f"Saved '{response.path}' to {args.local}.")
        return True
    if command == "mv":
        return adapter.rename(args.path, args.new_path)
    if command == "cp":
        return adapter.copy(args.path, args.new_path)
    if command == "rm":
        return adapter.delete(args.path)
    if command == "rmdir":
        return adapter.delete_directory(args.path)
    if command == "mkdir":
        return _print_record(adapter.create_directory(args.path))
    if command == "stat":
        return _print_record(adapter.get_metadata(args.path))
    if command == "exists":
        found = adapter.exists(args.path)
        print(json.dumps(found))
        return found
    if command == "url":
        print(adapter.client.url(adapter.apply_path_prefix(args.path)))
        return True

    raise ValueError(f"Unknown command: {command}")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="cloudinary-fs",
        description="Treat Cloudinary assets as files.",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    ls = subparsers.add_parser("ls", help="List resources under a prefix.")
    ls.add_argument("prefix", nargs="?", default="")

    put = subparsers.add_parser("put", help="Upload a local file.")
    put.add_argument("local")
    put.add_argument("path", nargs="?", help="Remote path. Defaults to the local file name.")

    get = subparsers.add_parser("get", help="Download a file.")
    get.add_argument("path")
    get.add_argument("local")

    for name, help_text in [
        ("cat", "Write a file to stdout."),
        ("rm", "Delete a file."),
        ("rmdir", "Delete every file under a prefix."),
        ("mkdir", "Create a (virtual) directory."),
        ("stat", "Show file metadata."),
        ("exists", "Check whether a file exists."),
        ("url", "Print the delivery URL of a file."),
    ]:
        subparsers.add_parser(name, help=help_text).add_argument("path")

    for name, help_text in [("mv", "Rename a file."), ("cp", "Copy a file.")]:
        sub = subparsers.add_parser(name, help=help_text)
        sub.add_argument("path")
        sub.add_argument("new_path")

    return parser


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    settings = get_settings()
    setup_logging(settings)

    try:
        adapter = build_adapter(settings)
        succeeded = run_command(adapter, args)
    except Exception as e:
        logging.critical(
            f"An unexpected error occurred while running '{args.command}': {e}",
            exc_info=True,
        )
        return 1

    if not succeeded:
        logging.error(f"Command '{args.command}' failed.")
    return 0 if succeeded else 1


if __name__ == "__main__":
    sys.exit(main())
