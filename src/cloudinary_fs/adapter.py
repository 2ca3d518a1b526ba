# adapter.py
import io
import logging
import mimetypes
import posixpath
import shutil
from collections.abc import Mapping
from datetime import datetime
from email.utils import parsedate_to_datetime
from typing import List, Optional

from .client import CloudinaryClient
from .storage.base import FilesystemAdapter
from .storage.dto import FileMetadata, ReadResult, StreamResult

LIST_PAGE_SIZE = 500


def _parse_iso_timestamp(value) -> Optional[int]:
    try:
        return int(datetime.fromisoformat(str(value).replace("Z", "+00:00")).timestamp())
    except ValueError:
        logging.warning(f"Unparseable timestamp '{value}'.")
        return None


def _parse_http_timestamp(value) -> Optional[int]:
    try:
        return int(parsedate_to_datetime(value).timestamp())
    except (TypeError, ValueError):
        logging.warning(f"Unparseable Last-Modified header '{value}'.")
        return None


class CloudinaryAdapter(FilesystemAdapter):
    """
    Filesystem adapter over Cloudinary, implementing the FilesystemAdapter interface.

    Cloudinary has no folders: a public ID such as 'photos/cat' lives in the
    'photos/' pseudo-directory only by prefix convention. All assets are public,
    so visibility operations are not supported.
    """

    def __init__(
        self,
        client: CloudinaryClient,
        prefix: Optional[str] = None,
        page_size: int = LIST_PAGE_SIZE,
    ):
        self.client = client
        self.prefix = prefix.rstrip("/\\") + "/" if prefix else ""
        self.page_size = page_size

    def apply_path_prefix(self, path: str) -> str:
        """Maps a logical file path to a public ID: extension removed, prefix added."""
        return self._apply_prefix(self._remove_extension(path))

    def remove_path_prefix(self, path: str) -> str:
        if self.prefix and path.startswith(self.prefix):
            return path[len(self.prefix):]
        return path

    def _apply_prefix(self, path: str) -> str:
        return self.prefix + path.lstrip("/\\")

    def _directory_prefix(self, dirname: str) -> str:
        return self._apply_prefix(dirname).rstrip("/") + "/"

    @staticmethod
    def _remove_extension(path: str) -> str:
        # Cloudinary infers the format itself; 'a/b.jpg' is stored as 'a/b'
        root, _ = posixpath.splitext(path)
        return root

    def write(self, path, contents, config=None) -> Optional[FileMetadata]:
        options = dict(config or {})
        mimetype = options.pop("mimetype", None) or mimetypes.guess_type(path)[0]

        response = self.client.upload(
            self.apply_path_prefix(path), contents, mimetype=mimetype, **options
        )
        return self.normalize_metadata(response)

    def update(self, path, contents, config=None) -> Optional[FileMetadata]:
        # Cloudinary does not distinguish create and update
        return self.write(path, contents, config)

    def rename(self, path: str, new_path: str) -> bool:
        response = self.client.rename(
            self.apply_path_prefix(path), self.apply_path_prefix(new_path)
        )
        return bool(response)

    def delete(self, path: str) -> bool:
        path = self.apply_path_prefix(path)

        response = self.client.delete_by_paths([path])
        status = (response.get("deleted") or {}).get(path)
        if status != "deleted":
            logging.warning(f"Resource '{path}' was not deleted. Status: {status}")
        return status == "deleted"

    def delete_directory(self, dirname: str) -> bool:
        """
        Deletes every resource under the directory prefix.
        Success only means Cloudinary answered with a 'deleted' collection;
        it may be empty.
        """
        response = self.client.delete_by_prefix(self._directory_prefix(dirname))

        return isinstance(response.get("deleted"), (list, Mapping))

    def create_directory(self, dirname: str, config=None) -> FileMetadata:
        # Folders are created implicitly by uploading 'path/file'; nothing to do remotely
        return FileMetadata(
            type="dir",
            path=self.remove_path_prefix(self._directory_prefix(dirname)),
        )

    def exists(self, path: str) -> bool:
        return self.client.mime_type(self.apply_path_prefix(path)) is not None

    def read(self, path: str) -> Optional[ReadResult]:
        response = self.read_stream(path)
        if response is None:
            return None

        return ReadResult(path=response.path, contents=response.stream.read())

    def read_stream(self, path: str) -> Optional[StreamResult]:
        public_id = self.apply_path_prefix(path)

        source = self.client.content(public_id)
        if source is None:
            return None

        buffer = io.BytesIO()
        try:
            shutil.copyfileobj(source, buffer)
        finally:
            source.close()
        buffer.seek(0)

        return StreamResult(path=self.remove_path_prefix(public_id), stream=buffer)

    def list_contents(self, directory: str = "", recursive: bool = False) -> List[FileMetadata]:
        """
        Lists every resource under the directory prefix.
        Cloudinary treats folders as name prefixes, so the scan is always
        recursive and the `recursive` flag is ignored.
        """
        prefix = self._directory_prefix(directory) if directory.strip("/") else self.prefix

        files: List[FileMetadata] = []
        cursor = None
        while True:
            response = self.client.list_by_prefix(prefix, self.page_size, cursor)
            for resource in response.get("resources", []):
                metadata = self.normalize_metadata(resource)
                if metadata is not None:
                    files.append(metadata)

            cursor = response.get("next_cursor")
            if not cursor:
                break
            logging.info("Found more resources, continuing listing...")

        return files

    def get_metadata(self, path: str) -> Optional[FileMetadata]:
        public_id = self.apply_path_prefix(path)
        headers = self.client.metadata(public_id)
        if not headers:
            return None

        etag = headers.get("Etag")
        size = headers.get("Content-Length")
        last_modified = headers.get("Last-Modified")
        return FileMetadata(
            type="file",
            path=self.remove_path_prefix(public_id),
            hash=etag.replace('"', "") if etag is not None else None,
            size=int(size) if size is not None else None,
            timestamp=_parse_http_timestamp(last_modified) if last_modified is not None else None,
            mimetype=headers.get("Content-Type"),
        )

    def get_size(self, path: str) -> Optional[FileMetadata]:
        return self.get_metadata(path)

    def get_mimetype(self, path: str) -> FileMetadata:
        public_id = self.apply_path_prefix(path)

        return FileMetadata(
            path=self.remove_path_prefix(public_id),
            mimetype=self.client.mime_type(public_id),
        )

    def get_timestamp(self, path: str) -> Optional[FileMetadata]:
        return self.get_metadata(path)

    def normalize_metadata(self, resource) -> Optional[FileMetadata]:
        """Converts an upload or listing response into a FileMetadata DTO."""
        if not isinstance(resource, Mapping):
            return None

        public_id = resource.get("public_id")
        if public_id is None:
            logging.warning(f"Skipping resource without public_id: {dict(resource)}")
            return None

        created_at = resource.get("created_at")
        return FileMetadata(
            type="file",
            path=self.remove_path_prefix(public_id),
            size=resource.get("bytes"),
            timestamp=_parse_iso_timestamp(created_at) if created_at is not None else None,
        )
