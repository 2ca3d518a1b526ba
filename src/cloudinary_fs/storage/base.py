# storage/base.py
from abc import ABC, abstractmethod
from typing import BinaryIO, List, Mapping, Optional

from ..exceptions import UnsupportedOperationError
from .dto import FileMetadata, ReadResult, StreamResult


class FilesystemAdapter(ABC):
    """
    Abstract base class for a filesystem adapter.
    Defines the common interface that all specific storage backends
    must implement, plus default implementations of the operations
    that can be expressed on top of the buffered primitives.
    """

    @abstractmethod
    def write(
        self, path: str, contents: bytes, config: Optional[Mapping] = None
    ) -> Optional[FileMetadata]:
        """
        Writes a new file.

        :param path: The logical path of the file.
        :param contents: Raw bytes or a data URI.
        :param config: Backend-specific write options.
        :return: The file metadata, or None on failure.
        """
        pass

    @abstractmethod
    def update(
        self, path: str, contents: bytes, config: Optional[Mapping] = None
    ) -> Optional[FileMetadata]:
        """Updates an existing file."""
        pass

    @abstractmethod
    def rename(self, path: str, new_path: str) -> bool:
        pass

    @abstractmethod
    def delete(self, path: str) -> bool:
        pass

    @abstractmethod
    def delete_directory(self, dirname: str) -> bool:
        pass

    @abstractmethod
    def create_directory(
        self, dirname: str, config: Optional[Mapping] = None
    ) -> Optional[FileMetadata]:
        pass

    @abstractmethod
    def exists(self, path: str) -> bool:
        pass

    @abstractmethod
    def read(self, path: str) -> Optional[ReadResult]:
        pass

    @abstractmethod
    def read_stream(self, path: str) -> Optional[StreamResult]:
        pass

    @abstractmethod
    def list_contents(
        self, directory: str = "", recursive: bool = False
    ) -> List[FileMetadata]:
        """
        Lists the contents of a directory.

        :param directory: The directory path.
        :param recursive: Whether to descend into subdirectories.
        :return: A list of standardized FileMetadata DTOs.
        """
        pass

    @abstractmethod
    def get_metadata(self, path: str) -> Optional[FileMetadata]:
        pass

    @abstractmethod
    def get_size(self, path: str) -> Optional[FileMetadata]:
        pass

    @abstractmethod
    def get_mimetype(self, path: str) -> Optional[FileMetadata]:
        pass

    @abstractmethod
    def get_timestamp(self, path: str) -> Optional[FileMetadata]:
        pass

    def get_visibility(self, path: str):
        raise UnsupportedOperationError(
            f"{type(self).__name__} does not support visibility. Path: {path}"
        )

    def set_visibility(self, path: str, visibility: str):
        raise UnsupportedOperationError(
            f"{type(self).__name__} does not support visibility settings."
        )

    def write_stream(
        self, path: str, stream: BinaryIO, config: Optional[Mapping] = None
    ) -> Optional[FileMetadata]:
        """Writes a file from a stream by reading it fully into memory."""
        return self.write(path, stream.read(), config)

    def update_stream(
        self, path: str, stream: BinaryIO, config: Optional[Mapping] = None
    ) -> Optional[FileMetadata]:
        return self.update(path, stream.read(), config)

    def copy(self, path: str, new_path: str) -> bool:
        """
        Copies a file by reading it back and writing it under the new path.
        """
        response = self.read_stream(path)
        if response is None:
            return False

        return self.write_stream(new_path, response.stream) is not None
