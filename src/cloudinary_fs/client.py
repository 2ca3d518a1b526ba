# client.py
import base64
import logging
import time
from typing import BinaryIO, Iterable, Optional, Union

import cloudinary.api
import cloudinary.uploader
import cloudinary.utils
import requests
from requests.structures import CaseInsensitiveDict
from cloudinary.exceptions import Error as CloudinaryError

from .config import ApiConfig

DEFAULT_MIMETYPE = "application/octet-stream"


def to_data_uri(content: Union[bytes, str], mimetype: Optional[str] = None) -> str:
    """
    Wraps raw content into a base64 data URI. Only str values that already
    are data URIs pass through; bytes are always wrapped.
    """
    if isinstance(content, str):
        if content.startswith("data:"):
            return content
        content = content.encode("utf-8")

    payload = base64.b64encode(content).decode("ascii")
    return f"data:{mimetype or DEFAULT_MIMETYPE};base64,{payload}"


class CloudinaryClient:
    """
    Client for the Cloudinary upload and admin APIs.
    Credentials are passed with every call instead of through cloudinary.config().
    """

    def __init__(self, config: ApiConfig):
        self.config = config
        logging.info(
            f"Cloudinary client initialized for cloud '{config.cloud_name}'."
        )

    def configure(self, **options):
        """Updates this client's configuration (e.g., overwrite, upload_preset)."""
        self.config = self.config.model_copy(update=options)

    def set_upload_preset(self, preset: Optional[str]):
        self.configure(upload_preset=preset)

    def _credentials(self) -> dict:
        return {
            "cloud_name": self.config.cloud_name,
            "api_key": self.config.api_key,
            "api_secret": self.config.api_secret,
        }

    def upload(
        self,
        path: str,
        content: Union[bytes, str],
        mimetype: Optional[str] = None,
        **options,
    ) -> dict:
        """Uploads content under the given public ID."""
        upload_options = {"public_id": path, "overwrite": self.config.overwrite}
        upload_options.update(self._credentials())
        if self.config.upload_preset:
            upload_options["upload_preset"] = self.config.upload_preset
        upload_options.update(options)

        try:
            logging.info(f"Uploading '{path}' to Cloudinary...")
            return cloudinary.uploader.upload(
                to_data_uri(content, mimetype), **upload_options
            )
        except CloudinaryError as e:
            logging.error(f"Failed to upload '{path}': {e}")
            raise

    def rename(self, path: str, new_path: str) -> dict:
        try:
            logging.info(f"Renaming '{path}' to '{new_path}'...")
            return cloudinary.uploader.rename(
                path, new_path, overwrite=self.config.overwrite, **self._credentials()
            )
        except CloudinaryError as e:
            logging.error(f"Failed to rename '{path}' to '{new_path}': {e}")
            raise

    def delete_by_paths(self, paths: Iterable[str]) -> dict:
        """Deletes resources by public ID. Response maps each ID to a status."""
        paths = list(paths)
        try:
            logging.info(f"Deleting {paths}...")
            return cloudinary.api.delete_resources(paths, **self._credentials())
        except CloudinaryError as e:
            logging.error(f"Failed to delete {paths}: {e}")
            raise

    def delete_by_prefix(self, prefix: str) -> dict:
        try:
            logging.info(f"Deleting all resources under prefix '{prefix}'...")
            return cloudinary.api.delete_resources_by_prefix(
                prefix, **self._credentials()
            )
        except CloudinaryError as e:
            logging.error(f"Failed to delete resources under prefix '{prefix}': {e}")
            raise

    def list_by_prefix(
        self, prefix: str, page_size: int, cursor: Optional[str] = None
    ) -> dict:
        """Returns one page of uploaded resources whose public ID starts with prefix."""
        options = {"type": "upload", "prefix": prefix, "max_results": page_size}
        if cursor is not None:
            options["next_cursor"] = cursor

        try:
            logging.info(f"Listing resources with prefix '{prefix}'...")
            return cloudinary.api.resources(**options, **self._credentials())
        except CloudinaryError as e:
            logging.error(f"Failed to list resources with prefix '{prefix}': {e}")
            raise

    def url(self, path: str, transformations: Optional[dict] = None) -> str:
        """
        Returns the delivery URL of a resource. The version is always set to
        the current time so that CDN and browser caches are bypassed.
        """
        options = dict(transformations or {})
        options["version"] = int(time.time())  # cache buster
        options.setdefault("secure", self.config.secure)
        options.setdefault("cloud_name", self.config.cloud_name)

        url, _ = cloudinary.utils.cloudinary_url(path, **options)
        return url

    def content(self, path: str) -> Optional[BinaryIO]:
        """
        Opens the resource for reading.
        Returns None if the resource does not exist.
        """
        url = self.url(path)
        try:
            logging.info(f"Fetching content of '{path}'...")
            response = requests.get(url, stream=True)
        except requests.RequestException as e:
            logging.error(f"Failed to fetch content of '{path}': {e}")
            raise

        if response.status_code == 404:
            logging.warning(f"Resource '{path}' not found.")
            response.close()
            return None
        try:
            response.raise_for_status()
        except requests.HTTPError as e:
            logging.error(f"Failed to fetch content of '{path}': {e}")
            response.close()
            raise

        response.raw.decode_content = True
        return response.raw

    def metadata(self, path: str) -> Optional[CaseInsensitiveDict]:
        """
        Probes the resource with a HEAD request.
        Returns the response headers, or None unless the status is 200 OK.
        """
        url = self.url(path)
        try:
            response = requests.head(url, allow_redirects=True)
        except requests.RequestException as e:
            logging.error(f"Failed to probe '{path}': {e}")
            raise

        if response.status_code != requests.codes.ok:
            logging.debug(f"HEAD '{path}' returned {response.status_code}.")
            return None

        return response.headers

    def mime_type(self, path: str) -> Optional[str]:
        headers = self.metadata(path)

        return headers.get("Content-Type") if headers is not None else None
