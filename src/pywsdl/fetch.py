"""Locating and fetching WSDL and XSD documents."""

from __future__ import annotations

import hashlib
import logging
import os.path
import tempfile
from dataclasses import dataclass
from pathlib import Path
from typing import override
from urllib.parse import urljoin, urlparse

import requests

from pywsdl.errors import FetchError, InputError

logger = logging.getLogger(__name__)

TIMEOUT = 30
URL_SCHEMES = ("http", "https", "file")

DEFAULT_CACHE_DIRECTORY = os.path.join(tempfile.gettempdir(), "pywsdl-cache")


@dataclass(frozen=True)
class Location:
    """A document location: either a local file path or a URL.

    Exactly one of `path` and `url` is set.
    """

    path: str = ""
    url: str = ""

    @classmethod
    def parse(cls, text: str) -> Location:
        """Parse a location given on the command line or in a `schemaLocation`.

        Args:
            text (str): A URL or a file path.

        Returns:
            Location: The parsed location.
        """
        text = text.strip()
        if not text:
            raise InputError("An empty location cannot be resolved.")

        scheme = urlparse(text).scheme.lower()
        if scheme == "file":
            return cls(path=urlparse(text).path)
        if scheme in URL_SCHEMES:
            return cls(url=text)
        return cls(path=text)

    @property
    def is_url(self) -> bool:
        return bool(self.url)

    def join(self, reference: str) -> Location:
        """Resolve a reference relative to this location.

        Absolute URLs and absolute paths are returned as they are. Relative references
        of a local document are resolved against its directory, so a local WSDL finds
        its external schemas locally.

        Args:
            reference (str): The reference, e.g. a `schemaLocation` value.

        Returns:
            Location: The resolved location.
        """
        target = Location.parse(reference)
        if target.is_url:
            return target

        if self.is_url:
            return Location(url=urljoin(self.url, reference.strip()))

        if os.path.isabs(target.path):
            return Location(path=os.path.normpath(target.path))

        return Location(path=os.path.normpath(os.path.join(os.path.dirname(self.path), target.path)))

    @override
    def __str__(self) -> str:
        return self.url or self.path


class FetchCache:
    """A directory of previously downloaded documents, keyed by URL."""

    def __init__(self, directory: str = DEFAULT_CACHE_DIRECTORY):
        self.directory = Path(directory)

    def _path_for(self, url: str) -> Path:
        return self.directory / hashlib.sha256(url.encode("utf-8")).hexdigest()

    def get(self, url: str) -> bytes | None:
        path = self._path_for(url)
        if path.is_file():
            logger.debug(f"Cache hit for '{url}'.")
            return path.read_bytes()
        return None

    def put(self, url: str, data: bytes) -> None:
        self.directory.mkdir(mode=0o700, parents=True, exist_ok=True)
        self._path_for(url).write_bytes(data)


def download_file(url: str, ignore_tls: bool = False) -> bytes:
    """Download a document.

    Args:
        url (str): The URL to fetch.
        ignore_tls (bool): Skip TLS certificate verification.

    Returns:
        bytes: The response body.

    Raises:
        FetchError: On transport errors and on any response code other than 200.
    """
    try:
        response = requests.get(url, timeout=TIMEOUT, verify=not ignore_tls)
    except requests.RequestException as e:
        raise FetchError(url, str(e)) from e

    if response.status_code != 200:
        raise FetchError(url, f"Received response code {response.status_code}")

    return response.content


def fetch_file(location: Location, ignore_tls: bool = False, cache: FetchCache | None = None) -> bytes:
    """Read a local document or download a remote one.

    Args:
        location (Location): The document location.
        ignore_tls (bool): Skip TLS certificate verification for HTTPS downloads.
        cache (FetchCache | None): Cache consulted before, and filled after, a download.

    Returns:
        bytes: The raw document.
    """
    if not location.is_url:
        logger.info(f"Reading file '{location.path}'.")
        try:
            return Path(location.path).read_bytes()
        except OSError as e:
            raise FetchError(location.path, e.strerror or str(e)) from e

    if cache is not None:
        data = cache.get(location.url)
        if data is not None:
            return data

    logger.info(f"Downloading file '{location.url}'.")
    data = download_file(location.url, ignore_tls)

    if cache is not None:
        cache.put(location.url, data)

    return data
