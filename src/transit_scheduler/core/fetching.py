"""Download and local caching of the compressed timetable dataset."""

import gzip
import logging
import os
import zlib
from pathlib import Path
from typing import BinaryIO

import requests
from tenacity import retry, retry_if_exception_type, stop_after_attempt, wait_exponential

from .exceptions import DatasetNotFoundError, NetworkError

logger = logging.getLogger(__name__)

DEFAULT_DATASET_URL = "https://mradomski.top/scheduler/latest.json.gz"
DEFAULT_TIMEOUT = 30


def default_dataset_path() -> Path:
    """Local dataset location under XDG_DATA_HOME, or a dotfile in HOME."""
    data_home = os.environ.get("XDG_DATA_HOME")
    if data_home:
        return Path(data_home) / "scheduler" / "schedule.json"
    return Path.home() / ".schedule.json"


class DatasetFetcher:
    """Fetch the gzip-compressed dataset over HTTP."""

    def __init__(self, url: str = DEFAULT_DATASET_URL, timeout: int = DEFAULT_TIMEOUT):
        """Initialize the fetcher.

        Args:
            url: Location of the gzip-compressed JSON dataset
            timeout: Request timeout in seconds
        """
        self.url = url
        self.timeout = timeout
        self.session = requests.Session()
        self.session.headers.update({"User-Agent": "transit-scheduler/0.1.0"})

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=4, max=10),
        retry=retry_if_exception_type(NetworkError),
        reraise=True,
    )
    def fetch(self) -> bytes:
        """Download and decompress the dataset.

        Returns:
            Decompressed JSON bytes

        Raises:
            NetworkError: If the request fails or the body is not gzip data
        """
        try:
            response = self.session.get(self.url, timeout=self.timeout)
            response.raise_for_status()
        except requests.exceptions.RequestException as e:
            raise NetworkError(f"Failed to fetch timetable dataset: {str(e)}") from e

        try:
            return gzip.decompress(response.content)
        except (OSError, EOFError, zlib.error) as e:
            raise NetworkError(f"Dataset is not valid gzip data: {str(e)}") from e

    def download(self, path: Path) -> Path:
        """Fetch the dataset and store the decompressed bytes at ``path``."""
        content = self.fetch()
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(content)
        logger.info(f"Saved {len(content)} bytes of timetable data to {path}")
        return path


class LocalDataset:
    """A dataset file on disk, downloaded on first use when a fetcher is given."""

    def __init__(self, path: Path | None = None, fetcher: DatasetFetcher | None = None):
        self.path = path or default_dataset_path()
        self.fetcher = fetcher

    def open(self) -> BinaryIO:
        """Open the dataset for reading, downloading it if missing.

        Raises:
            DatasetNotFoundError: If the file is missing and there is no fetcher
        """
        if not self.path.exists():
            if self.fetcher is None:
                raise DatasetNotFoundError(f"Timetable dataset not found: {self.path}")
            logger.info(f"Missing dataset file {self.path}, fetching it from the web")
            self.fetcher.download(self.path)
        return self.path.open("rb")

    def refresh(self) -> None:
        """Replace the local file with a freshly downloaded dataset."""
        if self.fetcher is None:
            raise DatasetNotFoundError("No dataset URL configured for refresh")
        self.fetcher.download(self.path)
