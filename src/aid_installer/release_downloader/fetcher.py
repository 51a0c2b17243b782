"""
Archive fetcher implementation.

Downloads a release archive over HTTP, following a bounded number of redirects and
streaming the body to disk.
"""

import logging
import pathlib
import time
from typing import Optional

import httpx

from aid_installer.aid_installer_exceptions import DownloadError, TooManyRedirectsError
from aid_installer.aid_installer_logger import AidInstallerLogger
from aid_installer.aid_installer_utils import FileUtils, PathLike

REDIRECT_STATUS_CODES = frozenset({301, 302, 303, 307, 308})


class ArchiveFetcher:
    """
    Downloads a single URL to a local file.

    Redirects are followed manually so that the limit is enforced here and the body of a
    redirect response is never written to disk.
    """

    def __init__(
        self,
        logger: AidInstallerLogger,
        max_redirects: int = 5,
        timeout: Optional[float] = None,
        chunk_size: int = 64 * 1024,
        transport: Optional[httpx.BaseTransport] = None,
    ):
        """
        Initialize the archive fetcher.

        Args:
            logger: Logger for progress and error messages
            max_redirects: Maximum number of redirects to follow
            timeout: Network timeout in seconds, None waits indefinitely
            chunk_size: Size of the chunks written to disk
            transport: Optional httpx transport, used to replace the network in tests
        """
        self.logger = logger
        self.max_redirects = max_redirects
        self.timeout = timeout
        self.chunk_size = chunk_size
        self.transport = transport

    def fetch(self, url: str, destination_path: PathLike) -> int:
        """
        Download url to destination_path.

        Args:
            url: URL to download from
            destination_path: File to create or overwrite

        Returns:
            Number of bytes written

        Raises:
            DownloadError: On a non-200 terminal status or a transport failure
            TooManyRedirectsError: When more than max_redirects redirects are received
        """
        destination = pathlib.Path(destination_path)
        self.logger.log(f"Downloading {url}", logging.INFO)
        start = time.monotonic()

        try:
            with httpx.Client(
                follow_redirects=False,
                timeout=self.timeout,
                transport=self.transport,
            ) as client:
                written = self._fetch_following_redirects(client, url, destination)
        except httpx.HTTPError as e:
            self._remove_partial(destination)
            raise DownloadError(f"Network error while downloading {url}: {e}", url) from e
        except BaseException:
            self._remove_partial(destination)
            raise

        elapsed = time.monotonic() - start
        self.logger.log(
            f"Download complete: {FileUtils.format_size(written)} in {elapsed:.1f}s",
            logging.INFO,
        )
        return written

    def _fetch_following_redirects(
        self, client: httpx.Client, url: str, destination: pathlib.Path
    ) -> int:
        current_url = httpx.URL(url)
        for _ in range(self.max_redirects + 1):
            with client.stream("GET", current_url) as response:
                if response.status_code in REDIRECT_STATUS_CODES:
                    location = response.headers.get("location")
                    if not location:
                        raise DownloadError(
                            f"Redirect from {current_url} has no Location header",
                            url,
                            response.status_code,
                        )
                    current_url = current_url.join(location)
                    self.logger.log(f"Following redirect to {current_url}", logging.DEBUG)
                    continue

                if response.status_code != 200:
                    raise DownloadError(
                        f"Download of {url} failed with HTTP status {response.status_code}",
                        url,
                        response.status_code,
                    )

                return self._write_body(response, destination)

        raise TooManyRedirectsError(url, self.max_redirects)

    def _write_body(self, response: httpx.Response, destination: pathlib.Path) -> int:
        written = 0
        with open(destination, "wb") as f:
            for chunk in response.iter_bytes(chunk_size=self.chunk_size):
                f.write(chunk)
                written += len(chunk)
        return written

    def _remove_partial(self, destination: pathlib.Path) -> None:
        if destination.exists():
            self.logger.log(f"Removing partial download {destination}", logging.DEBUG)
            FileUtils.remove_file(self.logger, destination)
