"""
Network download engine with bounded retry and sha256 accounting.

This module provides:
- HTTP/HTTPS downloads through a shared requests session
- Transparent proxy configuration from the ``http_proxy`` variable
- Retry on HTTP 404 only, honoring ``Retry-After``
- Streaming sha256 computation over every byte received
- Checksum verification with a typed IntegrityError

Partial files are never resumed: every attempt rewrites the destination
from the first byte.
"""

import hashlib
import logging
import os
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, Optional

import requests
from requests.exceptions import RequestException

from fuelup.core.config import DownloadConfig
from fuelup.core.exceptions import (
    FilesystemError,
    IntegrityError,
    NetworkError,
    NotFoundError,
)

logger = logging.getLogger(__name__)

USER_AGENT = "fuelup"
CHUNK_SIZE = 8192


@dataclass(frozen=True)
class RetryPolicy:
    """
    Retry configuration for downloads.

    Attributes:
        max_attempts: Total number of attempts (first try included)
        delay_seconds: Delay after a 404 when no Retry-After header is sent
        sleep: Function used to wait between attempts
    """

    max_attempts: int = 4
    delay_seconds: float = 3.0
    sleep: Callable[[float], None] = field(default=time.sleep, compare=False)

    @classmethod
    def from_config(cls, config: DownloadConfig) -> "RetryPolicy":
        return cls(max_attempts=config.max_attempts, delay_seconds=config.retry_delay)


class StreamingHasher:
    """Compute a sha256 digest incrementally for streaming downloads."""

    def __init__(self):
        self.hasher = hashlib.sha256()

    def update(self, data: bytes):
        """Add data to hash computation."""
        self.hasher.update(data)

    def finalize(self) -> str:
        """Get final hash value as lowercase hex string."""
        return self.hasher.hexdigest()

    def verify(self, expected_hash: str) -> bool:
        """
        Check if computed hash matches expected value.

        Args:
            expected_hash: Expected hash value (hex string, any case)

        Returns:
            True if hashes match, False otherwise
        """
        return self.finalize().lower() == expected_hash.lower()


def create_session(user_agent: str = USER_AGENT) -> requests.Session:
    """
    Create the HTTP session used for every outbound request.

    When ``http_proxy`` is set it is applied to both http and https
    traffic; otherwise connections are direct.
    """
    session = requests.Session()
    session.headers["User-Agent"] = user_agent

    proxy = os.environ.get("http_proxy")
    if proxy:
        logger.debug(f"Using proxy {proxy}")
        session.trust_env = False
        session.proxies.update({"http": proxy, "https": proxy})

    return session


def verify_digest(hasher: StreamingHasher, expected_hash: Optional[str]) -> str:
    """
    Compare a finished digest with the published hash.

    Args:
        hasher: Hasher that has consumed the whole artifact
        expected_hash: Published hash, or None when nothing was published

    Returns:
        The computed digest

    Raises:
        IntegrityError: If a hash was published and does not match
    """
    actual = hasher.finalize()
    if expected_hash is not None and not hasher.verify(expected_hash):
        raise IntegrityError(expected=expected_hash, actual=actual)
    return actual


def _retry_delay(response: requests.Response, policy: RetryPolicy) -> float:
    retry_after = response.headers.get("retry-after")
    if retry_after is not None:
        try:
            seconds = int(retry_after.strip())
        except ValueError:
            seconds = -1
        if seconds >= 0:
            return float(seconds)
        logger.debug(f"Ignoring unparsable Retry-After header: {retry_after}")
    return policy.delay_seconds


def _get_with_retry(
    url: str,
    session: requests.Session,
    policy: RetryPolicy,
    timeout: float,
) -> requests.Response:
    """
    Issue a streaming GET, retrying only on HTTP 404.

    Raises:
        NetworkError: On transport failure or any non-404 error status
        NotFoundError: If every attempt returned 404
    """
    for attempt in range(1, policy.max_attempts + 1):
        try:
            response = session.get(url, stream=True, timeout=timeout)
        except RequestException as e:
            raise NetworkError(f"Unexpected error: {e}", url=url) from e

        if response.status_code == 404:
            delay = _retry_delay(response, policy)
            response.close()
            logger.error(f"Failed to download from {url}")
            if attempt < policy.max_attempts:
                logger.info(
                    f"Retrying in {delay:g}s (attempt {attempt + 1}/{policy.max_attempts})"
                )
                policy.sleep(delay)
            continue

        if response.status_code >= 400:
            status = response.status_code
            response.close()
            raise NetworkError(
                f"Unexpected error: HTTP {status} for {url}", url=url, status_code=status
            )

        return response

    raise NotFoundError(f"Could not download file from {url}", url=url, status_code=404)


def download(
    url: str,
    hasher: Optional[StreamingHasher] = None,
    session: Optional[requests.Session] = None,
    policy: Optional[RetryPolicy] = None,
    timeout: float = 30,
) -> bytes:
    """
    Download a URL into memory.

    Args:
        url: URL to download
        hasher: Hasher updated with every byte received
        session: HTTP session, defaults to create_session()
        policy: Retry policy, defaults to RetryPolicy()
        timeout: Request timeout in seconds

    Returns:
        The response body

    Raises:
        NetworkError: On transport failure or non-404 error status
        NotFoundError: If the URL kept returning 404
    """
    session = session or create_session()
    policy = policy or RetryPolicy()

    response = _get_with_retry(url, session, policy, timeout)
    data = bytearray()
    try:
        with response:
            for chunk in response.iter_content(chunk_size=CHUNK_SIZE):
                if chunk:
                    data.extend(chunk)
                    if hasher:
                        hasher.update(chunk)
    except RequestException as e:
        raise NetworkError(f"Error while reading {url}: {e}", url=url) from e

    return bytes(data)


def download_file(
    url: str,
    destination: Path,
    hasher: Optional[StreamingHasher] = None,
    session: Optional[requests.Session] = None,
    policy: Optional[RetryPolicy] = None,
    timeout: float = 30,
) -> Path:
    """
    Download a URL to a file, hashing while streaming.

    Any existing file at ``destination`` is overwritten from the start.
    A transfer that fails midway removes the partial file.

    Args:
        url: URL to download
        destination: Local path to save file
        hasher: Hasher updated with every byte received
        session: HTTP session, defaults to create_session()
        policy: Retry policy, defaults to RetryPolicy()
        timeout: Request timeout in seconds

    Returns:
        Path to downloaded file

    Raises:
        NetworkError: On transport failure or non-404 error status
        NotFoundError: If the URL kept returning 404
    """
    session = session or create_session()
    policy = policy or RetryPolicy()
    destination = Path(destination)
    destination.parent.mkdir(parents=True, exist_ok=True)

    response = _get_with_retry(url, session, policy, timeout)
    downloaded = 0
    try:
        with response, open(destination, "wb") as f:
            for chunk in response.iter_content(chunk_size=CHUNK_SIZE):
                if chunk:
                    f.write(chunk)
                    downloaded += len(chunk)
                    if hasher:
                        hasher.update(chunk)
    except RequestException as e:
        logger.error(f"Error during download: {e}")
        destination.unlink(missing_ok=True)
        raise NetworkError(f"Error while reading {url}: {e}", url=url) from e
    except OSError as e:
        destination.unlink(missing_ok=True)
        raise FilesystemError(
            f"Something went wrong writing data to {destination}: {e}"
        ) from e

    logger.debug(f"Downloaded {downloaded} bytes to {destination}")
    return destination
