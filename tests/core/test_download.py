"""
Unit tests for download module.

Tests retry, hashing and proxy behavior with mocked network requests.
"""

import pytest
import requests
import responses

from fuelup.core.config import DownloadConfig
from fuelup.core.download import (
    RetryPolicy,
    StreamingHasher,
    create_session,
    download,
    download_file,
    verify_digest,
)
from fuelup.core.exceptions import IntegrityError, NetworkError, NotFoundError
from tests.utils.helpers import sha256_hex

URL = "https://example.com/releases/forc-binaries-x86_64-unknown-linux-gnu.tar.gz"


class TestStreamingHasher:
    """Test StreamingHasher class."""

    def test_update_and_finalize(self):
        """Test digest over several chunks equals digest of the whole."""
        hasher = StreamingHasher()
        hasher.update(b"hello ")
        hasher.update(b"world")

        assert hasher.finalize() == sha256_hex(b"hello world")

    def test_verify_is_case_insensitive(self):
        """Test verify accepts upper-case digests."""
        hasher = StreamingHasher()
        hasher.update(b"test")

        assert hasher.verify(sha256_hex(b"test").upper()) is True
        assert hasher.verify("a" * 64) is False


class TestVerifyDigest:
    """Test verify_digest function."""

    def test_match_returns_digest(self):
        hasher = StreamingHasher()
        hasher.update(b"data")

        assert verify_digest(hasher, sha256_hex(b"data")) == sha256_hex(b"data")

    def test_mismatch_reports_both_digests(self):
        """Test IntegrityError carries expected and actual digest."""
        hasher = StreamingHasher()
        hasher.update(b"tampered")
        expected = "0" * 64

        with pytest.raises(IntegrityError) as exc_info:
            verify_digest(hasher, expected)

        assert exc_info.value.expected == expected
        assert exc_info.value.actual == sha256_hex(b"tampered")
        assert expected in str(exc_info.value)
        assert sha256_hex(b"tampered") in str(exc_info.value)

    def test_no_published_hash_skips_check(self):
        hasher = StreamingHasher()
        hasher.update(b"data")

        assert verify_digest(hasher, None) == sha256_hex(b"data")


class TestRetryPolicy:
    """Test RetryPolicy configuration."""

    def test_defaults(self):
        policy = RetryPolicy()
        assert policy.max_attempts == 4
        assert policy.delay_seconds == 3.0

    def test_from_config(self):
        policy = RetryPolicy.from_config(DownloadConfig(max_attempts=2, retry_delay=0.5))
        assert policy.max_attempts == 2
        assert policy.delay_seconds == 0.5


class TestDownloadRetry:
    """Test 404 retry behavior."""

    @responses.activate
    def test_three_404s_then_success(self, policy, sleeps):
        """Test up to three 404s are retried, honoring Retry-After."""
        responses.add(responses.GET, URL, status=404)
        responses.add(responses.GET, URL, status=404, headers={"Retry-After": "5"})
        responses.add(responses.GET, URL, status=404)
        responses.add(responses.GET, URL, body=b"payload", status=200)

        hasher = StreamingHasher()
        data = download(URL, hasher, policy=policy)

        assert data == b"payload"
        assert hasher.finalize() == sha256_hex(b"payload")
        assert len(responses.calls) == 4
        assert sleeps == [3.0, 5.0, 3.0]

    @responses.activate
    def test_exhausted_404s_raise_not_found(self, policy, sleeps):
        """Test four 404s raise NotFoundError without a final sleep."""
        for _ in range(4):
            responses.add(responses.GET, URL, status=404)

        with pytest.raises(NotFoundError) as exc_info:
            download(URL, policy=policy)

        assert exc_info.value.status_code == 404
        assert exc_info.value.url == URL
        assert len(responses.calls) == 4
        assert len(sleeps) == 3

    @responses.activate
    def test_unparsable_retry_after_uses_default_delay(self, sleeps):
        responses.add(responses.GET, URL, status=404, headers={"Retry-After": "soon"})
        responses.add(responses.GET, URL, body=b"ok", status=200)

        download(URL, policy=RetryPolicy(delay_seconds=1.5, sleep=sleeps.append))

        assert sleeps == [1.5]

    @responses.activate
    def test_negative_retry_after_uses_default_delay(self, sleeps):
        responses.add(responses.GET, URL, status=404, headers={"Retry-After": "-5"})
        responses.add(responses.GET, URL, body=b"ok", status=200)

        download(URL, policy=RetryPolicy(sleep=sleeps.append))

        assert sleeps == [3.0]

    @responses.activate
    def test_server_error_is_not_retried(self, policy, sleeps):
        """Test non-404 statuses fail immediately."""
        responses.add(responses.GET, URL, status=500)

        with pytest.raises(NetworkError) as exc_info:
            download(URL, policy=policy)

        assert not isinstance(exc_info.value, NotFoundError)
        assert exc_info.value.status_code == 500
        assert len(responses.calls) == 1
        assert sleeps == []

    @responses.activate
    def test_transport_error_is_not_retried(self, policy, sleeps):
        responses.add(
            responses.GET, URL, body=requests.exceptions.ConnectionError("refused")
        )

        with pytest.raises(NetworkError, match="refused"):
            download(URL, policy=policy)

        assert len(responses.calls) == 1
        assert sleeps == []


class TestDownloadFile:
    """Test download_file function."""

    @responses.activate
    def test_writes_file_and_hashes(self, tmp_path, policy):
        body = b"x" * 20000
        responses.add(responses.GET, URL, body=body, status=200)
        destination = tmp_path / "out" / "forc.tar.gz"

        hasher = StreamingHasher()
        result = download_file(URL, destination, hasher, policy=policy)

        assert result == destination
        assert destination.read_bytes() == body
        assert hasher.finalize() == sha256_hex(body)

    @responses.activate
    def test_overwrites_existing_file(self, tmp_path, policy):
        """Test downloads restart from the first byte."""
        destination = tmp_path / "forc.tar.gz"
        destination.write_bytes(b"stale partial content that is longer")
        responses.add(responses.GET, URL, body=b"fresh", status=200)

        download_file(URL, destination, policy=policy)

        assert destination.read_bytes() == b"fresh"

    @responses.activate
    def test_not_found_leaves_no_file(self, tmp_path, policy):
        for _ in range(4):
            responses.add(responses.GET, URL, status=404)
        destination = tmp_path / "forc.tar.gz"

        with pytest.raises(NotFoundError):
            download_file(URL, destination, policy=policy)

        assert not destination.exists()


class TestCreateSession:
    """Test proxy configuration."""

    def test_proxy_from_environment(self, monkeypatch):
        monkeypatch.setenv("http_proxy", "http://proxy.local:3128")

        session = create_session()

        assert session.proxies == {
            "http": "http://proxy.local:3128",
            "https": "http://proxy.local:3128",
        }
        assert session.trust_env is False

    def test_no_proxy(self):
        session = create_session()

        assert session.proxies == {}
        assert session.headers["User-Agent"] == "fuelup"
