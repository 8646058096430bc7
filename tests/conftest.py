import collections
import datetime as dt
import types
from unittest.mock import AsyncMock, Mock

import pytest

from s3_sigv4.client import S3Client


class MockClient(S3Client):
    def __init__(
        self,
        access_key: str,
        secret_key: str,
        region: str,
        endpoint_url: str,
        bucket: str,
    ):
        super().__init__(
            access_key=access_key,
            secret_key=secret_key,
            region=region,
            endpoint_url=endpoint_url,
            bucket=bucket,
        )
        self._responses = collections.deque()
        self.requests = []

    async def _make_request(
        self,
        method: str,
        key: str,
        headers: dict | None = None,
        data: bytes | None = None,
        payload_hash: str = "UNSIGNED-PAYLOAD",
    ):
        self.requests.append(
            {
                "method": method,
                "key": key,
                "headers": headers,
                "data": data,
                "payload_hash": payload_hash,
            }
        )
        if self._responses:
            return self._responses.popleft()
        raise ValueError("No more responses available in the mock client.")

    def add_response(self, response: str | bytes, headers: dict | None = None):
        amock = AsyncMock()
        amock.text.return_value = response if isinstance(response, str) else None
        amock.read.return_value = (
            response.encode() if isinstance(response, str) else response
        )
        amock.headers = headers or {}
        amock.close = Mock()
        self._responses.append(amock)


@pytest.fixture
def mock_client():
    return MockClient(
        access_key="test-access-key",
        secret_key="test-secret-key",
        region="us-east-1",
        endpoint_url="https://s3.us-east-1.amazonaws.com",
        bucket="test-bucket",
    )


@pytest.fixture
def mock_datetime(monkeypatch):
    """Freeze ``now`` in the signing module and count how often it is read."""
    mock_now = dt.datetime(2023, 1, 1, 12, 0, 0, tzinfo=dt.UTC)
    calls = []

    class MockDatetime:
        @staticmethod
        def now(tz=None):
            calls.append(tz)
            return mock_now

    class MockDt:
        datetime = MockDatetime
        UTC = dt.UTC

    monkeypatch.setattr("s3_sigv4.auth.dt", MockDt)
    return types.SimpleNamespace(now=mock_now, calls=calls)
