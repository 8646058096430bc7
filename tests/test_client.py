from unittest.mock import AsyncMock, Mock

import pytest

from s3_sigv4.client import S3Client
from s3_sigv4.exceptions import (
    S3AccessDeniedError,
    S3ClientError,
    S3InvalidRequestError,
    S3NotFoundError,
    S3ServerError,
)


@pytest.fixture
def client_custom_endpoint():
    return S3Client(
        access_key="test-access-key",
        secret_key="test-secret-key",
        region="us-east-1",
        endpoint_url="https://minio.example.com",
        bucket="test-bucket",
    )


def _session_returning(status: int, text: str = ""):
    response = Mock()
    response.status = status
    response.text = AsyncMock(return_value=text)
    response.close = Mock()
    session = Mock()
    session.request = AsyncMock(return_value=response)
    return session, response


def test_client_initialization(mock_client):
    assert mock_client.access_key == "test-access-key"
    assert mock_client.secret_key == "test-secret-key"
    assert mock_client.region == "us-east-1"
    assert (
        str(mock_client.bucket_url) == "https://test-bucket.s3.us-east-1.amazonaws.com"
    )
    assert mock_client._session is None


def test_client_initialization_custom_endpoint(client_custom_endpoint):
    assert (
        str(client_custom_endpoint.bucket_url)
        == "https://test-bucket.minio.example.com"
    )


def test_client_default_endpoint_from_region():
    client = S3Client("key", "secret", "eu-west-1", None, "my-bucket")
    assert str(client.bucket_url) == "https://my-bucket.s3.eu-west-1.amazonaws.com"


@pytest.mark.asyncio
async def test_make_request_signs_headers(client_custom_endpoint):
    session, response = _session_returning(200)
    client_custom_endpoint._session = session

    result = await client_custom_endpoint._make_request(
        "PUT",
        key="test-key",
        headers={"Content-Length": "5", "x-amz-meta-author": "me"},
        data=b"hello",
    )

    assert result is response
    kwargs = session.request.call_args.kwargs
    assert kwargs["method"] == "PUT"
    assert str(kwargs["url"]) == "https://test-bucket.minio.example.com/test-key"
    assert kwargs["data"] == b"hello"

    headers = kwargs["headers"]
    assert headers["Content-Length"] == "5"
    assert headers["host"] == "test-bucket.minio.example.com"
    assert headers["x-amz-content-sha256"] == "UNSIGNED-PAYLOAD"
    assert len(headers["x-amz-date"]) == len("20220202T000000Z")
    assert headers["Authorization"].startswith(
        "AWS4-HMAC-SHA256 Credential=test-access-key/"
    )
    assert (
        "SignedHeaders=host;x-amz-content-sha256;x-amz-date;x-amz-meta-author,"
        in headers["Authorization"]
    )


@pytest.mark.asyncio
async def test_make_request_raises_parsed_error(client_custom_endpoint):
    session, response = _session_returning(
        404,
        "<Error><Code>NoSuchKey</Code><Message>Key missing</Message></Error>",
    )
    client_custom_endpoint._session = session

    with pytest.raises(S3NotFoundError, match="Key missing"):
        await client_custom_endpoint._make_request("GET", key="missing")

    response.close.assert_called_once()


@pytest.mark.asyncio
async def test_close_releases_session(client_custom_endpoint):
    session = Mock()
    session.close = AsyncMock()
    client_custom_endpoint._session = session

    await client_custom_endpoint.close()

    session.close.assert_awaited_once()
    assert client_custom_endpoint._session is None


def test_parse_error_response_xml(mock_client):
    xml_response = """<?xml version="1.0" encoding="UTF-8"?>
    <Error>
        <Code>NoSuchKey</Code>
        <Message>The specified key does not exist.</Message>
        <Key>nonexistent-key</Key>
        <BucketName>test-bucket</BucketName>
    </Error>"""

    exception = mock_client._parse_error_response(404, xml_response)
    assert isinstance(exception, S3NotFoundError)
    assert "specified key does not exist" in str(exception)


def test_parse_error_response_signature_mismatch(mock_client):
    xml_response = """<?xml version="1.0" encoding="UTF-8"?>
    <Error>
        <Code>SignatureDoesNotMatch</Code>
        <Message>The request signature we calculated does not match.</Message>
    </Error>"""

    exception = mock_client._parse_error_response(403, xml_response)
    assert isinstance(exception, S3AccessDeniedError)


def test_parse_error_response_invalid_request(mock_client):
    xml_response = """<Error>
        <Code>InvalidRequest</Code>
        <Message>Invalid request</Message>
    </Error>"""

    exception = mock_client._parse_error_response(400, xml_response)
    assert isinstance(exception, S3InvalidRequestError)


def test_parse_error_response_client_error(mock_client):
    xml_response = """<Error>
        <Code>AuthorizationHeaderMalformed</Code>
        <Message>The authorization header is malformed</Message>
    </Error>"""

    exception = mock_client._parse_error_response(400, xml_response)
    assert isinstance(exception, S3ClientError)
    assert exception.status_code == 400
    assert exception.error_code == "AuthorizationHeaderMalformed"


def test_parse_error_response_server_error(mock_client):
    exception = mock_client._parse_error_response(503, "Service Unavailable")
    assert isinstance(exception, S3ServerError)
    assert exception.status_code == 503
    assert exception.error_code == "Unknown"
    assert exception.message == "Service Unavailable"


@pytest.mark.asyncio
async def test_make_request_key_with_leading_slash(client_custom_endpoint):
    session, _ = _session_returning(200)
    client_custom_endpoint._session = session

    await client_custom_endpoint._make_request("GET", key="/dir/k")

    url = session.request.call_args.kwargs["url"]
    assert str(url) == "https://test-bucket.minio.example.com/dir/k"
