import logging
import pathlib
import xml.etree.ElementTree as ET
from typing import Self

import aiohttp
from yarl import URL

from .auth import UNSIGNED_PAYLOAD, AWSSignatureV4
from .config import Credentials
from .exceptions import (
    S3AccessDeniedError,
    S3ClientError,
    S3InvalidRequestError,
    S3NotFoundError,
    S3ServerError,
)
from .urlparsing import AddressStyle, get_bucket_url, join_key

logger = logging.getLogger(__name__)


class _S3ClientBase:
    def __init__(
        self,
        access_key: str,
        secret_key: str,
        region: str,
        endpoint_url: URL | str | None,
        bucket: str,
        address_style: AddressStyle = AddressStyle.AUTO,
    ):
        if endpoint_url is None:
            endpoint_url = f"https://s3.{region}.amazonaws.com"

        self.access_key = access_key
        self.secret_key = secret_key
        self.region = region
        self.endpoint_url = URL(endpoint_url)
        self.bucket_url = get_bucket_url(self.endpoint_url, bucket, address_style)

        self._auth = AWSSignatureV4(access_key, secret_key, region)
        self._session: aiohttp.ClientSession | None = None

    @classmethod
    def from_credentials(
        cls,
        credentials: Credentials,
        bucket: str,
        address_style: AddressStyle = AddressStyle.AUTO,
    ) -> Self:
        return cls(
            credentials.access_key,
            credentials.secret_key,
            credentials.region,
            credentials.endpoint_url,
            bucket,
            address_style,
        )

    @classmethod
    def from_aws_config(
        cls,
        bucket: str,
        profile_name: str = "default",
        config_path: str | pathlib.Path | None = None,
        credentials_path: str | pathlib.Path | None = None,
    ) -> Self:
        credentials = Credentials.from_aws_config(
            profile_name, config_path, credentials_path
        )
        return cls.from_credentials(credentials, bucket)

    async def __aenter__(self):
        await self._ensure_session()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()

    async def _ensure_session(self):
        if self._session is None:
            self._session = aiohttp.ClientSession()

    async def close(self):
        if self._session:
            await self._session.close()
            self._session = None

    def _parse_error_response(self, status: int, response_text: str) -> Exception:
        try:
            root = ET.fromstring(response_text)
            error_code = root.find("Code")
            message = root.find("Message")

            error_code_text = error_code.text if error_code is not None else "Unknown"
            message_text = message.text if message is not None else "Unknown error"

        except ET.ParseError:
            error_code_text = "Unknown"
            message_text = response_text or "Unknown error"

        if status == 404 or error_code_text in ["NoSuchKey", "NoSuchBucket"]:
            return S3NotFoundError(message_text)
        elif status == 403 or error_code_text == "AccessDenied":
            return S3AccessDeniedError(message_text)
        elif error_code_text == "InvalidRequest":
            return S3InvalidRequestError(message_text)
        elif 400 <= status < 500:
            return S3ClientError(message_text, status, error_code_text)
        else:
            return S3ServerError(message_text, status, error_code_text)

    async def _make_request(
        self,
        method: str,
        key: str,
        headers: dict[str, str] | None = None,
        data: bytes | None = None,
        payload_hash: str = UNSIGNED_PAYLOAD,
    ) -> aiohttp.ClientResponse:
        await self._ensure_session()

        url = join_key(self.bucket_url, key)
        signed_headers = self._auth.sign_request(
            method=method,
            url=url,
            headers=headers,
            payload_hash=payload_hash,
        )
        logger.debug("%s %s", method, url)

        response = await self._session.request(
            method=method,
            url=url,
            headers=signed_headers,
            data=data,
        )

        if response.status >= 400:
            error_text = await response.text()
            response.close()
            raise self._parse_error_response(response.status, error_text)

        return response
