import datetime as dt
from typing import Any

from .auth import UNSIGNED_PAYLOAD
from .base import _S3ClientBase
from .urlparsing import join_key

_META_PREFIX = "x-amz-meta-"


def _metadata_from_headers(headers) -> dict[str, str]:
    metadata = {}
    for header_name, header_value in headers.items():
        if header_name.lower().startswith(_META_PREFIX):
            metadata[header_name[len(_META_PREFIX) :]] = header_value
    return metadata


class _ObjectOperations(_S3ClientBase):
    async def put_object(
        self,
        key: str,
        data: bytes,
        content_type: str | None = None,
        metadata: dict[str, str] | None = None,
        payload_hash: str = UNSIGNED_PAYLOAD,
    ) -> dict[str, Any]:
        """Upload ``data``; ``payload_hash`` is sent and signed as given."""
        headers = {}

        if content_type:
            headers["Content-Type"] = content_type

        if metadata:
            for key_name, value in metadata.items():
                headers[f"{_META_PREFIX}{key_name}"] = value

        headers["Content-Length"] = str(len(data))

        response = await self._make_request(
            "PUT", key=key, headers=headers, data=data, payload_hash=payload_hash
        )

        result = {
            "etag": response.headers.get("ETag", "").strip('"'),
            "version_id": response.headers.get("x-amz-version-id"),
        }

        response.close()
        return result

    async def get_object(self, key: str) -> dict[str, Any]:
        response = await self._make_request("GET", key=key)

        body = await response.read()
        response.close()

        return {
            "body": body,
            "content_type": response.headers.get("Content-Type"),
            "content_length": int(response.headers.get("Content-Length", 0)),
            "etag": response.headers.get("ETag", "").strip('"'),
            "last_modified": response.headers.get("Last-Modified"),
            "version_id": response.headers.get("x-amz-version-id"),
            "metadata": _metadata_from_headers(response.headers),
        }

    async def head_object(self, key: str) -> dict[str, Any]:
        """Get object metadata without downloading the object."""
        response = await self._make_request("HEAD", key=key)

        result = {
            "content_type": response.headers.get("Content-Type"),
            "content_length": int(response.headers.get("Content-Length", 0)),
            "etag": response.headers.get("ETag", "").strip('"'),
            "last_modified": response.headers.get("Last-Modified"),
            "version_id": response.headers.get("x-amz-version-id"),
            "metadata": _metadata_from_headers(response.headers),
        }

        response.close()
        return result

    def generate_presigned_url(
        self,
        method: str,
        key: str,
        expires_in: int = 3600,
        date_time: dt.datetime | None = None,
    ) -> str:
        url = join_key(self.bucket_url, key)
        return self._auth.create_presigned_url(method, url, expires_in, date_time)
