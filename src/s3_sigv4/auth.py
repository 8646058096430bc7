"""AWS Signature Version 4 authentication for S3.

Reference: https://docs.aws.amazon.com/AmazonS3/latest/API/sigv4-query-string-auth.html

Two quirks are kept for compatibility with existing S3 deployments signed by
this code: the path of a header-signed request is lower-cased before
canonicalization, and a repeated query key keeps only its last value.
"""

import dataclasses
import datetime as dt
import hashlib
import hmac
import logging
import urllib.parse
from collections.abc import Mapping

from yarl import URL

from .exceptions import HashingError
from .urlparsing import host_header, parse_url

logger = logging.getLogger(__name__)

ALGORITHM = "AWS4-HMAC-SHA256"
UNSIGNED_PAYLOAD = "UNSIGNED-PAYLOAD"
LONG_DATETIME_FMT = "%Y%m%dT%H%M%SZ"
SHORT_DATE_FMT = "%Y%m%d"


@dataclasses.dataclass(frozen=True)
class Signature:
    """Authorization header and the ``x-amz-date`` it was computed with.

    Both values must be sent; the header alone does not verify.
    """

    auth_header: str
    date_time: str

    def headers(self, payload_hash: str) -> dict[str, str]:
        return {
            "Authorization": self.auth_header,
            "x-amz-date": self.date_time,
            "x-amz-content-sha256": payload_hash,
        }


def _to_utc(date_time: dt.datetime) -> dt.datetime:
    if date_time.tzinfo is None:
        return date_time.replace(tzinfo=dt.UTC)
    return date_time.astimezone(dt.UTC)


def _sha256_hash(data: bytes) -> str:
    return hashlib.sha256(data).hexdigest()


def _hmac_sha256(key: bytes, data: str, stage: str) -> bytes:
    try:
        return hmac.new(key, data.encode("utf-8"), hashlib.sha256).digest()
    except (TypeError, ValueError) as e:
        raise HashingError(f"error hashing {stage}") from e


def url_encode(value: str) -> str:
    # AWS requires ALL characters to be encoded except unreserved ones
    return urllib.parse.quote(value, safe="")


def _signable_headers(headers: Mapping[str, str]) -> list[tuple[str, str]]:
    signable = {}
    for name, value in headers.items():
        name = name.lower()
        if name == "host" or name.startswith("x-amz-"):
            signable[name] = value.strip()
    return sorted(signable.items())


def canonical_query_string(url: URL | str) -> str:
    """Sorted ``key=value`` pairs, both sides percent-encoded.

    Repeated keys are not supported: the last occurrence wins.
    """
    url = parse_url(url)
    params = {}
    for key, value in url.query.items():
        params[url_encode(key)] = url_encode(value)
    return "&".join(f"{k}={v}" for k, v in sorted(params.items()))


def canonical_header_string(headers: Mapping[str, str]) -> str:
    return "\n".join(f"{name}:{value}" for name, value in _signable_headers(headers))


def signed_header_string(headers: Mapping[str, str]) -> str:
    return ";".join(name for name, _ in _signable_headers(headers))


def canonical_request(
    method: str,
    url: URL | str,
    headers: Mapping[str, str],
    payload_hash: str,
) -> str:
    url = parse_url(url)
    return "\n".join(
        [
            method.upper(),
            (url.raw_path or "/").lower(),
            canonical_query_string(url),
            canonical_header_string(headers),
            "",
            signed_header_string(headers),
            payload_hash,
        ]
    )


def scope_string(date_time: dt.datetime, region: str, service: str = "s3") -> str:
    date_stamp = _to_utc(date_time).strftime(SHORT_DATE_FMT)
    return f"{date_stamp}/{region}/{service}/aws4_request"


def string_to_sign(date_time: dt.datetime, scope: str, canonical_req: str) -> str:
    return "\n".join(
        [
            ALGORITHM,
            _to_utc(date_time).strftime(LONG_DATETIME_FMT),
            scope,
            _sha256_hash(canonical_req.encode("utf-8")),
        ]
    )


def signing_key(
    date_time: dt.datetime, secret_key: str, region: str, service: str
) -> bytes:
    """Derive the 32 byte key for one (date, region, service, secret) scope.

    The key does not depend on the request, so it can be reused for every
    request sharing that scope on the same UTC day.
    """
    date_stamp = _to_utc(date_time).strftime(SHORT_DATE_FMT)
    k_date = _hmac_sha256(f"AWS4{secret_key}".encode(), date_stamp, "secret")
    k_region = _hmac_sha256(k_date, region, "date")
    k_service = _hmac_sha256(k_region, service, "region")
    k_signing = _hmac_sha256(k_service, "aws4_request", "service")
    return k_signing


def _hex_signature(key: bytes, message: str) -> str:
    return _hmac_sha256(key, message, "signing key").hex()


def authorization_header(
    access_key: str,
    date_time: dt.datetime,
    region: str,
    signed_headers: str,
    signature: str,
    service: str = "s3",
) -> str:
    scope = scope_string(date_time, region, service)
    return (
        f"{ALGORITHM} "
        f"Credential={access_key}/{scope},"
        f"SignedHeaders={signed_headers},"
        f"Signature={signature}"
    )


def sign(
    method: str,
    payload_hash: str,
    url: URL | str,
    headers: Mapping[str, str],
    date_time: dt.datetime,
    secret: str,
    region: str,
    service: str,
) -> str:
    """Return the hex signature of a request signed through its headers."""
    canonical = canonical_request(method, url, headers, payload_hash)
    to_sign = string_to_sign(
        date_time, scope_string(date_time, region, service), canonical
    )
    logger.debug("Canonical request:\n%s", canonical)
    logger.debug("String to sign:\n%s", to_sign)

    key = signing_key(date_time, secret, region, service)
    return _hex_signature(key, to_sign)


def signature(
    url: URL | str,
    method: str,
    access: str,
    secret: str,
    region: str,
    service: str,
    payload_hash: str,
    *,
    headers: Mapping[str, str] | None = None,
    date_time: dt.datetime | None = None,
) -> Signature:
    """Sign a request and return the values the caller must attach to it.

    ``host``, ``x-amz-content-sha256`` and ``x-amz-date`` are always signed.
    Extra ``x-amz-*`` entries in ``headers`` are signed too and must be sent
    unchanged; any other header is ignored.
    """
    url = parse_url(url)
    if date_time is None:
        date_time = dt.datetime.now(dt.UTC)
    date_time = _to_utc(date_time)
    timestamp = date_time.strftime(LONG_DATETIME_FMT)

    signed = dict(headers or {})
    signed["host"] = host_header(url)
    signed["x-amz-content-sha256"] = payload_hash
    signed["x-amz-date"] = timestamp

    hex_signature = sign(
        method, payload_hash, url, signed, date_time, secret, region, service
    )
    auth = authorization_header(
        access,
        date_time,
        region,
        signed_header_string(signed),
        hex_signature,
        service,
    )
    return Signature(auth_header=auth, date_time=timestamp)


def pre_signed_url(
    access: str,
    secret: str,
    expiration: int,
    url: URL | str,
    method: str,
    payload_hash: str,
    region: str,
    date_time: dt.datetime | None = None,
    service: str = "s3",
) -> str:
    """Return ``url`` with its authorization embedded in the query string.

    Only ``host`` is signed, whatever the method. Query parameters already on
    ``url`` are merged in, but never replace the ``X-Amz-*`` signing
    parameters. The expiration is not range checked.
    """
    url = parse_url(url)
    host = host_header(url)
    if date_time is None:
        date_time = dt.datetime.now(dt.UTC)
    date_time = _to_utc(date_time)

    scope = scope_string(date_time, region, service)
    params = {
        "X-Amz-Algorithm": ALGORITHM,
        "X-Amz-Credential": f"{access}/{scope}",
        "X-Amz-Date": date_time.strftime(LONG_DATETIME_FMT),
        "X-Amz-Expires": str(expiration),
        "X-Amz-SignedHeaders": "host",
    }
    # last copy of a repeated caller key wins, the signing keys are never replaced
    for key, value in dict(url.query.items()).items():
        params.setdefault(key, value)

    query_string = "&".join(
        f"{url_encode(k)}={url_encode(v)}" for k, v in sorted(params.items())
    )
    canonical = "\n".join(
        [
            method.upper(),
            url.raw_path or "/",
            query_string,
            f"host:{host}",
            "",
            "host",
            payload_hash,
        ]
    )
    to_sign = string_to_sign(date_time, scope, canonical)
    logger.debug("Canonical request:\n%s", canonical)
    logger.debug("String to sign:\n%s", to_sign)

    key = signing_key(date_time, secret, region, service)
    hex_signature = _hex_signature(key, to_sign)

    base_url = url.with_query(None).with_fragment(None)
    return f"{base_url}?{query_string}&X-Amz-Signature={hex_signature}"


class AWSSignatureV4:
    def __init__(
        self,
        access_key: str,
        secret_key: str,
        region: str = "us-east-1",
        service: str = "s3",
    ):
        self.access_key = access_key
        self.secret_key = secret_key
        self.region = region
        self.service = service

    def sign_request(
        self,
        method: str,
        url: URL | str,
        headers: dict[str, str] | None = None,
        payload_hash: str = UNSIGNED_PAYLOAD,
        date_time: dt.datetime | None = None,
    ) -> dict[str, str]:
        """Return a copy of ``headers`` with the signing headers added."""
        url = parse_url(url)
        headers = {k: v for k, v in (headers or {}).items() if k.lower() != "host"}
        sig = signature(
            url,
            method,
            self.access_key,
            self.secret_key,
            self.region,
            self.service,
            payload_hash,
            headers=headers,
            date_time=date_time,
        )
        headers["host"] = host_header(url)
        headers.update(sig.headers(payload_hash))
        return headers

    def create_presigned_url(
        self,
        method: str,
        url: URL | str,
        expires_in: int = 3600,
        date_time: dt.datetime | None = None,
        payload_hash: str = UNSIGNED_PAYLOAD,
    ) -> str:
        return pre_signed_url(
            self.access_key,
            self.secret_key,
            expires_in,
            url,
            method,
            payload_hash,
            self.region,
            date_time,
            self.service,
        )
