"""AWS Signature Version 4 signing and pre-signed URLs for S3-compatible storage."""

__version__ = "0.1.0"

from .auth import (
    UNSIGNED_PAYLOAD,
    AWSSignatureV4,
    Signature,
    authorization_header,
    pre_signed_url,
    sign,
    signature,
)
from .client import S3Client
from .config import Credentials
from .exceptions import (
    HashingError,
    MissingHostError,
    S3AccessDeniedError,
    S3ClientError,
    S3Error,
    S3InvalidRequestError,
    S3NotFoundError,
    S3ServerError,
    SigningError,
    URLParseError,
)

__all__ = [
    "UNSIGNED_PAYLOAD",
    "AWSSignatureV4",
    "Signature",
    "authorization_header",
    "pre_signed_url",
    "sign",
    "signature",
    "S3Client",
    "Credentials",
    "S3Error",
    "SigningError",
    "URLParseError",
    "MissingHostError",
    "HashingError",
    "S3ClientError",
    "S3ServerError",
    "S3NotFoundError",
    "S3AccessDeniedError",
    "S3InvalidRequestError",
]
