import enum
import re

from yarl import URL

from .exceptions import MissingHostError, URLParseError


class AddressStyle(enum.Enum):
    AUTO = "auto"
    VIRTUAL_HOSTED = "virtual-hosted"
    PATH_STYLE = "path-style"


def parse_url(url: URL | str) -> URL:
    if isinstance(url, URL):
        return url
    try:
        return URL(url)
    except (TypeError, ValueError) as e:
        raise URLParseError(f"error parsing url '{url}'") from e


def host_header(url: URL) -> str:
    """Value of the ``host`` header as the server sees it.

    The port is only included when it is explicit and not the scheme default.
    """
    host = url.raw_host
    if not host:
        raise MissingHostError(f"Error parsing host from url '{url}'")
    if ":" in host:
        host = f"[{host}]"
    if url.explicit_port is not None and not url.is_default_port():
        host = f"{host}:{url.explicit_port}"
    return host


def get_bucket_url(
    url: URL, bucket: str, address_style: AddressStyle = AddressStyle.AUTO
) -> URL:
    """Constructs a valid bucket URL from the endpoint URL and bucket name.

    If the bucket name is already part of the endpoint host, the endpoint is
    returned as is. Otherwise the bucket goes into the path or becomes a
    subdomain, depending on whether it is a valid DNS label.
    """
    bucket = bucket.strip("/")

    if url.scheme not in ("http", "https") or not url.host:
        raise ValueError(f"Invalid endpoint URL '{url}'. Must be an HTTP(S) URL.")
    if url.host.startswith(bucket + ".") and url.path.endswith(bucket):
        raise ValueError(
            f"Bucket '{bucket}' is both in the host and path part of the URL '{url}'. "
        )

    is_valid_host = is_valid_s3_bucket_subdomain(bucket)

    virtual_hosted_style = (
        url
        if url.host.startswith(bucket + ".")
        else url.with_host(f"{bucket}.{url.host}")
    )
    # MinIO and other single-host deployments
    path_style = url.with_path(bucket)

    match address_style:
        case AddressStyle.AUTO:
            return virtual_hosted_style if is_valid_host else path_style
        case AddressStyle.VIRTUAL_HOSTED:
            if is_valid_host:
                return virtual_hosted_style
        case AddressStyle.PATH_STYLE:
            return path_style

    raise ValueError(f"Invalid bucket name '{bucket}' for endpoint URL '{url}'")


def join_key(bucket_url: URL, key: str) -> URL:
    return bucket_url / key.lstrip("/")


def object_url(
    endpoint: URL | str,
    bucket: str,
    key: str,
    address_style: AddressStyle = AddressStyle.AUTO,
) -> URL:
    bucket_url = get_bucket_url(parse_url(endpoint), bucket, address_style)
    return join_key(bucket_url, key)


def is_valid_s3_bucket_subdomain(bucket: str) -> bool:
    """S3-specific subdomain validation (stricter than general DNS)."""
    if not bucket or len(bucket) < 3 or len(bucket) > 63:
        return False

    if not re.match(r"^[a-z0-9.-]+$", bucket):
        return False

    if bucket[0] in "-." or bucket[-1] in "-.":
        return False

    if ".." in bucket or ".-" in bucket or "-." in bucket:
        return False

    # Cannot look like IP address
    if re.match(r"^\d+\.\d+\.\d+\.\d+$", bucket):
        return False

    return True
