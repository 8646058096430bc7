#!/usr/bin/env python3
"""Command line front end: pre-sign URLs, print signing headers, move objects."""

import asyncio
import dataclasses
import datetime as dt
import json
import logging
import sys

import aiohttp
import click

from .auth import UNSIGNED_PAYLOAD, pre_signed_url, signature
from .client import S3Client
from .config import Credentials
from .exceptions import S3Error

_TRANSPORT_ERRORS = (S3Error, ValueError, aiohttp.ClientError)


def _parse_date_time(ctx, param, value):
    if value is None:
        return None
    try:
        return dt.datetime.fromisoformat(value)
    except ValueError:
        raise click.BadParameter(
            'invalid date format, should be "YYYY-MM-DDTHH:MM:SSZ"'
        ) from None


def _fail(message) -> None:
    click.echo(f"Error: {message}", err=True)
    sys.exit(1)


@click.group()
@click.option("--config-file", help="Path to AWS config file")
@click.option("--credentials-file", help="Path to AWS credentials file")
@click.option("--profile", default="default", help="AWS profile name")
@click.option("--region", help="Region, overrides the configured one")
@click.option("--endpoint-url", help="S3 endpoint, overrides the configured one")
@click.option("-v", "--verbose", is_flag=True, help="Log canonical requests")
@click.pass_context
def cli(ctx, config_file, credentials_file, profile, region, endpoint_url, verbose):
    """Sign S3 requests with AWS Signature Version 4.

    Credentials are read from S3_ACCESS and S3_SECRET unless a config file is
    given.
    """
    ctx.ensure_object(dict)
    if verbose:
        logging.basicConfig(level=logging.DEBUG)

    ctx.obj.update(
        config_file=config_file,
        credentials_file=credentials_file,
        profile=profile,
        region=region,
        endpoint_url=endpoint_url,
    )


def _credentials(ctx) -> Credentials:
    """Load credentials on first use so that subcommand --help needs none."""
    options = ctx.obj
    if "credentials" in options:
        return options["credentials"]

    try:
        if options["config_file"] or options["credentials_file"]:
            credentials = Credentials.from_aws_config(
                options["profile"], options["config_file"], options["credentials_file"]
            )
        else:
            credentials = Credentials.from_env()
    except (FileNotFoundError, ValueError) as e:
        _fail(e)

    overrides = {}
    if options["region"]:
        overrides["region"] = options["region"]
    if options["endpoint_url"]:
        overrides["endpoint_url"] = options["endpoint_url"]
    options["credentials"] = dataclasses.replace(credentials, **overrides)
    return options["credentials"]


@cli.command()
@click.argument("url")
@click.argument("method")
@click.argument("expiration", type=click.IntRange(min=0))
@click.option("--service", default="s3", show_default=True)
@click.option(
    "--date-time",
    callback=_parse_date_time,
    help="Signing time as RFC 3339, defaults to now",
)
@click.pass_context
def presign(ctx, url, method, expiration, service, date_time):
    """Print a pre-signed URL valid for EXPIRATION seconds."""
    credentials = _credentials(ctx)
    try:
        signed_url = pre_signed_url(
            credentials.access_key,
            credentials.secret_key,
            expiration,
            url,
            method,
            UNSIGNED_PAYLOAD,
            credentials.region,
            date_time,
            service,
        )
    except S3Error as e:
        _fail(e)

    click.echo(signed_url)


@cli.command()
@click.argument("url")
@click.argument("method")
@click.option("--payload-hash", default=UNSIGNED_PAYLOAD, show_default=True)
@click.option("--service", default="s3", show_default=True)
@click.pass_context
def sign(ctx, url, method, payload_hash, service):
    """Print the headers that authorize a request."""
    credentials = _credentials(ctx)
    try:
        sig = signature(
            url,
            method,
            credentials.access_key,
            credentials.secret_key,
            credentials.region,
            service,
            payload_hash,
        )
    except S3Error as e:
        _fail(e)

    for name, value in sig.headers(payload_hash).items():
        click.echo(f"{name}: {value}")


@cli.command()
@click.argument("file_path", type=click.Path(exists=True, dir_okay=False))
@click.argument("bucket")
@click.argument("key")
@click.option("--content-type", help="Content type of the object")
@click.option("--metadata", help="JSON string of metadata key-value pairs")
@click.pass_context
def upload(ctx, file_path, bucket, key, content_type, metadata):
    """Upload a file."""
    metadata_dict = None
    if metadata:
        try:
            metadata_dict = json.loads(metadata)
        except json.JSONDecodeError:
            _fail("Invalid JSON in metadata")

    with open(file_path, "rb") as f:
        data = f.read()

    credentials = _credentials(ctx)

    async def _upload():
        client = S3Client.from_credentials(credentials, bucket)
        async with client:
            return await client.put_object(
                key=key,
                data=data,
                content_type=content_type,
                metadata=metadata_dict,
            )

    try:
        result = asyncio.run(_upload())
    except _TRANSPORT_ERRORS as e:
        _fail(e)

    click.echo(f"ETag: {result['etag']}")


@cli.command()
@click.argument("bucket")
@click.argument("key")
@click.argument("output_path", type=click.Path(dir_okay=False))
@click.pass_context
def download(ctx, bucket, key, output_path):
    """Download an object to a file."""
    credentials = _credentials(ctx)

    async def _download():
        client = S3Client.from_credentials(credentials, bucket)
        async with client:
            return await client.get_object(key=key)

    try:
        result = asyncio.run(_download())
    except _TRANSPORT_ERRORS as e:
        _fail(e)

    with open(output_path, "wb") as f:
        f.write(result["body"])

    click.echo(f"Content Length: {result['content_length']} bytes")
    click.echo(f"ETag: {result['etag']}")


@cli.command()
@click.argument("bucket")
@click.argument("key")
@click.pass_context
def head(ctx, bucket, key):
    """Get object metadata without downloading."""
    credentials = _credentials(ctx)

    async def _head():
        client = S3Client.from_credentials(credentials, bucket)
        async with client:
            return await client.head_object(key=key)

    try:
        result = asyncio.run(_head())
    except _TRANSPORT_ERRORS as e:
        _fail(e)

    click.echo(f"Object: s3://{bucket}/{key}")
    click.echo(f"Content Type: {result.get('content_type') or 'N/A'}")
    click.echo(f"Content Length: {result['content_length']} bytes")
    click.echo(f"ETag: {result['etag']}")
    click.echo(f"Last Modified: {result.get('last_modified') or 'N/A'}")

    if result["metadata"]:
        click.echo("Metadata:")
        for k, v in result["metadata"].items():
            click.echo(f"  {k}: {v}")


if __name__ == "__main__":
    cli()
