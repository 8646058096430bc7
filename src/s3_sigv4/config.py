"""Credential loading for the client and CLI. The signing functions never call it."""

import configparser
import dataclasses
import logging
import os
import pathlib
from typing import Self

logger = logging.getLogger(__name__)

DEFAULT_REGION = "us-east-1"


@dataclasses.dataclass(frozen=True)
class Credentials:
    access_key: str
    secret_key: str
    region: str = DEFAULT_REGION
    endpoint_url: str | None = None

    def __repr__(self) -> str:
        return (
            f"Credentials(access_key={self.access_key!r}, secret_key='***', "
            f"region={self.region!r}, endpoint_url={self.endpoint_url!r})"
        )

    @classmethod
    def from_env(cls, environ: dict[str, str] | None = None) -> Self:
        """Read ``S3_ACCESS``/``S3_SECRET``, falling back to the AWS variables."""
        env = os.environ if environ is None else environ

        access_key = env.get("S3_ACCESS") or env.get("AWS_ACCESS_KEY_ID")
        secret_key = env.get("S3_SECRET") or env.get("AWS_SECRET_ACCESS_KEY")
        if not access_key or not secret_key:
            raise ValueError(
                "S3_ACCESS and S3_SECRET (or AWS_ACCESS_KEY_ID and "
                "AWS_SECRET_ACCESS_KEY) must be set"
            )

        region = env.get("S3_REGION") or env.get("AWS_DEFAULT_REGION") or DEFAULT_REGION
        return cls(access_key, secret_key, region, env.get("AWS_ENDPOINT_URL"))

    @classmethod
    def from_aws_config(
        cls,
        profile_name: str = "default",
        config_path: str | pathlib.Path | None = None,
        credentials_path: str | pathlib.Path | None = None,
    ) -> Self:
        if config_path is None:
            config_path = pathlib.Path.home() / ".aws" / "config"
        else:
            config_path = pathlib.Path(config_path)

        if credentials_path is None:
            credentials_path = pathlib.Path.home() / ".aws" / "credentials"
        else:
            credentials_path = pathlib.Path(credentials_path)

        # Config file may or may not exist
        config_data = {}
        if config_path.exists():
            config = configparser.ConfigParser()
            config.read(config_path)
            # AWS config uses "profile <name>" sections except for default
            config_section = (
                profile_name if profile_name == "default" else f"profile {profile_name}"
            )
            if config_section in config:
                config_data = dict(config[config_section])

        credentials_data = {}
        if credentials_path.exists():
            credentials = configparser.ConfigParser()
            credentials.read(credentials_path)
            if profile_name in credentials:
                credentials_data = dict(credentials[profile_name])

        # credentials file takes precedence over config
        access_key = credentials_data.get("aws_access_key_id") or config_data.get(
            "aws_access_key_id"
        )
        secret_key = credentials_data.get("aws_secret_access_key") or config_data.get(
            "aws_secret_access_key"
        )

        if not access_key:
            raise ValueError(
                f"aws_access_key_id not found for profile '{profile_name}' "
                f"in config or credentials files"
            )
        if not secret_key:
            raise ValueError(
                f"aws_secret_access_key not found for profile '{profile_name}' "
                f"in config or credentials files"
            )

        region = (
            credentials_data.get("region")
            or config_data.get("region")
            or os.environ.get("AWS_DEFAULT_REGION")
            or DEFAULT_REGION
        )
        endpoint_url = credentials_data.get("endpoint_url") or config_data.get(
            "endpoint_url"
        )

        logger.debug("Loaded credentials for profile %r", profile_name)
        return cls(access_key, secret_key, region, endpoint_url)
