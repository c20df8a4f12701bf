"""boto3 session and client construction from AwsConfig."""

from __future__ import annotations

from typing import Any

import boto3
import structlog
from botocore.config import Config
from botocore.exceptions import ProfileNotFound

from stream_harness.config.models import AwsConfig
from stream_harness.errors import ConfigurationError

logger = structlog.get_logger()


def client_config(aws: AwsConfig) -> Config:
    """Build the botocore client config: proxy and SDK retry cap."""
    kwargs: dict[str, Any] = {
        "retries": {"mode": "standard", "total_max_attempts": aws.sdk_max_attempts},
    }
    proxy = aws.proxy_url
    if proxy is not None:
        kwargs["proxies"] = {"http": proxy, "https": proxy}
    return Config(**kwargs)


def build_session(aws: AwsConfig) -> boto3.Session:
    """Create a boto3 session for the configured profile and region."""
    try:
        session = boto3.Session(profile_name=aws.profile, region_name=aws.region)
    except ProfileNotFound as exc:
        msg = f"AWS profile '{aws.profile}' not found"
        raise ConfigurationError(msg) from exc
    logger.debug(
        "aws.session_created",
        profile=aws.profile or "default",
        region=aws.region,
        proxy=aws.proxy_url,
    )
    return session


def build_client(service: str, aws: AwsConfig, session: boto3.Session | None = None):  # noqa: ANN201
    """Create a low-level boto3 client for *service* ("kinesis", "dynamodb")."""
    session = session or build_session(aws)
    return session.client(
        service,
        region_name=aws.region,
        endpoint_url=aws.endpoint_url,
        config=client_config(aws),
    )
