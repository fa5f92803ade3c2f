"""boto3 client setup for the S3 output sink."""

import logging
from typing import Any, Dict

import boto3
from botocore.config import Config

from .settings import AWSConfig

logger = logging.getLogger(__name__)

# Credentials LocalStack accepts for any account
LOCALSTACK_CREDENTIALS = {
    'aws_access_key_id': 'test',
    'aws_secret_access_key': 'test',
}


class AWSClientManager:
    """
    Builds and caches the S3 client the record writer uploads through.

    Retry and timeout behaviour comes from ``AWSConfig`` and applies to both
    real AWS and a LocalStack endpoint.
    """

    def __init__(self, aws_config: AWSConfig):
        self.config = aws_config
        self._s3_client = None
        self._boto_config = Config(
            region_name=aws_config.region,
            retries={
                'max_attempts': aws_config.max_attempts,
                'mode': 'adaptive'
            },
            connect_timeout=aws_config.connect_timeout_seconds,
            read_timeout=aws_config.read_timeout_seconds
        )

    @property
    def uses_localstack(self) -> bool:
        return bool(self.config.localstack_endpoint)

    def client_kwargs(self) -> Dict[str, Any]:
        """Keyword arguments for ``boto3.client('s3', ...)``."""
        kwargs: Dict[str, Any] = {
            'region_name': self.config.region,
            'config': self._boto_config,
        }
        if self.uses_localstack:
            kwargs['endpoint_url'] = self.config.localstack_endpoint
            kwargs.update(LOCALSTACK_CREDENTIALS)
        return kwargs

    @property
    def s3_client(self):
        """Get or create S3 client."""
        if self._s3_client is None:
            self._s3_client = boto3.client('s3', **self.client_kwargs())
            if self.uses_localstack:
                logger.info(f"Created LocalStack S3 client: {self.config.localstack_endpoint}")
            else:
                logger.info(f"Created AWS S3 client in region: {self.config.region}")
        return self._s3_client
