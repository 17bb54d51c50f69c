"""Secrets from AWS SSM Parameter Store.

Parameters live under ``/trek/{environment}/...``; the only one read today is
the Stripe secret key (``/trek/{env}/stripe/secret_key``). Values are fetched
with decryption and kept in memory for the life of the process.
"""

import logging
from functools import lru_cache

import boto3
from botocore.exceptions import ClientError

logger = logging.getLogger(__name__)

PARAMETER_ROOT = "/trek"


class SSMServiceError(Exception):
    """Raised when SSM parameter retrieval fails."""


def parameter_path(environment: str, *parts: str) -> str:
    """Build the parameter name for an environment.

    >>> parameter_path("dev", "stripe", "secret_key")
    '/trek/dev/stripe/secret_key'
    """
    return "/".join([PARAMETER_ROOT, environment, *parts])


class SSMService:
    """Cached reader for SecureString parameters."""

    def __init__(self, client=None) -> None:
        self._client = client or boto3.client("ssm")
        self._cache: dict[str, str] = {}

    def get_parameter(self, name: str, *, use_cache: bool = True) -> str:
        """Retrieve a decrypted parameter value.

        Args:
            name: Full parameter name, see parameter_path()
            use_cache: Return a previously fetched value if there is one

        Returns:
            The parameter value

        Raises:
            SSMServiceError: If the parameter is missing, access is denied or
                the call fails
        """
        if use_cache and name in self._cache:
            return self._cache[name]

        logger.info("Fetching SSM parameter: %s", name)
        try:
            response = self._client.get_parameter(Name=name, WithDecryption=True)
        except ClientError as e:
            code = e.response.get("Error", {}).get("Code", "Unknown")
            if code == "ParameterNotFound":
                raise SSMServiceError(f"SSM parameter not found: {name}") from e
            if code == "AccessDeniedException":
                raise SSMServiceError(
                    f"Access denied to SSM parameter {name}; the role needs ssm:GetParameter"
                ) from e
            raise SSMServiceError(f"Failed to retrieve SSM parameter {name}: {e}") from e

        value = response["Parameter"]["Value"]
        self._cache[name] = value
        return value

    def clear_cache(self) -> None:
        self._cache.clear()


@lru_cache(maxsize=1)
def get_ssm_service() -> SSMService:
    """Get the process-wide SSMService."""
    return SSMService()
