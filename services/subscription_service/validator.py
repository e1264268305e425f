"""
Forwarder Validation
====================
Before any subscription is planned, the forwarder has to exist: a filter
pointing at a missing function fails the whole stack deploy, so it is
better to stop at packaging time.

Validation is skipped (with an advisory warning) when:
  - the destination is a CloudFormation intrinsic, whose value is unknown
    until deployment, or
  - integrationTesting is on, where no real forwarder is deployed.
"""
from __future__ import annotations

import logging

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from shared.config import ForwarderConfig
from shared.resources import Destination, is_intrinsic

logger = logging.getLogger(__name__)

SKIPPED_INTRINSIC = (
    "Skipping forwarder ARN validation because forwarder string defined with CloudFormation function."
)
SKIPPED_INTEGRATION_TESTING = (
    "Skipping forwarder ARN validation because 'integrationTesting' is set to true"
)


class ForwarderNotFoundError(Exception):
    """The forwarder function could not be found. Fatal for the whole pass."""

    def __init__(self, destination: str):
        self.destination = destination
        super().__init__(f"Could not perform GetFunction on {destination}.")


def validate_forwarder(
    destination: Destination,
    config: ForwarderConfig,
    lambda_client=None,
) -> list[str]:
    """
    Confirm the forwarder exists. Returns advisory warnings for skipped checks.
    Raises ForwarderNotFoundError if GetFunction fails for any reason.
    """
    if is_intrinsic(destination):
        return [SKIPPED_INTRINSIC]
    if config.integration_testing is True:
        return [SKIPPED_INTEGRATION_TESTING]

    try:
        client = lambda_client or boto3.client("lambda")
        client.get_function(FunctionName=destination)
    except (ClientError, BotoCoreError) as e:
        logger.error("Forwarder lookup failed for %s: %s", destination, e)
        raise ForwarderNotFoundError(destination) from e

    logger.info("Forwarder %s exists", destination)
    return []
