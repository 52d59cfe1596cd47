"""
Utility functions for the Terraform Infrastructure Verifier.
"""

import functools
import json
import logging
import time
from typing import Any, Callable, Dict, List, Optional, TypeVar, cast

from botocore.exceptions import (
    ClientError,
    ConnectionClosedError,
    ConnectTimeoutError,
    EndpointConnectionError,
    ReadTimeoutError,
)

from .errors import NotFoundError, ProvisioningError, TransientAPIError

# Error codes returned by AWS when an identifier does not resolve
NOT_FOUND_CODES = {
    "InvalidVpcID.NotFound",
    "InvalidSubnetID.NotFound",
    "InvalidGroup.NotFound",
    "InvalidGroupId.Malformed",
    "InvalidRouteTableID.NotFound",
    "InvalidInternetGatewayID.NotFound",
    "DBInstanceNotFound",
    "DBInstanceNotFoundFault",
    "CacheClusterNotFound",
    "CacheClusterNotFoundFault",
    "ResourceNotFoundException",
    "ClusterNotFoundException",
}

# Error codes that are safe to retry after a backoff
TRANSIENT_CODES = {
    "Throttling",
    "ThrottlingException",
    "ThrottledException",
    "RequestThrottled",
    "RequestThrottledException",
    "RequestLimitExceeded",
    "TooManyRequestsException",
    "ServiceUnavailable",
    "ServiceUnavailableException",
    "InternalError",
    "InternalFailure",
    "RequestTimeout",
    "RequestTimeoutException",
}

LOGGER_NAME = "infra_verifier"

TRANSIENT_EXCEPTIONS = (
    EndpointConnectionError,
    ConnectTimeoutError,
    ReadTimeoutError,
    ConnectionClosedError,
)


def setup_logging(log_level: Optional[str] = None) -> logging.Logger:
    """
    Sets up logging configuration for the verifier.

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR). When omitted,
            an already configured level is kept and a fresh logger gets INFO.

    Returns:
        Configured logger instance
    """
    logger = logging.getLogger(LOGGER_NAME)
    if log_level is not None:
        logger.setLevel(getattr(logging, log_level.upper()))
    elif logger.level == logging.NOTSET:
        logger.setLevel(logging.INFO)

    # Prevent duplicate handlers
    if not logger.handlers:
        handler = logging.StreamHandler()
        formatter = logging.Formatter(
            "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
        )
        handler.setFormatter(formatter)
        logger.addHandler(handler)

    return logger


F = TypeVar("F", bound=Callable[..., Any])


def inspector_error_handler(func: F) -> F:
    """
    Decorator that translates botocore failures raised by an inspector call.

    Identifiers that do not resolve become NotFoundError, throttling and
    connection problems become TransientAPIError. Anything else propagates
    unchanged.
    """

    @functools.wraps(func)
    def wrapper(*args: Any, **kwargs: Any) -> Any:
        logger = logging.getLogger(LOGGER_NAME)
        try:
            return func(*args, **kwargs)
        except ClientError as e:
            error = e.response.get("Error", {})
            code = error.get("Code", "")
            status = e.response.get("ResponseMetadata", {}).get("HTTPStatusCode", 0)
            if code in NOT_FOUND_CODES:
                logger.info(f"{func.__name__}: resource not found ({code})")
                raise NotFoundError(f"{func.__name__}: {error.get('Message', code)}") from e
            if code in TRANSIENT_CODES or status >= 500:
                logger.warning(f"Transient AWS error in {func.__name__}: {code}")
                raise TransientAPIError(f"{func.__name__}: {code}") from e
            logger.error(f"AWS ClientError in {func.__name__}: {e}")
            raise
        except TRANSIENT_EXCEPTIONS as e:
            logger.warning(f"Connection error in {func.__name__}: {e}")
            raise TransientAPIError(f"{func.__name__}: {e}") from e

    return cast(F, wrapper)


def retry_on_transient(
    func: Callable[[], Any],
    max_attempts: int = 3,
    timeout_seconds: float = 120.0,
    base_delay: float = 1.0,
    logger: Optional[logging.Logger] = None,
) -> Any:
    """
    Calls func, retrying on TransientAPIError with exponential backoff.

    Args:
        func: Zero-argument callable to invoke
        max_attempts: Maximum number of calls, including the first
        timeout_seconds: Overall deadline across all attempts
        base_delay: Delay before the second attempt, doubled each retry
        logger: Logger instance for retry messages

    Returns:
        Whatever func returns

    Raises:
        TransientAPIError: If every attempt failed or the deadline passed
    """
    if logger is None:
        logger = setup_logging()

    deadline = time.monotonic() + timeout_seconds
    attempt = 1
    while True:
        try:
            return func()
        except TransientAPIError as e:
            if attempt >= max_attempts:
                logger.error(f"Giving up after {attempt} attempts: {e}")
                raise
            delay = base_delay * (2 ** (attempt - 1))
            if time.monotonic() + delay > deadline:
                logger.error(f"Retry deadline of {timeout_seconds}s exceeded: {e}")
                raise
            logger.warning(
                f"Attempt {attempt}/{max_attempts} failed: {e} (backoff {delay:.1f}s)"
            )
            time.sleep(delay)
            attempt += 1


def parse_terraform_output(
    output_content: str, logger: Optional[logging.Logger] = None
) -> Dict[str, Any]:
    """
    Parses `terraform output -json` content into a name -> value dict.

    Args:
        output_content: Raw JSON printed by Terraform
        logger: Logger instance for error logging

    Returns:
        Dictionary mapping output names to their values

    Raises:
        ProvisioningError: If the content is not valid Terraform output JSON
    """
    if logger is None:
        logger = setup_logging()

    try:
        raw = json.loads(output_content or "{}")
    except json.JSONDecodeError as e:
        logger.error(f"Invalid JSON from terraform output: {e}")
        raise ProvisioningError(f"Invalid JSON from terraform output: {e}")
    if not isinstance(raw, dict):
        raise ProvisioningError("terraform output did not parse to a dictionary.")

    outputs = {}
    for name, entry in raw.items():
        if isinstance(entry, dict) and "value" in entry:
            outputs[name] = entry["value"]
        else:
            outputs[name] = entry
    logger.debug(f"Parsed {len(outputs)} Terraform outputs")
    return outputs


def parse_plan_changes(
    plan_content: str, logger: Optional[logging.Logger] = None
) -> List[Dict[str, Any]]:
    """
    Extracts the resource changes from `terraform show -json <planfile>`.

    Resources whose only action is "no-op" or "read" are left out.

    Args:
        plan_content: Raw JSON plan representation
        logger: Logger instance for error logging

    Returns:
        List of {"address": str, "actions": list} entries

    Raises:
        ProvisioningError: If the content is not valid JSON
    """
    if logger is None:
        logger = setup_logging()

    try:
        plan = json.loads(plan_content or "{}")
    except json.JSONDecodeError as e:
        logger.error(f"Invalid JSON plan: {e}")
        raise ProvisioningError(f"Invalid JSON plan: {e}")

    changes = []
    for resource_change in plan.get("resource_changes", []) or []:
        actions = resource_change.get("change", {}).get("actions", [])
        if not actions or set(actions) <= {"no-op", "read"}:
            continue
        changes.append({"address": resource_change.get("address", "unknown"), "actions": actions})
    return changes
