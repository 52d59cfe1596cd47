"""
Error Types for the Terraform Infrastructure Verifier.

Every failure raised by the driver, inspector or assertion engine derives from
VerificationError so the scenario runner can convert it into a failed result
without stopping sibling scenarios.
"""

from typing import Optional, Sequence


class VerificationError(Exception):
    """Base class for all verifier errors."""


class ConfigurationError(VerificationError, ValueError):
    """Bad input: missing directory, empty variables, invalid setting. Not retried."""


class ProvisioningError(VerificationError):
    """The Terraform CLI failed or timed out."""

    def __init__(
        self,
        message: str,
        command: Optional[Sequence[str]] = None,
        exit_code: Optional[int] = None,
        stderr: str = "",
    ) -> None:
        super().__init__(message)
        self.command = list(command) if command else []
        self.exit_code = exit_code
        self.stderr = stderr


class TransientAPIError(VerificationError):
    """Throttling or network failure from the AWS API. Retryable with backoff."""


class NotFoundError(VerificationError):
    """An identifier did not resolve to a live resource."""


class SchemaMismatchError(VerificationError):
    """An expectation path does not exist on the snapshot type."""


class ScenarioCancelled(VerificationError):
    """The run was cancelled before the scenario finished."""
