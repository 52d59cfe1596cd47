"""
CloudWatch Logs Resource Inspectors Module.

This module contains functions for reading CloudWatch log groups.
"""

from ...errors import NotFoundError
from ...utils import inspector_error_handler
from ..types import CloudWatchLogsClient, LogGroupSnapshot


@inspector_error_handler
def inspect_log_group(logs_client: CloudWatchLogsClient, log_group_name: str) -> LogGroupSnapshot:
    """
    Fetch one log group by exact name.

    describe_log_groups only filters by prefix, so results are paged through
    until the exact name is found.
    """
    paginator = logs_client.get_paginator("describe_log_groups")
    for page in paginator.paginate(logGroupNamePrefix=log_group_name):
        for log_group in page.get("logGroups", []):
            if log_group.get("logGroupName") == log_group_name:
                return LogGroupSnapshot(
                    name=log_group_name,
                    retention_in_days=log_group.get("retentionInDays"),
                    arn=log_group.get("arn", ""),
                )
    raise NotFoundError(f"Log group {log_group_name} not found")
