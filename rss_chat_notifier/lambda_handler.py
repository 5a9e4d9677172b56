"""Main Lambda handler for RSS Chat Notifier."""

import json
import os
from datetime import UTC, datetime
from typing import Any

import boto3

from .config import DELIVERY_TARGETS, Config
from .errors import DeliveryError
from .formatter import format_message
from .logging_config import (
    ExecutionLogger,
    create_execution_logger,
    setup_structured_logging,
)
from .property_store import PropertyStore
from .rss import FeedProcessor
from .webhooks import WebhookPublisher, truncate_message

METRICS_NAMESPACE = "RSS-Chat-Notifier"

# Setup structured logging
setup_structured_logging(os.getenv("LOG_LEVEL", "INFO"))


def new_metrics() -> dict[str, Any]:
    return {
        "items_found": 0,
        "messages_sent": 0,
        "targets": [],
        "errors": [],
    }


def run(
    config: Config,
    store: PropertyStore,
    feed_processor: FeedProcessor,
    publisher: WebhookPublisher,
    logger: ExecutionLogger,
    metrics: dict[str, Any] | None = None,
) -> dict[str, Any]:
    """
    Deliver every feed item published since the last run to each webhook.

    Items are handled oldest first and, for each item, targets in table
    order. The first failure propagates and leaves the remaining items
    undelivered; the watermark has already moved past them.

    Args:
        config: Process configuration
        store: Property store with settings and the watermark
        feed_processor: Fetches and diffs the feed
        publisher: Posts messages to webhooks
        logger: Execution logger for the run
        metrics: Counters updated in place, created when omitted

    Returns:
        The metrics dictionary
    """
    if metrics is None:
        metrics = new_metrics()

    settings = config.load_settings(store)
    targets = config.get_delivery_targets(settings)
    metrics["targets"] = [target.name for target in targets]

    configured = set(metrics["targets"])
    for name in DELIVERY_TARGETS:
        if name not in configured:
            logger.warning(f"No webhook URL configured for {name}, skipping", target=name)

    items = feed_processor.get_new_items(settings.feed_url, store)
    metrics["items_found"] = len(items)
    logger.info(f"Found {len(items)} new items", feed_url=settings.feed_url)

    for item in items:
        message = format_message(item)
        for target in targets:
            try:
                publisher.send_message(
                    truncate_message(message, target.max_message_length), target
                )
            except DeliveryError:
                logger.log_delivery(item.title, target.name, success=False)
                raise
            metrics["messages_sent"] += 1
            logger.log_delivery(item.title, target.name)

    return metrics


def lambda_handler(event: dict[str, Any], context: Any) -> dict[str, Any]:
    """
    Lambda entry point invoked by the scheduler.

    Errors are logged and re-raised so the runtime records a failed
    invocation.

    Args:
        event: Lambda event data
        context: Lambda context object

    Returns:
        Response dictionary with status and metrics
    """
    execution_id = f"lambda_{datetime.now(UTC).strftime('%Y%m%d_%H%M%S_%f')}"
    main_logger = create_execution_logger("main", execution_id)

    main_logger.log_execution_start(
        lambda_request_id=getattr(context, "aws_request_id", "unknown"),
        lambda_function_name=getattr(context, "function_name", "unknown"),
    )

    metrics = new_metrics()
    config = None

    try:
        config = Config()
        main_logger.info("Configuration initialized")

        store = PropertyStore(
            table_name=config.properties_table,
            aws_region=config.aws_region,
            execution_id=execution_id,
        )
        feed_processor = FeedProcessor(
            timeout=config.request_timeout,
            timezone=config.get_timezone(),
            execution_id=execution_id,
        )
        publisher = WebhookPublisher(
            timeout=config.request_timeout, execution_id=execution_id
        )

        run(config, store, feed_processor, publisher, main_logger, metrics)

    except Exception as e:
        error_msg = f"Run failed: {type(e).__name__}: {e}"
        main_logger.error(error_msg, error=str(e), error_type=type(e).__name__)
        metrics["errors"].append(error_msg)

        aws_region = (
            config.aws_region
            if config
            else os.getenv("AWS_DEFAULT_REGION", "us-east-1")
        )
        send_cloudwatch_metrics(metrics, aws_region, execution_id)

        main_logger.log_execution_end(success=False, metrics=metrics, error=error_msg)
        raise

    main_logger.log_metrics(metrics)
    send_cloudwatch_metrics(metrics, config.aws_region, execution_id)
    main_logger.log_execution_end(success=True, metrics=metrics)

    return {
        "statusCode": 200,
        "body": json.dumps(
            {
                "message": "RSS Chat Notifier execution completed",
                "execution_id": execution_id,
                "metrics": metrics,
            }
        ),
    }


def send_cloudwatch_metrics(
    metrics: dict[str, Any], aws_region: str, execution_id: str
) -> None:
    """
    Send custom metrics to CloudWatch.

    Args:
        metrics: Dictionary containing execution metrics
        aws_region: AWS region for CloudWatch client
        execution_id: Execution ID for logging context
    """
    metrics_logger = create_execution_logger("cloudwatch_metrics", execution_id)

    try:
        metrics_logger.info("Sending metrics to CloudWatch", metrics=metrics)
        cloudwatch = boto3.client("cloudwatch", region_name=aws_region)

        total_errors = len(metrics["errors"])
        execution_success = total_errors == 0
        status = "Success" if execution_success else "Failure"

        metric_data = [
            {
                "MetricName": "ItemsFound",
                "Value": metrics["items_found"],
                "Unit": "Count",
                "Dimensions": [{"Name": "ExecutionId", "Value": execution_id}],
            },
            {
                "MetricName": "MessagesSent",
                "Value": metrics["messages_sent"],
                "Unit": "Count",
                "Dimensions": [{"Name": "ExecutionId", "Value": execution_id}],
            },
            {
                "MetricName": "Errors",
                "Value": total_errors,
                "Unit": "Count",
                "Dimensions": [{"Name": "ExecutionId", "Value": execution_id}],
            },
            {
                "MetricName": "ExecutionSuccess",
                "Value": 1 if execution_success else 0,
                "Unit": "Count",
                "Dimensions": [{"Name": "Status", "Value": status}],
            },
            {
                "MetricName": "ExecutionFailure",
                "Value": 0 if execution_success else 1,
                "Unit": "Count",
                "Dimensions": [{"Name": "Status", "Value": status}],
            },
        ]

        cloudwatch.put_metric_data(Namespace=METRICS_NAMESPACE, MetricData=metric_data)

        metrics_logger.info(
            "Successfully sent metrics to CloudWatch",
            metrics_sent=len(metric_data),
            namespace=METRICS_NAMESPACE,
            execution_success=execution_success,
        )

    except Exception as e:
        metrics_logger.error(f"Failed to send CloudWatch metrics: {e}", error=str(e))
        # Don't raise - metrics failure shouldn't change the run outcome
