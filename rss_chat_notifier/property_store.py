"""Key/value property store backed by DynamoDB."""

from datetime import UTC, datetime

import boto3
from botocore.exceptions import ClientError

from .logging_config import create_execution_logger

LAST_RUN_DATE_KEY = "LAST_RUN_DATE"
LEGACY_LAST_RUN_KEY = "LAST_RUN_TIME"


class PropertyStore:
    """Reads and writes string properties in a DynamoDB table.

    Each property is one item: ``property_key`` (partition key) and
    ``property_value`` (string).
    """

    def __init__(
        self,
        table_name: str,
        aws_region: str = "us-east-1",
        execution_id: str | None = None,
    ):
        """Initialize the store with DynamoDB configuration.

        Args:
            table_name: Name of the DynamoDB properties table
            aws_region: AWS region for DynamoDB client
            execution_id: Execution ID for logging context
        """
        self.table_name = table_name
        self.aws_region = aws_region
        self.logger = create_execution_logger("property_store", execution_id)
        self.dynamodb = boto3.resource("dynamodb", region_name=aws_region)
        self.table = self.dynamodb.Table(table_name)

        self.logger.info(
            "PropertyStore initialized", table_name=table_name, aws_region=aws_region
        )

    def get_property(self, key: str, default: str = "") -> str:
        """Get a property value.

        Args:
            key: Property name
            default: Value returned when the property is not set

        Returns:
            The stored string value, or default
        """
        try:
            response = self.table.get_item(Key={"property_key": key})
        except ClientError as e:
            self.logger.error(
                f"Error reading property {key}: {e}", property_key=key, error=str(e)
            )
            raise

        item = response.get("Item")
        if item is None or item.get("property_value") is None:
            self.logger.debug("Property not set", property_key=key)
            return default
        return str(item["property_value"])

    def set_property(self, key: str, value: str) -> None:
        """Store a property value, replacing any previous one."""
        try:
            self.table.put_item(
                Item={
                    "property_key": key,
                    "property_value": str(value),
                    "updated_at": datetime.now(UTC).isoformat(),
                }
            )
        except ClientError as e:
            self.logger.error(
                f"Error storing property {key}: {e}", property_key=key, error=str(e)
            )
            raise
        self.logger.debug("Stored property", property_key=key)

    def get_last_run_time(self) -> int:
        """Get the watermark in epoch milliseconds, 0 if never run."""
        raw = self.get_property(LAST_RUN_DATE_KEY)
        if not raw:
            raw = self.get_property(LEGACY_LAST_RUN_KEY)
        if not raw:
            return 0

        try:
            return int(float(raw))
        except (ValueError, OverflowError):
            self.logger.warning(
                f"Ignoring invalid watermark value: {raw!r}",
                property_key=LAST_RUN_DATE_KEY,
            )
            return 0

    def set_last_run_time(self, timestamp_ms: int) -> None:
        """Overwrite the watermark with an epoch milliseconds value."""
        self.set_property(LAST_RUN_DATE_KEY, str(int(timestamp_ms)))
        self.logger.info(
            "Updated last run time",
            property_key=LAST_RUN_DATE_KEY,
            last_run_time=int(timestamp_ms),
        )
