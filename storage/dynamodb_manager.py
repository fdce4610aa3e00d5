"""DynamoDB manager for event storage operations."""
import logging
from typing import Any, Dict, List, Optional

import boto3
from boto3.dynamodb.conditions import Attr
from botocore.exceptions import ClientError

from processor.models import EventRecord

logger = logging.getLogger(__name__)


class DynamoDBManager:
    """Manager for DynamoDB operations on the events table."""

    KEY_FIELDS = ('event_id', 'status', 'date', 'time', 'duration')

    def __init__(self, table_name: str, region_name: Optional[str] = None):
        """
        Initialize DynamoDB client and table reference.

        Args:
            table_name: Name of the DynamoDB table
            region_name: AWS region, defaults to the environment's region
        """
        self.table_name = table_name
        self.dynamodb = boto3.resource('dynamodb', region_name=region_name)
        self.table = self.dynamodb.Table(table_name)
        logger.info(f"Initialized DynamoDBManager for table: {table_name}")

    def get_events_by_status(
        self,
        status: str,
        on_or_before: Optional[str] = None
    ) -> List[EventRecord]:
        """
        Retrieve events with the given status using a filtered Scan.

        Args:
            status: Status value to match
            on_or_before: Optional ISO date; only events dated on or before
                it are returned

        Returns:
            List of EventRecord objects in store order
        """
        filter_expression = Attr('status').eq(status)
        if on_or_before:
            filter_expression = filter_expression & Attr('date').lte(on_or_before)

        logger.info(
            f"Scanning for '{status}' events"
            + (f" dated on or before {on_or_before}" if on_or_before else "")
        )

        try:
            response = self.table.scan(FilterExpression=filter_expression)
            items = response.get('Items', [])

            # Handle pagination
            while 'LastEvaluatedKey' in response:
                response = self.table.scan(
                    FilterExpression=filter_expression,
                    ExclusiveStartKey=response['LastEvaluatedKey']
                )
                items.extend(response.get('Items', []))

        except ClientError as e:
            logger.error(f"Error scanning DynamoDB table: {e}")
            raise

        records = []
        for item in items:
            record = self._item_to_event_record(item)
            if record:
                records.append(record)

        logger.info(f"Retrieved {len(records)} '{status}' events from DynamoDB")
        return records

    def update_status(
        self,
        event_id: str,
        new_status: str,
        expected_status: str
    ) -> bool:
        """
        Set the status of a single event if it still has the expected status.

        Args:
            event_id: Event identifier
            new_status: Status to write
            expected_status: Status the stored event must currently have

        Returns:
            True if the write committed, False if the event no longer had
            the expected status
        """
        try:
            self.table.update_item(
                Key={'event_id': event_id},
                UpdateExpression='SET #status = :new_status',
                ConditionExpression='#status = :expected_status',
                ExpressionAttributeNames={'#status': 'status'},
                ExpressionAttributeValues={
                    ':new_status': new_status,
                    ':expected_status': expected_status
                }
            )
        except ClientError as e:
            if e.response['Error']['Code'] == 'ConditionalCheckFailedException':
                logger.warning(
                    f"Event {event_id} is no longer '{expected_status}', "
                    f"skipping update to '{new_status}'"
                )
                return False
            logger.error(f"Error updating status of event {event_id}: {e}")
            raise

        return True

    def put_event(self, item: Dict[str, Any]) -> None:
        """Write a raw event item to the table."""
        try:
            self.table.put_item(Item=item)
        except ClientError as e:
            logger.error(f"Error writing event {item.get('event_id')}: {e}")
            raise

    def get_event(self, event_id: str) -> Optional[EventRecord]:
        """
        Fetch a single event by its identifier.

        Args:
            event_id: Event identifier

        Returns:
            EventRecord or None if the event does not exist
        """
        try:
            response = self.table.get_item(Key={'event_id': event_id})
        except ClientError as e:
            logger.error(f"Error reading event {event_id}: {e}")
            raise

        item = response.get('Item')
        if not item:
            return None
        return self._item_to_event_record(item)

    def _item_to_event_record(self, item: dict) -> Optional[EventRecord]:
        """
        Convert DynamoDB item to EventRecord object.

        Fields other than the ones the status sweep reads are kept in
        ``attributes`` unchanged.

        Args:
            item: DynamoDB item dictionary

        Returns:
            EventRecord object or None if conversion fails
        """
        try:
            return EventRecord(
                event_id=item['event_id'],
                status=item['status'],
                date=str(item['date']),
                time=str(item['time']),
                duration=str(item['duration']),
                attributes={
                    key: value for key, value in item.items()
                    if key not in self.KEY_FIELDS
                }
            )
        except KeyError as e:
            logger.warning(
                f"Failed to convert item {item.get('event_id')} "
                f"to EventRecord: missing {e}"
            )
            return None
