"""DynamoDB implementation of Document Repository."""

import asyncio
import logging
from datetime import datetime
from typing import Any, Callable, Dict

import aioboto3
from boto3.dynamodb.conditions import Key
from botocore.exceptions import BotoCoreError, ClientError

from ..domain.entities.document import DocumentRecord
from ..domain.entities.errors import DocumentAccessError, DocumentNotFoundError, TransientError
from ..domain.interfaces.document_repository import DocumentRepository, SnapshotListener

logger = logging.getLogger(__name__)


class DynamoDBDocumentRepository(DocumentRepository):
    """DynamoDB repository for document records.

    Records are keyed by ``id``; a global secondary index on ``owner_id``
    (sorted by ``created_at``) serves owner queries. DynamoDB has no push
    notifications, so live queries poll the owner index and emit a snapshot
    whenever the result changes.
    """

    def __init__(
        self,
        table_name: str,
        owner_index_name: str = "owner_id-created_at-index",
        region_name: str = "us-east-1",
        poll_interval: float = 5.0,
    ):
        """Initialize the DynamoDB document repository.

        Args:
            table_name: The name of the DynamoDB table.
            owner_index_name: Name of the GSI keyed by ``owner_id``.
            region_name: AWS region name (default: us-east-1).
            poll_interval: Seconds between live-query polls.
        """
        self.table_name = table_name
        self.owner_index_name = owner_index_name
        self.region_name = region_name
        self.poll_interval = poll_interval
        self._session = aioboto3.Session()

    async def subscribe(self, owner_id: str, listener: SnapshotListener) -> Callable[[], None]:
        """Poll an owner's records and emit snapshots when they change."""
        records = await self.list_for_owner(owner_id)
        await listener(records)

        task = asyncio.create_task(self._poll(owner_id, listener, self._fingerprint(records)))

        def unsubscribe() -> None:
            task.cancel()

        return unsubscribe

    async def _poll(self, owner_id: str, listener: SnapshotListener, last: list) -> None:
        while True:
            await asyncio.sleep(self.poll_interval)
            try:
                records = await self.list_for_owner(owner_id)
            except Exception as e:
                logger.error(f"Polling documents for owner {owner_id} failed: {e}")
                continue

            fingerprint = self._fingerprint(records)
            if fingerprint != last:
                last = fingerprint
                try:
                    await listener(records)
                except Exception as e:
                    logger.error(f"Document snapshot listener for owner {owner_id} failed: {e}", exc_info=True)

    async def list_for_owner(self, owner_id: str) -> list[DocumentRecord]:
        """Query the owner index, newest first, following pagination.

        Raises:
            TransientError: If DynamoDB cannot be reached or rejects the query.
        """
        query = {
            "IndexName": self.owner_index_name,
            "KeyConditionExpression": Key("owner_id").eq(owner_id),
            "ScanIndexForward": False,
        }
        try:
            async with self._session.resource("dynamodb", region_name=self.region_name) as dynamodb:
                table = await dynamodb.Table(self.table_name)
                response = await table.query(**query)
                items = list(response.get("Items", []))

                while "LastEvaluatedKey" in response:
                    response = await table.query(ExclusiveStartKey=response["LastEvaluatedKey"], **query)
                    items.extend(response.get("Items", []))
        except (BotoCoreError, ClientError) as e:
            logger.error(f"Failed to list documents for owner {owner_id}: {e}")
            raise TransientError("Could not load your documents. Please try again.") from e

        records = [self._item_to_record(item) for item in items]
        return sorted(records, key=lambda r: r.created_at, reverse=True)

    async def get(self, owner_id: str, document_id: str) -> DocumentRecord:
        """Retrieve a record by ID from DynamoDB.

        Raises:
            DocumentNotFoundError: If the record is not found.
            DocumentAccessError: If the record belongs to another owner.
        """
        async with self._session.resource("dynamodb", region_name=self.region_name) as dynamodb:
            table = await dynamodb.Table(self.table_name)
            response = await table.get_item(Key={"id": document_id})

        if "Item" not in response:
            raise DocumentNotFoundError(f"Document with id {document_id} not found")

        record = self._item_to_record(response["Item"])
        if record.owner_id != owner_id:
            logger.warning(f"Owner {owner_id} attempted to access document {document_id}")
            raise DocumentAccessError("You do not have access to this document.")
        return record

    async def create(self, record: DocumentRecord) -> None:
        async with self._session.resource("dynamodb", region_name=self.region_name) as dynamodb:
            table = await dynamodb.Table(self.table_name)
            await table.put_item(Item=self._record_to_item(record))

    async def update(self, owner_id: str, record: DocumentRecord) -> None:
        await self.get(owner_id, record.id)
        if record.owner_id != owner_id:
            raise DocumentAccessError("You do not have access to this document.")
        await self.create(record)

    async def delete(self, owner_id: str, document_id: str) -> None:
        await self.get(owner_id, document_id)
        async with self._session.resource("dynamodb", region_name=self.region_name) as dynamodb:
            table = await dynamodb.Table(self.table_name)
            await table.delete_item(Key={"id": document_id})

    @staticmethod
    def _fingerprint(records: list[DocumentRecord]) -> list:
        return [r.model_dump(mode="json") for r in records]

    def _record_to_item(self, record: DocumentRecord) -> Dict[str, Any]:
        """Convert a DocumentRecord to a DynamoDB item."""
        item = {
            "id": record.id,
            "owner_id": record.owner_id,
            "display_name": record.display_name,
            "media_type": record.media_type,
            "byte_size": record.byte_size,
            "source_location": record.source_location,
            "created_at": record.created_at.isoformat(),
        }
        if record.generated_audio_location:
            item["generated_audio_location"] = record.generated_audio_location
        return item

    def _item_to_record(self, item: Dict[str, Any]) -> DocumentRecord:
        """Convert a DynamoDB item to a DocumentRecord."""
        return DocumentRecord(
            id=item["id"],
            owner_id=item["owner_id"],
            display_name=item["display_name"],
            media_type=item["media_type"],
            byte_size=int(item["byte_size"]),
            source_location=item["source_location"],
            created_at=datetime.fromisoformat(item["created_at"]),
            generated_audio_location=item.get("generated_audio_location"),
        )
