"""Pin storage service backed by the ``pins`` collection."""

from typing import Any, Dict, List, Optional

from pymongo import ASCENDING, ReturnDocument
from pymongo.collection import Collection
from pymongo.errors import DuplicateKeyError

from ..models.base import utcnow
from ..models.pin import Pin
from ..lib.logging import get_logger
from .database import PINS_COLLECTION

logger = get_logger(__name__)


class DuplicatePinError(Exception):
    """A pin with the same id already exists."""

    def __init__(self, pin_id: str):
        super().__init__(f"Pin {pin_id} already exists")
        self.pin_id = pin_id


class PinStorage:
    """
    Service for storing and retrieving pins.

    Writes are unconditional single-document operations: concurrent edits
    to the same pin are last-writer-wins.
    """

    def __init__(self, collection: Collection):
        """
        Initialize pin storage.

        Args:
            collection: MongoDB collection holding pins
        """
        self.collection = collection

    def ensure_indexes(self) -> None:
        self.collection.create_index([("district", ASCENDING)])
        self.collection.create_index([("owner_id", ASCENDING)])

    def list_pins(self, district: Optional[str] = None) -> List[Pin]:
        """
        List pins, oldest first.

        Args:
            district: Optional district id filter

        Returns:
            List of pins
        """
        query: Dict[str, Any] = {}
        if district is not None:
            query["district"] = district
        return [Pin.from_document(doc) for doc in self.collection.find(query).sort("created_at", ASCENDING)]

    def get_pin(self, pin_id: str) -> Optional[Pin]:
        doc = self.collection.find_one({"_id": pin_id})
        return Pin.from_document(doc) if doc else None

    def create_pin(self, pin: Pin) -> Pin:
        """
        Insert a new pin.

        Raises:
            DuplicatePinError: If the id is already taken
        """
        if self.collection.find_one({"_id": pin.id}, projection={"_id": 1}):
            raise DuplicatePinError(pin.id)
        try:
            self.collection.insert_one(pin.to_document())
        except DuplicateKeyError as e:
            raise DuplicatePinError(pin.id) from e

        logger.info("pin_created", pin_id=pin.id, owner_id=pin.owner_id, district=pin.district)
        return pin

    def update_pin(self, pin_id: str, changes: Dict[str, Any]) -> Optional[Pin]:
        """
        Apply field changes to a pin.

        Args:
            pin_id: Pin id
            changes: Field name to new value (``pos`` may be a model or dict)

        Returns:
            Updated pin, or None if it does not exist
        """
        update = {}
        for field, value in changes.items():
            if hasattr(value, "model_dump"):
                value = value.model_dump()
            update[field] = value
        update["updated_at"] = utcnow()

        doc = self.collection.find_one_and_update(
            {"_id": pin_id},
            {"$set": update},
            return_document=ReturnDocument.AFTER,
        )
        if doc is None:
            return None

        logger.info("pin_updated", pin_id=pin_id, fields=sorted(changes))
        return Pin.from_document(doc)

    def delete_pin(self, pin_id: str) -> bool:
        result = self.collection.delete_one({"_id": pin_id})
        deleted = result.deleted_count > 0
        if deleted:
            logger.info("pin_deleted", pin_id=pin_id)
        return deleted


def create_pin_storage(database) -> PinStorage:
    return PinStorage(database[PINS_COLLECTION])
