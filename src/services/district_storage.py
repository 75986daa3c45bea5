"""District configuration storage (singleton document in ``map_config``)."""

from typing import Optional

from pymongo.collection import Collection

from ..models.base import utcnow
from ..models.district import DistrictConfig, DistrictConfigUpdate
from ..lib.logging import get_logger
from .database import MAP_CONFIG_COLLECTION

logger = get_logger(__name__)

CONFIG_DOC_ID = "districts"


class DistrictConfigStorage:
    """Loads and saves the single district configuration document."""

    def __init__(self, collection: Collection):
        self.collection = collection

    def load(self) -> DistrictConfig:
        """
        Load the saved configuration.

        Returns:
            Saved DistrictConfig, or the compiled-in default layout when
            nothing has been saved yet
        """
        doc = self.collection.find_one({"_id": CONFIG_DOC_ID})
        if doc is None:
            return DistrictConfig.default()
        doc.pop("_id", None)
        return DistrictConfig(**doc)

    def save(self, update: DistrictConfigUpdate, user_id: Optional[str] = None) -> DistrictConfig:
        """
        Replace the configuration (last writer wins).

        Args:
            update: Validated configuration from the request
            user_id: Discord user ID of the editor

        Returns:
            The stored configuration
        """
        config = DistrictConfig(
            **update.model_dump(),
            updated_at=utcnow(),
            updated_by=user_id,
        )
        doc = config.model_dump()
        doc["_id"] = CONFIG_DOC_ID
        self.collection.replace_one({"_id": CONFIG_DOC_ID}, doc, upsert=True)

        logger.info(
            "district_config_saved",
            updated_by=user_id,
            districts=len(config.centers),
            radius_scale=config.radius_scale,
            overrides=len(config.radius_overrides),
        )
        return config


def create_district_storage(database) -> DistrictConfigStorage:
    return DistrictConfigStorage(database[MAP_CONFIG_COLLECTION])
