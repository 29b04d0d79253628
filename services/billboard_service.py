"""
Billboard persistence.

The bulk upload pipeline only needs two operations from the store: insert
one record, and list the names of an owner's existing records.
"""

from typing import Optional
import structlog

from config import get_supabase_client, settings
from exceptions import DatabaseError
from models.billboard import InventoryRecord

logger = structlog.get_logger(__name__)


class BillboardService:
    """
    Billboard table access.

    Handles inserts and owner lookups for bulk uploads.
    """

    def __init__(self, client=None):
        self.db = client if client is not None else get_supabase_client()
        self.table = settings.billboards_table

    def insert(self, record: InventoryRecord) -> str:
        """
        Insert one billboard.

        Args:
            record: Validated inventory record

        Returns:
            ID of the created row

        Raises:
            DatabaseError: If the insert fails
        """
        logger.debug("inserting_billboard", identifier=record.identifier, owner_id=record.owner_id)

        try:
            result = (
                self.db.table(self.table)
                .insert(record.to_insert_payload())
                .execute()
            )
        except Exception as e:
            logger.error(
                "insert_billboard_failed",
                identifier=record.identifier,
                error=str(e)
            )
            raise DatabaseError("insert", str(e), details={"identifier": record.identifier})

        if not result.data:
            raise DatabaseError("insert", "No row returned", details={"identifier": record.identifier})

        created_id = str(result.data[0].get("id", ""))
        logger.info("billboard_created", identifier=record.identifier, billboard_id=created_id)
        return created_id

    def query_existing_names(self, owner_id: str) -> list[str]:
        """
        Names of every billboard owned by owner_id.

        Raises:
            DatabaseError: If the query fails
        """
        logger.debug("querying_existing_names", owner_id=owner_id)

        try:
            result = (
                self.db.table(self.table)
                .select("nombre")
                .eq("owner_id", owner_id)
                .execute()
            )
        except Exception as e:
            logger.error(
                "query_existing_names_failed",
                owner_id=owner_id,
                error=str(e)
            )
            raise DatabaseError("select", str(e))

        names = [row["nombre"] for row in result.data or [] if row.get("nombre")]
        logger.info("existing_names_loaded", owner_id=owner_id, count=len(names))
        return names


# Singleton instance
_billboard_service: Optional[BillboardService] = None


def get_billboard_service() -> BillboardService:
    """Get or create BillboardService instance."""
    global _billboard_service
    if _billboard_service is None:
        _billboard_service = BillboardService()
    return _billboard_service
