"""
Supabase store adapter
One table per entity type with select/upsert/update/delete semantics.
Column-name translation between models and the remote schema lives here only.
"""

import logging
from typing import Any, Dict, List, Optional

from supabase import AsyncClient, acreate_client

from ..config.settings import Settings
from ..exceptions import GarageOpsError, RemoteStoreError

logger = logging.getLogger(__name__)

# Jobs are stored in 'customers'; the table name predates the job model
JOBS_TABLE = "customers"
INVENTORY_TABLE = "inventory"
SUPPLIERS_TABLE = "suppliers"
PURCHASES_TABLE = "purchases"
INVOICES_TABLE = "invoices"
BRANCHES_TABLE = "branches"
CONFIG_TABLE = "config"

# table -> {model field name: column name}
COLUMN_ALIASES: Dict[str, Dict[str, str]] = {
    BRANCHES_TABLE: {"contactNumber": "contactnumber"},
}


def serialize_row(table: str, record: Dict[str, Any]) -> Dict[str, Any]:
    """Rename model fields to remote column names"""
    aliases = COLUMN_ALIASES.get(table)
    if not aliases:
        return dict(record)
    return {aliases.get(key, key): value for key, value in record.items()}


def deserialize_row(table: str, row: Dict[str, Any]) -> Dict[str, Any]:
    """Rename remote column names back to model fields"""
    aliases = COLUMN_ALIASES.get(table)
    if not aliases:
        return dict(row)
    reverse = {column: field for field, column in aliases.items()}
    return {reverse.get(key, key): value for key, value in row.items()}


def _error_message(error: Exception) -> str:
    # postgrest APIError carries the backend message on .message
    message = getattr(error, "message", None)
    return str(message or error) or error.__class__.__name__


class SupabaseStore:
    """Async adapter over a Supabase client"""

    def __init__(self, client: AsyncClient):
        self.client = client

    @classmethod
    async def connect(cls, settings: Settings) -> "SupabaseStore":
        if not settings.supabase_configured:
            raise GarageOpsError("SUPABASE_URL and SUPABASE_ANON_KEY environment variables are required")
        client = await acreate_client(settings.SUPABASE_URL, settings.SUPABASE_ANON_KEY)
        logger.info(f"✅ Supabase store initialized: {settings.SUPABASE_URL}")
        return cls(client)

    async def select_all(self, table: str) -> List[Dict[str, Any]]:
        try:
            result = await self.client.table(table).select("*").execute()
        except Exception as e:
            raise RemoteStoreError(_error_message(e), table=table, operation="select") from e
        rows = result.data or []
        return [deserialize_row(table, row) for row in rows]

    async def select_one(self, table: str, record_id: str) -> Optional[Dict[str, Any]]:
        try:
            result = await self.client.table(table).select("*").eq("id", record_id).limit(1).execute()
        except Exception as e:
            raise RemoteStoreError(_error_message(e), table=table, operation="select") from e
        rows = result.data or []
        return deserialize_row(table, rows[0]) if rows else None

    async def upsert(self, table: str, record: Dict[str, Any]) -> None:
        try:
            await self.client.table(table).upsert(serialize_row(table, record)).execute()
        except Exception as e:
            logger.error(f"❌ Supabase upsert into {table} failed: {e}")
            raise RemoteStoreError(_error_message(e), table=table, operation="upsert") from e

    async def update(self, table: str, record_id: str, fields: Dict[str, Any]) -> None:
        try:
            await self.client.table(table).update(serialize_row(table, fields)).eq("id", record_id).execute()
        except Exception as e:
            logger.error(f"❌ Supabase update of {table}/{record_id} failed: {e}")
            raise RemoteStoreError(_error_message(e), table=table, operation="update") from e

    async def delete(self, table: str, record_id: str) -> None:
        try:
            await self.client.table(table).delete().eq("id", record_id).execute()
        except Exception as e:
            logger.error(f"❌ Supabase delete of {table}/{record_id} failed: {e}")
            raise RemoteStoreError(_error_message(e), table=table, operation="delete") from e
