"""
Garage database service
Owns the working set, mirrors every change to the local cache and pushes
it to Supabase. Startup pulls all tables concurrently and falls back to
the cache for any table that cannot be fetched.
"""

import asyncio
import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Type, Union

from pydantic import BaseModel, ValidationError

from ..adapters.whatsapp import JobNotifier, WhatsAppNotifier
from ..config.settings import Settings, get_settings
from ..core.invoicing import apply_totals
from ..core.views import rollup_customers
from ..exceptions import StoreNotReadyError
from ..models import (
    CONFIG_ID,
    Branch,
    Customer,
    GarageModel,
    InventoryItem,
    Invoice,
    Job,
    JobStatus,
    Purchase,
    ShopConfig,
    Supplier,
    utc_timestamp,
)
from .local_cache import CacheBackend, LocalFileCache
from .supabase_store import (
    BRANCHES_TABLE,
    CONFIG_TABLE,
    INVENTORY_TABLE,
    INVOICES_TABLE,
    JOBS_TABLE,
    PURCHASES_TABLE,
    SUPPLIERS_TABLE,
    SupabaseStore,
)
from .working_set import WorkingSet

logger = logging.getLogger(__name__)

RecordInput = Union[BaseModel, Dict[str, Any]]


@dataclass(frozen=True)
class Collection:
    name: str
    table: str
    cache_key: str
    model: Type[GarageModel]


JOBS = Collection("jobs", JOBS_TABLE, "autocare_flat_jobs", Job)
INVENTORY = Collection("inventory", INVENTORY_TABLE, "autocare_inventory", InventoryItem)
SUPPLIERS = Collection("suppliers", SUPPLIERS_TABLE, "autocare_suppliers", Supplier)
PURCHASES = Collection("purchases", PURCHASES_TABLE, "autocare_purchases", Purchase)
INVOICES = Collection("invoices", INVOICES_TABLE, "autocare_invoices", Invoice)
BRANCHES = Collection("branches", BRANCHES_TABLE, "autocare_branches", Branch)

COLLECTIONS = (JOBS, INVENTORY, SUPPLIERS, PURCHASES, INVOICES, BRANCHES)
CONFIG_COLLECTION = "config"
CONFIG_CACHE_KEY = "autocare_config"


class SyncState(str, Enum):
    REMOTE_SYNCED = "remote_synced"
    CACHE_FALLBACK = "cache_fallback"


@dataclass
class SyncReport:
    """Outcome of the startup sync"""
    state: SyncState
    fallback_collections: List[str] = field(default_factory=list)
    errors: Dict[str, str] = field(default_factory=dict)
    counts: Dict[str, int] = field(default_factory=dict)


def _parse_rows(model: Type[GarageModel], rows: List[Dict[str, Any]], source: str) -> List[GarageModel]:
    records = []
    for row in rows:
        try:
            records.append(model.model_validate(row))
        except ValidationError as e:
            logger.warning(f"⚠️ Skipping invalid {model.__name__} row {row.get('id')!r} from {source}: {e}")
    return records


def _line_quantities(purchase: Optional[Purchase]) -> Dict[str, float]:
    totals: Dict[str, float] = {}
    if purchase is None:
        return totals
    for line in purchase.items:
        totals[line.product_id] = totals.get(line.product_id, 0.0) + line.quantity
    return totals


class GarageDatabase:
    """Working set with write-through cache and Supabase persistence"""

    def __init__(self, store: SupabaseStore, cache: CacheBackend,
                 notifier: Optional[JobNotifier] = None):
        self.store = store
        self.cache = cache
        self.notifier = notifier
        self.working_set = WorkingSet(collection.name for collection in COLLECTIONS)
        self._init_task: Optional["asyncio.Future[SyncReport]"] = None
        self._report: Optional[SyncReport] = None

    # ===== STARTUP SYNC =====

    @property
    def ready(self) -> bool:
        return self._report is not None

    @property
    def sync_report(self) -> Optional[SyncReport]:
        return self._report

    async def initialize(self) -> SyncReport:
        """Pull every table once; later calls return the first result"""
        if self._init_task is None:
            self._init_task = asyncio.ensure_future(self._synchronize())
        return await self._init_task

    async def _synchronize(self) -> SyncReport:
        results = await asyncio.gather(
            *(self.store.select_all(collection.table) for collection in COLLECTIONS),
            self.store.select_one(CONFIG_TABLE, CONFIG_ID),
            return_exceptions=True,
        )
        report = SyncReport(state=SyncState.REMOTE_SYNCED)

        for collection, result in zip(COLLECTIONS, results):
            if isinstance(result, BaseException):
                if not isinstance(result, Exception):
                    raise result
                logger.error(f"❌ Initial sync of {collection.name} failed: {result}")
                report.fallback_collections.append(collection.name)
                report.errors[collection.name] = str(result)
                records = _parse_rows(collection.model, self.cache.read(collection.cache_key), "cache")
                self.working_set.replace(collection.name, records)
            else:
                records = _parse_rows(collection.model, result, "Supabase")
                self.working_set.replace(collection.name, records)
                self._refresh_cache(collection.cache_key, self.working_set.snapshot(collection.name))
            report.counts[collection.name] = len(records)

        config_result = results[-1]
        if isinstance(config_result, BaseException):
            if not isinstance(config_result, Exception):
                raise config_result
            logger.error(f"❌ Initial sync of config failed: {config_result}")
            report.fallback_collections.append(CONFIG_COLLECTION)
            report.errors[CONFIG_COLLECTION] = str(config_result)
            cached = self.cache.read(CONFIG_CACHE_KEY)
            self.working_set.config = self._parse_config(cached[0] if cached else None, "cache")
        else:
            self.working_set.config = self._parse_config(config_result, "Supabase")
            self._refresh_cache(CONFIG_CACHE_KEY, [self.working_set.config.to_row()])

        if report.fallback_collections:
            report.state = SyncState.CACHE_FALLBACK
            logger.warning(
                f"⚠️ Using local cache for: {', '.join(report.fallback_collections)}"
            )
        else:
            logger.info("✅ Database synchronized with Supabase successfully")

        self._report = report
        return report

    @staticmethod
    def _parse_config(row: Optional[Dict[str, Any]], source: str) -> ShopConfig:
        if not row:
            return ShopConfig()
        try:
            return ShopConfig.model_validate(row)
        except ValidationError as e:
            logger.warning(f"⚠️ Invalid shop config from {source}, using defaults: {e}")
            return ShopConfig()

    def _refresh_cache(self, key: str, rows: List[Dict[str, Any]]):
        # A stale fallback snapshot must not abort a good remote sync
        try:
            self.cache.write(key, rows)
        except OSError as e:
            logger.warning(f"⚠️ Could not refresh cache {key}: {e}")

    # ===== INTERNALS =====

    def _ensure_ready(self):
        if self._report is None:
            raise StoreNotReadyError("GarageDatabase.initialize() must complete before use")

    @staticmethod
    def _coerce(collection: Collection, record: RecordInput) -> GarageModel:
        # Re-validate so the working set never shares an instance with the caller
        data = record.model_dump() if isinstance(record, BaseModel) else dict(record)
        return collection.model.model_validate(data)

    def _mirror(self, collection: Collection):
        self.cache.write(collection.cache_key, self.working_set.snapshot(collection.name))

    async def _save(self, collection: Collection, record: GarageModel) -> GarageModel:
        self.working_set.upsert(collection.name, record)
        self._mirror(collection)
        await self.store.upsert(collection.table, record.to_row())
        logger.info(f"✅ Saved {collection.model.__name__} {record.id}")
        return record

    async def _delete(self, collection: Collection, record_id: str) -> bool:
        self._ensure_ready()
        removed = self.working_set.remove(collection.name, record_id)
        self._mirror(collection)
        await self.store.delete(collection.table, record_id)
        logger.info(f"🗑️ Deleted {collection.model.__name__} {record_id}")
        return removed is not None

    def _items(self, collection: Collection) -> list:
        self._ensure_ready()
        return self.working_set.items(collection.name)

    # ===== READS =====

    def get_jobs(self) -> List[Job]:
        return self._items(JOBS)

    def get_customers(self) -> List[Customer]:
        return rollup_customers(self.get_jobs())

    def get_inventory(self) -> List[InventoryItem]:
        return self._items(INVENTORY)

    def get_suppliers(self) -> List[Supplier]:
        return self._items(SUPPLIERS)

    def get_purchases(self) -> List[Purchase]:
        return self._items(PURCHASES)

    def get_invoices(self) -> List[Invoice]:
        return self._items(INVOICES)

    def get_branches(self) -> List[Branch]:
        return self._items(BRANCHES)

    def get_config(self) -> ShopConfig:
        self._ensure_ready()
        return self.working_set.config

    # ===== JOBS =====

    async def save_job(self, job: RecordInput) -> Job:
        self._ensure_ready()
        return await self._save(JOBS, self._coerce(JOBS, job))

    async def update_job_status(self, job_id: str, status: Union[JobStatus, str]) -> Optional[Job]:
        """Set any status from any other; returns None for an unknown job"""
        self._ensure_ready()
        status = JobStatus(status)
        job = self.working_set.find(JOBS.name, job_id)
        if job is None:
            logger.warning(f"⚠️ Status update for unknown job {job_id}")
            return None

        previous = job.status
        updated = job.model_copy(update={"status": status})
        self.working_set.upsert(JOBS.name, updated)
        self._mirror(JOBS)
        await self.store.update(JOBS.table, job_id, {"status": status.value})
        logger.info(f"✅ Job {job_id} status: {previous.value} -> {status.value}")

        if status == JobStatus.COMPLETED and previous != JobStatus.COMPLETED and self.notifier:
            try:
                self.notifier.job_completed(updated)
            except Exception as e:
                logger.error(f"❌ Completion notification for job {job_id} failed: {e}")
        return updated

    async def delete_job(self, job_id: str) -> bool:
        return await self._delete(JOBS, job_id)

    # ===== INVENTORY & SUPPLIERS =====

    async def save_inventory_item(self, item: RecordInput) -> InventoryItem:
        self._ensure_ready()
        record = self._coerce(INVENTORY, item).model_copy(update={"last_updated": utc_timestamp()})
        return await self._save(INVENTORY, record)

    async def delete_inventory_item(self, item_id: str) -> bool:
        return await self._delete(INVENTORY, item_id)

    async def save_supplier(self, supplier: RecordInput) -> Supplier:
        self._ensure_ready()
        return await self._save(SUPPLIERS, self._coerce(SUPPLIERS, supplier))

    async def delete_supplier(self, supplier_id: str) -> bool:
        return await self._delete(SUPPLIERS, supplier_id)

    # ===== PURCHASES =====

    async def save_purchase(self, purchase: RecordInput) -> Purchase:
        """
        Store a purchase and post its quantities to inventory.

        Line amounts and the total are recomputed. Re-saving an existing
        purchase posts only the per-product quantity change.
        """
        self._ensure_ready()
        record = self._coerce(PURCHASES, purchase)
        lines = [line.model_copy(update={"amount": line.quantity * line.price}) for line in record.items]
        record = record.model_copy(update={
            "items": lines,
            "total_amount": sum(line.amount for line in lines),
        })

        previous = self.working_set.find(PURCHASES.name, record.id)
        old_quantities = _line_quantities(previous)
        new_quantities = _line_quantities(record)

        # Every referenced item is pushed, even at zero delta, so a re-save
        # resends stock that an earlier failed push left behind
        touched: List[InventoryItem] = []
        for product_id in dict.fromkeys([*new_quantities, *old_quantities]):
            delta = new_quantities.get(product_id, 0.0) - old_quantities.get(product_id, 0.0)
            item = self.working_set.find(INVENTORY.name, product_id)
            if item is None:
                logger.warning(f"⚠️ Purchase {record.id} references unknown product {product_id}")
                continue
            if delta:
                item = item.model_copy(update={
                    "quantity": item.quantity + delta,
                    "last_updated": utc_timestamp(),
                })
                self.working_set.upsert(INVENTORY.name, item)
            touched.append(item)

        self.working_set.upsert(PURCHASES.name, record)
        self._mirror(PURCHASES)
        if touched:
            self._mirror(INVENTORY)

        results = await asyncio.gather(
            self.store.upsert(PURCHASES.table, record.to_row()),
            *(self.store.upsert(INVENTORY.table, item.to_row()) for item in touched),
            return_exceptions=True,
        )
        failures = [result for result in results if isinstance(result, BaseException)]
        if failures:
            raise failures[0]

        logger.info(f"✅ Saved purchase {record.purchase_no or record.id}: "
                    f"{len(lines)} lines, {len(touched)} stock updates")
        return record

    async def delete_purchase(self, purchase_id: str) -> bool:
        return await self._delete(PURCHASES, purchase_id)

    # ===== INVOICES =====

    async def save_invoice(self, invoice: RecordInput) -> Invoice:
        self._ensure_ready()
        return await self._save(INVOICES, apply_totals(self._coerce(INVOICES, invoice)))

    async def delete_invoice(self, invoice_id: str) -> bool:
        return await self._delete(INVOICES, invoice_id)

    # ===== BRANCHES =====

    async def save_branch(self, branch: RecordInput) -> Branch:
        self._ensure_ready()
        return await self._save(BRANCHES, self._coerce(BRANCHES, branch))

    async def delete_branch(self, branch_id: str) -> bool:
        return await self._delete(BRANCHES, branch_id)

    # ===== SHOP CONFIG =====

    async def save_config(self, config: RecordInput) -> ShopConfig:
        self._ensure_ready()
        data = config.model_dump() if isinstance(config, BaseModel) else dict(config)
        record = ShopConfig.model_validate(data)
        self.working_set.config = record
        self.cache.write(CONFIG_CACHE_KEY, [record.to_row()])
        await self.store.upsert(CONFIG_TABLE, record.to_row())
        logger.info("✅ Shop config saved")
        return record


async def create_garage_db(settings: Optional[Settings] = None,
                           notifier: Optional[JobNotifier] = None) -> GarageDatabase:
    """Connect Supabase, open the file cache and run the startup sync"""
    settings = settings or get_settings()
    store = await SupabaseStore.connect(settings)
    cache = LocalFileCache(settings.GARAGE_CACHE_DIR)
    if notifier is None:
        notifier = WhatsAppNotifier(settings.SHOP_NAME, settings.DEFAULT_COUNTRY_CODE)
    database = GarageDatabase(store, cache, notifier=notifier)
    await database.initialize()
    return database
