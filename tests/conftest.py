"""
Shared fixtures: an in-memory stand-in for the Supabase async query
builder, a file cache under tmp_path and a GarageDatabase wired to both.
"""

import os
import sys
from typing import Any, Dict, List, Optional
from unittest.mock import Mock

import pytest

# Add the project root to the Python path
project_root = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
sys.path.insert(0, project_root)

from garage_ops.adapters.whatsapp import JobNotifier
from garage_ops.services.garage_db import GarageDatabase
from garage_ops.services.local_cache import LocalFileCache
from garage_ops.services.supabase_store import SupabaseStore


class FakeAPIError(Exception):
    """Mimics postgrest APIError, which exposes .message"""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class FakeResponse:
    def __init__(self, data: List[Dict[str, Any]]):
        self.data = data


class FakeQuery:
    def __init__(self, client: "FakeSupabaseClient", table: str):
        self.client = client
        self.table = table
        self.operation: Optional[str] = None
        self.payload: Optional[Dict[str, Any]] = None
        self.filters: List[tuple] = []
        self.row_limit: Optional[int] = None

    def select(self, columns: str = "*"):
        self.operation = "select"
        return self

    def upsert(self, payload: Dict[str, Any]):
        self.operation = "upsert"
        self.payload = payload
        return self

    def update(self, payload: Dict[str, Any]):
        self.operation = "update"
        self.payload = payload
        return self

    def delete(self):
        self.operation = "delete"
        return self

    def eq(self, column: str, value: Any):
        self.filters.append((column, value))
        return self

    def limit(self, count: int):
        self.row_limit = count
        return self

    def _matches(self, row: Dict[str, Any]) -> bool:
        return all(row.get(column) == value for column, value in self.filters)

    async def execute(self) -> FakeResponse:
        self.client.calls.append({
            "table": self.table,
            "operation": self.operation,
            "payload": self.payload,
            "filters": list(self.filters),
        })
        failure = (self.client.failures.get((self.table, self.operation))
                   or self.client.failures.get((self.table, "*")))
        if failure is not None:
            raise failure

        rows = self.client.tables.setdefault(self.table, [])
        if self.operation == "select":
            data = [dict(row) for row in rows if self._matches(row)]
            if self.row_limit is not None:
                data = data[:self.row_limit]
            return FakeResponse(data)
        if self.operation == "upsert":
            for index, row in enumerate(rows):
                if row.get("id") == self.payload.get("id"):
                    rows[index] = dict(self.payload)
                    break
            else:
                rows.append(dict(self.payload))
            return FakeResponse([dict(self.payload)])
        if self.operation == "update":
            updated = []
            for row in rows:
                if self._matches(row):
                    row.update(self.payload)
                    updated.append(dict(row))
            return FakeResponse(updated)
        if self.operation == "delete":
            removed = [dict(row) for row in rows if self._matches(row)]
            self.client.tables[self.table] = [row for row in rows if not self._matches(row)]
            return FakeResponse(removed)
        raise AssertionError(f"Unexpected operation {self.operation}")


class FakeSupabaseClient:
    def __init__(self, tables: Optional[Dict[str, List[Dict[str, Any]]]] = None):
        self.tables = {name: [dict(row) for row in rows] for name, rows in (tables or {}).items()}
        self.failures: Dict[tuple, Exception] = {}
        self.calls: List[Dict[str, Any]] = []

    def table(self, name: str) -> FakeQuery:
        return FakeQuery(self, name)

    def fail(self, table: str, operation: str = "*", message: str = "connection refused"):
        self.failures[(table, operation)] = FakeAPIError(message)

    def calls_for(self, table: str, operation: Optional[str] = None) -> List[Dict[str, Any]]:
        return [
            call for call in self.calls
            if call["table"] == table and (operation is None or call["operation"] == operation)
        ]


SAMPLE_TABLES = {
    "customers": [
        {
            "id": "job-1",
            "customerName": "Ravi Kumar",
            "customerMobile": "9876543210",
            "customerAddress": "12 MG Road",
            "vehicleNumber": "KA01AB1234",
            "brand": "Maruti",
            "model": "Swift",
            "dateIn": "1700000000000",
            "expectedDeliveryDate": "2023-11-16",
            "charges": 1500,
            "status": "Delivered",
        },
        {
            "id": "job-2",
            "customerName": "Anita Shah",
            "customerMobile": "9123456780",
            "vehicleNumber": "MH12CD5678",
            "dateIn": "2024-03-05",
            "expectedDeliveryDate": "2024-03-07",
            "charges": 800,
            "status": "In Progress",
        },
    ],
    "inventory": [
        {
            "id": "P1",
            "name": "Engine Oil 5W-30",
            "category": "Lubricants",
            "quantity": 10,
            "unit": "L",
            "minStock": 4,
            "price": 450,
            "lastUpdated": "2024-03-01T09:00:00+00:00",
        },
    ],
    "suppliers": [
        {"id": "S1", "name": "Speed Parts", "mobile": "9000000001"},
    ],
    "purchases": [],
    "invoices": [],
    "branches": [
        {"id": "B1", "name": "Main Branch", "contactnumber": "080-2345678", "city": "Bengaluru"},
    ],
    "config": [
        {"id": "main", "groupInviteLink": "https://chat.whatsapp.com/abc", "shopName": "KM Automobiles"},
    ],
}


@pytest.fixture
def fake_client():
    return FakeSupabaseClient(SAMPLE_TABLES)


@pytest.fixture
def store(fake_client):
    return SupabaseStore(fake_client)


@pytest.fixture
def cache(tmp_path):
    return LocalFileCache(str(tmp_path / "cache"))


@pytest.fixture
def notifier():
    return Mock(spec=JobNotifier)


@pytest.fixture
def database(store, cache, notifier):
    """GarageDatabase that still needs initialize()"""
    return GarageDatabase(store, cache, notifier=notifier)
