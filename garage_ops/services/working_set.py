"""
In-memory working set
Authoritative entity collections for one GarageDatabase session
"""

from typing import Dict, Iterable, List, Optional, TypeVar

from ..models import GarageModel, ShopConfig

T = TypeVar("T", bound=GarageModel)


class WorkingSet:
    """Holds every entity collection plus the singleton shop config"""

    def __init__(self, collection_names: Iterable[str]):
        self._collections: Dict[str, List[GarageModel]] = {name: [] for name in collection_names}
        self.config = ShopConfig()

    def _require(self, name: str) -> List[GarageModel]:
        if name not in self._collections:
            raise KeyError(f"Unknown collection: {name}")
        return self._collections[name]

    def items(self, name: str) -> List[GarageModel]:
        """Copy of a collection's list"""
        return list(self._require(name))

    def replace(self, name: str, records: Iterable[GarageModel]) -> None:
        self._require(name)
        self._collections[name] = list(records)

    def find(self, name: str, record_id: str) -> Optional[GarageModel]:
        for record in self._require(name):
            if record.id == record_id:
                return record
        return None

    def upsert(self, name: str, record: T) -> T:
        """Replace by id when present, else append"""
        records = self._require(name)
        for index, existing in enumerate(records):
            if existing.id == record.id:
                records[index] = record
                return record
        records.append(record)
        return record

    def remove(self, name: str, record_id: str) -> Optional[GarageModel]:
        records = self._require(name)
        for index, existing in enumerate(records):
            if existing.id == record_id:
                return records.pop(index)
        return None

    def snapshot(self, name: str) -> List[dict]:
        """Wire-format rows for the cache"""
        return [record.to_row() for record in self._require(name)]
