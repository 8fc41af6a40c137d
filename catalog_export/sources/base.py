from abc import ABC, abstractmethod
from typing import Iterator

from catalog_export.records import CatalogRecord


class BaseSource(ABC):
    @abstractmethod
    def iter_records(self) -> Iterator[CatalogRecord]:
        """Yield catalog records one at a time; the sequence is consumed once."""
