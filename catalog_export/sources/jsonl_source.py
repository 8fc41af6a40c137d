import json
from pathlib import Path

from django.conf import settings

from catalog_export.records import RecordType, record_from_dict

from .base import BaseSource

DEFAULT_PATHS = {
    RecordType.PRODUCT: 'PRODUCT_SOURCE_PATH',
    RecordType.FAQ: 'FAQ_SOURCE_PATH',
}


class JsonLinesSource(BaseSource):
    """Reads one JSON object per line, building records as lines are read."""

    def __init__(self, record_type, path=None):
        self.record_type = RecordType(record_type)
        self.path = Path(path) if path else Path(getattr(settings, DEFAULT_PATHS[self.record_type]))

    def iter_records(self):
        with open(self.path, 'r', encoding='utf-8') as f:
            for line_number, line in enumerate(f, start=1):
                line = line.strip()
                if not line:
                    continue
                try:
                    data = json.loads(line)
                except ValueError as exc:
                    raise ValueError(f"{self.path}:{line_number}: {exc}") from exc
                yield record_from_dict(self.record_type, data)
