"""
Report structure shared by every output format (PDF, CSV, XLSX, JSON)
"""
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional

from django.utils import timezone


def _cell(value):
    return '' if value is None else str(value)


@dataclass
class ReportMetadata:
    title: str
    subtitle: str = ''
    prepared_by: str = ''
    prepared_for: str = ''
    date_range: str = ''
    created_at: datetime = field(default_factory=timezone.now)
    notes: str = ''


@dataclass
class ReportTable:
    headers: List[str]
    rows: List[List[Any]] = field(default_factory=list)


@dataclass
class ReportData:
    metadata: ReportMetadata
    summary_stats: Dict[str, Any] = field(default_factory=dict)
    tables: Dict[str, ReportTable] = field(default_factory=dict)
    date_from: Optional[Any] = None
    date_to: Optional[Any] = None

    def add_table(self, name, headers, rows):
        self.tables[name] = ReportTable(headers=list(headers), rows=[list(row) for row in rows])
        return self.tables[name]

    def filename(self, extension):
        """Title_With_Underscores_YYYYMMDD_YYYYMMDD.ext"""
        base = '_'.join(self.metadata.title.split())
        if self.date_from and self.date_to:
            base = f"{base}_{self.date_from:%Y%m%d}_{self.date_to:%Y%m%d}"
        return f"{base}.{extension}"

    def to_dict(self):
        meta = self.metadata
        return {
            'metadata': {
                'title': meta.title,
                'subtitle': meta.subtitle,
                'prepared_by': meta.prepared_by,
                'prepared_for': meta.prepared_for,
                'date_range': meta.date_range,
                'created_at': meta.created_at.isoformat(),
                'notes': meta.notes,
            },
            'summary_stats': {label: _cell(value) for label, value in self.summary_stats.items()},
            'tables': {
                name: {
                    'headers': table.headers,
                    'rows': [[_cell(cell) for cell in row] for row in table.rows],
                }
                for name, table in self.tables.items()
            },
        }
