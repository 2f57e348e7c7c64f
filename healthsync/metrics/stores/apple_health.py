"""Apple Health export store.

Apple does not provide a server-side HealthKit API; data leaves the device
as an export.  This store loads one of:

1. **XML export**: Apple Health's native ``export.xml`` (``<Record>`` elements)
2. **JSON export**: ``{"records": [{"type", "value", "unit", "startDate",
   "endDate"}, ...]}`` as produced by Shortcuts / Health Auto Export style apps

and serves the samples through the ``HealthStore`` interface.  Only the
types behind a ``MetricKind`` are kept.
"""

from __future__ import annotations

import json
import logging
from datetime import datetime, tzinfo
from pathlib import Path
from xml.etree import ElementTree as ET

from healthsync.metrics.base import HealthSample, MetricKind
from healthsync.metrics.stores.memory import InMemoryHealthStore

logger = logging.getLogger("healthsync.metrics.stores.apple_health")

_TRACKED_TYPES = frozenset(kind.type_id for kind in MetricKind)
_CATEGORY_TYPES = frozenset({MetricKind.SLEEP.type_id})

# Apple's export format: "2026-02-23 07:15:00 -0500"
_EXPORT_DATE_FORMAT = "%Y-%m-%d %H:%M:%S %z"


class AppleHealthExportStore(InMemoryHealthStore):
    """HealthStore populated from an Apple Health export.

    Args:
        default_tz: Zone assumed for timestamps that carry no offset.
    """

    DISPLAY_NAME = "Apple Health export"

    def __init__(self, default_tz: tzinfo) -> None:
        super().__init__()
        self._default_tz = default_tz
        self.skipped = 0

    # ------------------------------------------------------------------
    # Constructors
    # ------------------------------------------------------------------

    @classmethod
    def from_path(cls, path: Path, default_tz: tzinfo) -> "AppleHealthExportStore":
        """Load an ``export.xml`` or ``.json`` export from disk."""
        store = cls(default_tz)
        if path.suffix.lower() == ".json":
            store.load_json(json.loads(path.read_text(encoding="utf-8")))
        else:
            store.load_xml(path.read_bytes())
        return store

    # ------------------------------------------------------------------
    # Parsing
    # ------------------------------------------------------------------

    def load_xml(self, xml_bytes: bytes) -> int:
        """Parse Apple Health's XML export and add its tracked records.

        Returns:
            Number of samples added.

        Raises:
            ValueError: If the document is not well-formed XML.
        """
        try:
            root = ET.fromstring(xml_bytes)
        except ET.ParseError as exc:
            logger.error("Apple Health XML parse error: %s", exc)
            raise ValueError(f"Invalid Apple Health XML: {exc}") from exc

        added = self._load_records(dict(record.attrib) for record in root.iter("Record"))
        logger.info(
            "Apple Health XML: loaded %d samples (%d skipped)", added, self.skipped
        )
        return added

    def load_json(self, data: dict) -> int:
        """Add records from a JSON export.

        Returns:
            Number of samples added.
        """
        records = data.get("records", []) if isinstance(data, dict) else []
        if not isinstance(records, list):
            raise ValueError("JSON export 'records' must be a list")
        added = self._load_records(r for r in records if isinstance(r, dict))
        logger.info(
            "Apple Health JSON: loaded %d samples (%d skipped)", added, self.skipped
        )
        return added

    def _load_records(self, records) -> int:
        samples: list[HealthSample] = []
        for rec in records:
            sample = self._to_sample(rec)
            if sample is None:
                continue
            samples.append(sample)
        self.add(samples)
        return len(samples)

    def _to_sample(self, rec: dict) -> HealthSample | None:
        rec_type = rec.get("type", "")
        if rec_type not in _TRACKED_TYPES:
            return None

        start = self._parse_date(rec.get("startDate"))
        end = self._parse_date(rec.get("endDate")) or start
        if start is None or end is None:
            self.skipped += 1
            return None

        if rec_type in _CATEGORY_TYPES:
            return HealthSample(
                type_id=rec_type,
                value=0.0,
                unit="",
                start=start,
                end=end,
                category=str(rec.get("value", "")),
                source_name=rec.get("sourceName"),
            )

        try:
            value = float(rec.get("value"))
        except (TypeError, ValueError):
            self.skipped += 1
            return None

        return HealthSample(
            type_id=rec_type,
            value=value,
            unit=str(rec.get("unit", "")),
            start=start,
            end=end,
            source_name=rec.get("sourceName"),
        )

    def _parse_date(self, value: object) -> datetime | None:
        """Parse an export timestamp; naive values get ``default_tz``."""
        if not value or not isinstance(value, str):
            return None
        try:
            return datetime.strptime(value, _EXPORT_DATE_FORMAT)
        except ValueError:
            pass
        try:
            dt = datetime.fromisoformat(value.replace("Z", "+00:00"))
        except ValueError:
            logger.warning("Could not parse Apple Health date: %r", value)
            return None
        if dt.tzinfo is None:
            dt = dt.replace(tzinfo=self._default_tz)
        return dt
