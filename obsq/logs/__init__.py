"""Log record flattening."""

from obsq.logs.records import FlatLogRecord, iter_flat_records, severity_range

__all__ = ["FlatLogRecord", "iter_flat_records", "severity_range"]
