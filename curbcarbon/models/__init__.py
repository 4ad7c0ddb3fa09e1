from .event_record import EventRecordRow
from .daily_summary import DailySummaryRow
from .kv_record import KeyValueRecord

__all__ = [
    "EventRecordRow",
    "DailySummaryRow",
    "KeyValueRecord",
]
