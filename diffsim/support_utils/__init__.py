from .utils import as_frame, compare_tables, expected_decision_time, summarize

__all__ = ["as_frame", "compare_tables", "expected_decision_time", "summarize"]
