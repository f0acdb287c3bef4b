from functools import lru_cache
from importlib.resources import files
import json

REPORT_SCHEMA = "perf_report"


@lru_cache(maxsize=None)
def _schema_text(name: str) -> str:
    p = files(__package__) / f"{name}.schema.json"
    return p.read_text(encoding="utf-8")


def load_json_schema(name: str = REPORT_SCHEMA) -> dict:
    """
    Load a schema by filename (without extension) from this package folder.
    Example: load_json_schema("perf_report")
    """
    return json.loads(_schema_text(name))


def compact_json_schema(name: str = REPORT_SCHEMA) -> str:
    """Single-line rendering of a schema, for embedding in a model prompt."""
    return json.dumps(load_json_schema(name), ensure_ascii=False, separators=(",", ":"))
