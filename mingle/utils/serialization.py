from dataclasses import fields, is_dataclass
from datetime import date, datetime
from typing import Any

from mingle.utils.time_utils import dt_to_utc_iso


def json_compat(obj: Any) -> Any:
    """
    Convert dataclasses/enums/datetime/date into JSON-serializable structures.
    Used by the API layer to render domain objects.
    """
    if obj is None:
        return None
    if isinstance(obj, (str, int, float, bool)):
        return obj
    if isinstance(obj, datetime):
        return dt_to_utc_iso(obj)
    if isinstance(obj, date):
        return obj.isoformat()
    if hasattr(obj, "to_dict") and callable(obj.to_dict):
        return obj.to_dict()
    if is_dataclass(obj):
        # Shallow walk so nested objects go through their own to_dict()
        return {f.name: json_compat(getattr(obj, f.name)) for f in fields(obj)}
    if isinstance(obj, dict):
        return {str(k): json_compat(v) for k, v in obj.items()}
    if isinstance(obj, (list, tuple, set)):
        return [json_compat(v) for v in obj]
    if hasattr(obj, "value"):
        return obj.value
    return str(obj)
