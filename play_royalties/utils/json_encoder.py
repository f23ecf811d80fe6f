"""JSON encoding for replay results"""
import dataclasses
import json
from datetime import datetime
from enum import Enum

from pydantic import BaseModel

class ReplayResultEncoder(json.JSONEncoder):
    """Encodes datetimes, enums, dataclasses and pydantic models found in replay results"""
    def default(self, obj):
        if isinstance(obj, datetime):
            return obj.isoformat()
        if isinstance(obj, Enum):
            return obj.value
        if isinstance(obj, BaseModel):
            return obj.model_dump()
        if dataclasses.is_dataclass(obj) and not isinstance(obj, type):
            return dataclasses.asdict(obj)
        return super().default(obj)

def json_dumps(obj, **kwargs) -> str:
    return json.dumps(obj, cls=ReplayResultEncoder, **kwargs)
