import datetime
import uuid
from typing import Any, Dict, Optional

from pydantic import Field

from .base import MongoDocument, utcnow


class IssueLogDB(MongoDocument): # Sink for conditions that need manual follow-up
    id: str = Field(default_factory=lambda: str(uuid.uuid4().hex))
    message: str
    ip: Optional[str] = None
    data: Dict[str, Any] = Field(default_factory=dict)
    created_at: datetime.datetime = Field(default_factory=utcnow)
