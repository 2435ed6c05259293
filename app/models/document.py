from sqlmodel import SQLModel, Field, Column, DateTime
from sqlalchemy import JSON
from datetime import datetime, timezone
from typing import Any, Dict

class StoredDocument(SQLModel, table=True):
    """One document of the key-path store, addressed by its full path"""

    path: str = Field(primary_key=True)
    parent: str = Field(index=True)  # collection path the document lives in
    data: Dict[str, Any] = Field(default_factory=dict, sa_column=Column(JSON))
    updated_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        sa_column=Column(DateTime(timezone=True))
    )
