from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field


def utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat().replace('+00:00', 'Z')


class TableSummary(BaseModel):
    id: str
    name: str
    row_count: int = 0
    updated_at: Optional[str] = None
    is_view: bool = False

    @classmethod
    def from_api(cls, listing: Dict[str, Any], details: Dict[str, Any]) -> 'TableSummary':
        table_type = details.get('tableType') or listing.get('tableType')
        return cls(
            id=listing['id'],
            name=listing.get('name') or listing['id'],
            row_count=details.get('rowCount') or 0,
            updated_at=details.get('updatedAt') or utc_now_iso(),
            is_view=table_type == 'view',
        )

    @property
    def label(self) -> str:
        kind = 'view' if self.is_view else 'table'
        return f"{self.name} ({self.row_count} rows, {kind})"


class SavedDocument(BaseModel):
    """A document the user chose to remember, stored with camelCase keys."""

    model_config = ConfigDict(populate_by_name=True)

    api_token: str = Field(alias='apiToken')
    doc_id: str = Field(alias='docId')
    doc_name: str = Field(alias='docName')
    saved_at: str = Field(default_factory=utc_now_iso, alias='savedAt')

    def to_storage(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True)
