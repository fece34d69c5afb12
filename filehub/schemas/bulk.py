"""Bulk operation schemas."""

from enum import Enum
from typing import List, Optional

from pydantic import Field

from .common import ApiModel


class BulkOperation(str, Enum):
    DELETE = "delete"
    MOVE = "move"
    COPY = "copy"
    RENAME = "rename"


class BulkOperationRequest(ApiModel):
    operation: BulkOperation
    file_ids: List[str] = Field(..., min_length=1)
    target_folder_id: Optional[str] = None
    rename_pattern: Optional[str] = None
    permanent: bool = False

    @property
    def has_target_folder(self) -> bool:
        """True when ``targetFolderId`` was sent, even as null (root)."""
        return "target_folder_id" in self.model_fields_set

    model_config = {
        "json_schema_extra": {
            "examples": [
                {"operation": "move", "fileIds": ["f1", "f2"], "targetFolderId": None},
                {"operation": "rename", "fileIds": ["f1"], "renamePattern": "{{name}}_{{index}}"},
            ]
        }
    }


class BulkItemResult(ApiModel):
    id: str
    success: bool
    error: Optional[str] = None
    new_name: Optional[str] = None
    copy_id: Optional[str] = None


class BulkOperationResponse(ApiModel):
    results: List[BulkItemResult]
