"""Document file API request schemas"""

from typing import Any, Dict

from pydantic import BaseModel, Field


class MetadataUpdate(BaseModel):
    """Request body for PATCH /files/{file_id}/metadata; merged into existing metadata"""
    metadata: Dict[str, Any] = Field(..., description="Keys to add or overwrite")
