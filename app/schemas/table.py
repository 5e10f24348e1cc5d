"""Restaurant table schemas"""

from datetime import datetime
from typing import Optional
from pydantic import BaseModel, ConfigDict, Field, model_validator

from app.models.table import TableType


class TableCreate(BaseModel):
    """Create table request"""
    number: int = Field(gt=0)
    name: Optional[str] = None
    capacity: int = Field(gt=0)
    min_party_size: int = Field(1, ge=1)
    table_type: TableType = TableType.STANDARD
    location_description: Optional[str] = None
    is_active: bool = True

    @model_validator(mode="after")
    def check_sizes(self):
        if self.min_party_size > self.capacity:
            raise ValueError("min_party_size cannot exceed capacity")
        return self


class TableUpdate(BaseModel):
    """Update table request"""
    name: Optional[str] = None
    capacity: Optional[int] = Field(None, gt=0)
    min_party_size: Optional[int] = Field(None, ge=1)
    table_type: Optional[TableType] = None
    location_description: Optional[str] = None
    is_active: Optional[bool] = None


class TableResponse(BaseModel):
    """Table response"""
    model_config = ConfigDict(from_attributes=True)

    id: int
    number: int
    name: Optional[str]
    capacity: int
    min_party_size: int
    table_type: TableType
    location_description: Optional[str]
    is_active: bool
    created_at: datetime
