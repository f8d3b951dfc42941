from sqlmodel import SQLModel, Field
from typing import Optional
from datetime import datetime
from decimal import Decimal


class Tax(SQLModel, table=True):
    __tablename__ = "taxes"

    id: Optional[int] = Field(default=None, primary_key=True)
    name: str = Field(unique=True, index=True, max_length=120)
    # Percent, e.g. 15 for 15% VAT
    rate: Decimal = Field(max_digits=5, decimal_places=2)
    is_active: bool = Field(default=True)

    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)
