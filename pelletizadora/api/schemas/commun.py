from __future__ import annotations

from pydantic import BaseModel


class SchemaPagination(BaseModel):
    page: int
    limite: int
    total: int
    pages: int

    class Config:
        from_attributes = True
