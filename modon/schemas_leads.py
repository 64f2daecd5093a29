"""
modon/schemas_leads.py

Pydantic schemas for contact-form submissions and the admin lead list.
Validation only; sanitization happens in the route before a Lead is built.
"""

from __future__ import annotations

from typing import List, Literal, Optional

from pydantic import Field, field_validator, model_validator

from domains.leads.models.lead import Lead, LeadType
from domains.property.models.property import CamelModel
from modon.config import DEFAULT_LOCALE, LOCALES


class LeadCreateRequest(CamelModel):
    """Accepts either `name` or `firstName`/`lastName` (the sell forms split them)."""
    name: Optional[str] = Field(None, max_length=100)
    first_name: Optional[str] = Field(None, max_length=50)
    last_name: Optional[str] = Field(None, max_length=50)
    email: str = Field(..., max_length=254)
    phone: Optional[str] = Field(None, max_length=30)
    subject: Optional[str] = Field(None, max_length=200)
    message: str = Field(..., min_length=5, max_length=5000)
    type: LeadType = LeadType.contact
    property_slug: Optional[str] = Field(None, max_length=200)
    locale: str = DEFAULT_LOCALE

    @field_validator("locale")
    @classmethod
    def supported_locale(cls, v: str) -> str:
        if v not in LOCALES:
            raise ValueError(f"locale must be one of {', '.join(LOCALES)}")
        return v

    @model_validator(mode="after")
    def require_name(self):
        if not (self.name or self.first_name or self.last_name):
            raise ValueError("name is required")
        return self

    def full_name(self) -> str:
        if self.name:
            return self.name
        return " ".join(part for part in (self.first_name, self.last_name) if part)


class LeadUpdateRequest(CamelModel):
    """Dashboard follow-up on a lead. Only the fields present change."""
    id: str = Field(..., min_length=1, max_length=50)
    status: Optional[Literal["new", "contacted", "closed"]] = None
    priority: Optional[Literal["low", "normal", "high"]] = None
    notes: Optional[str] = Field(None, max_length=2000)


class LeadCreatedResponse(CamelModel):
    success: bool = True
    id: str
    message: str = "Thank you, we will be in touch shortly."


class LeadUpdatedResponse(CamelModel):
    success: bool = True
    message: str = "Lead updated successfully"
    data: Lead


class LeadListResponse(CamelModel):
    success: bool = True
    data: List[Lead] = Field(default_factory=list)
    total: int = 0
