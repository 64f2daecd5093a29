from pydantic import Field
from typing import Optional
from datetime import datetime
from enum import Enum
import uuid

from domains.property.models.property import CamelModel


class LeadType(str, Enum):
    contact = "contact"
    property_inquiry = "property_inquiry"
    sell_private = "sell_private"
    sell_professional = "sell_professional"
    sell_developer = "sell_developer"
    off_market = "off_market"
    auction = "auction"
    newsletter = "newsletter"
    viewing_request = "viewing_request"
    other = "other"


class Lead(CamelModel):
    """
    A captured contact-form submission.
    All free-text fields are already sanitized when a Lead is built.
    """

    id: str = Field(default_factory=lambda: f"lead-{uuid.uuid4().hex[:12]}")
    name: str
    email: str
    phone: Optional[str] = None
    subject: Optional[str] = None
    message: str
    type: LeadType = LeadType.contact
    status: str = "new"  # new, contacted, closed
    property_slug: Optional[str] = None
    source: str = "website"
    locale: str = "en"
    priority: Optional[str] = None
    notes: Optional[str] = None
    contacted_at: Optional[datetime] = None
    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: Optional[datetime] = None
