# Database models
from app.models.venue import Venue
from app.models.event import Event, EventEntryPrice, EventStatus, Gender
from app.models.promo import DiscountType, Promo, PromoStatus
from app.models.staff_ledger import BarSale, CloakroomSale, Entry, EventTable, TableSale

__all__ = [
    "Venue",
    "Event",
    "EventEntryPrice",
    "EventStatus",
    "Gender",
    "Promo",
    "DiscountType",
    "PromoStatus",
    "Entry",
    "BarSale",
    "CloakroomSale",
    "EventTable",
    "TableSale",
]
