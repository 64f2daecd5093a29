"""
modon/seed_data.py

High-fidelity mock listings for simulation mode (no database configured).
Titles and cities carry Arabic copy for the /ar site.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, List

from domains.property.models.property import Property


SEED_LISTINGS: List[Dict[str, Any]] = [
    {
        "id": "prop-001",
        "slug": "marbella-golden-mile-villa",
        "reference_code": "MOD-MRB-001",
        "title": "Contemporary Villa on the Golden Mile",
        "title_ar": "فيلا عصرية على الميل الذهبي",
        "description": "Six-bedroom villa a short walk from the beach with panoramic sea views.",
        "type": "villa",
        "listing_type": "sale",
        "status": "published",
        "location": {"city": "Marbella", "city_ar": "ماربيا", "region": "Andalusia", "country": "Spain",
                     "latitude": 36.5101, "longitude": -4.9175},
        "specs": {"bedrooms": 6, "bathrooms": 7, "area": 820, "plot_area": 2400,
                  "pool": True, "garden": True, "seaview": True},
        "price": {"amount": 8_950_000, "currency": "EUR"},
        "flags": {"featured": True, "exclusive": True},
        "features": ["smart home", "wine cellar", "home cinema"],
        "lifestyle": ["beach", "golf"],
        "agent_id": "agent-sofia",
        "created_at": datetime(2025, 11, 3, 9, 30),
    },
    {
        "id": "prop-002",
        "slug": "dubai-marina-penthouse",
        "reference_code": "MOD-DXB-002",
        "title": "Sky Penthouse with Marina Views",
        "title_ar": "بنتهاوس فاخر بإطلالة على المارينا",
        "description": "Full-floor penthouse with private terrace pool above Dubai Marina.",
        "type": "penthouse",
        "listing_type": "sale",
        "status": "published",
        "location": {"city": "Dubai", "city_ar": "دبي", "region": "Dubai", "country": "UAE",
                     "latitude": 25.0805, "longitude": 55.1403},
        "specs": {"bedrooms": 4, "bathrooms": 5, "area": 610, "pool": True, "seaview": True},
        "price": {"amount": 5_400_000, "currency": "AED"},
        "flags": {"featured": True},
        "features": ["concierge", "private elevator"],
        "lifestyle": ["city", "marina"],
        "agent_id": "agent-omar",
        "created_at": datetime(2025, 12, 14, 15, 0),
    },
    {
        "id": "prop-003",
        "slug": "new-cairo-family-villa",
        "reference_code": "MOD-CAI-003",
        "title": "Family Villa in a Gated Compound",
        "title_ar": "فيلا عائلية في كمبوند مغلق",
        "description": "Five-bedroom villa with landscaped garden in a secure New Cairo compound.",
        "type": "villa",
        "listing_type": "sale",
        "status": "published",
        "location": {"city": "New Cairo", "city_ar": "القاهرة الجديدة", "region": "Cairo", "country": "Egypt"},
        "specs": {"bedrooms": 5, "bathrooms": 4, "area": 450, "plot_area": 900, "pool": True, "garden": True},
        "price": {"amount": 950_000, "currency": "USD"},
        "features": ["staff quarters", "clubhouse access"],
        "lifestyle": ["family"],
        "agent_id": "agent-omar",
        "created_at": datetime(2025, 10, 21, 11, 15),
    },
    {
        "id": "prop-004",
        "slug": "north-coast-beach-house",
        "reference_code": "MOD-NC-004",
        "title": "Beachfront House on the North Coast",
        "title_ar": "منزل على الشاطئ في الساحل الشمالي",
        "description": "Direct beach access, open-plan living and a shaded garden terrace.",
        "type": "house",
        "listing_type": "sale",
        "status": "published",
        "location": {"city": "North Coast", "city_ar": "الساحل الشمالي", "region": "Matrouh", "country": "Egypt"},
        "specs": {"bedrooms": 4, "bathrooms": 3, "area": 310, "garden": True, "seaview": True},
        "price": {"amount": 720_000, "currency": "USD"},
        "flags": {"featured": True},
        "lifestyle": ["beach", "family"],
        "agent_id": "agent-layla",
        "created_at": datetime(2026, 1, 8, 10, 0),
    },
    {
        "id": "prop-005",
        "slug": "zamalek-nile-apartment",
        "reference_code": "MOD-CAI-005",
        "title": "Nile-View Apartment in Zamalek",
        "title_ar": "شقة بإطلالة على النيل في الزمالك",
        "description": "Restored period apartment with high ceilings and river views.",
        "type": "apartment",
        "listing_type": "rent",
        "status": "published",
        "location": {"city": "Cairo", "city_ar": "القاهرة", "region": "Cairo", "country": "Egypt"},
        "specs": {"bedrooms": 3, "bathrooms": 2, "area": 240},
        "price": {"amount": 4_500, "currency": "USD"},
        "lifestyle": ["city"],
        "agent_id": "agent-layla",
        "created_at": datetime(2025, 9, 30, 8, 45),
    },
    {
        "id": "prop-006",
        "slug": "amsterdam-canal-house",
        "reference_code": "MOD-AMS-006",
        "title": "Restored Canal House on the Herengracht",
        "title_ar": "منزل مرمم على قناة هيرنغراخت",
        "description": "Seventeenth-century canal house with a private garden and modern interiors.",
        "type": "house",
        "listing_type": "sale",
        "status": "published",
        "location": {"city": "Amsterdam", "city_ar": "أمستردام", "region": "North Holland", "country": "Netherlands"},
        "specs": {"bedrooms": 5, "bathrooms": 3, "area": 390, "garden": True},
        "price": {"amount": 4_250_000, "currency": "EUR"},
        "features": ["original features", "roof terrace"],
        "lifestyle": ["city", "heritage"],
        "agent_id": "agent-sofia",
        "created_at": datetime(2025, 8, 17, 14, 20),
    },
    {
        "id": "prop-007",
        "slug": "riyadh-diplomatic-quarter-villa",
        "reference_code": "MOD-RUH-007",
        "title": "Villa in the Diplomatic Quarter",
        "title_ar": "فيلا في الحي الدبلوماسي",
        "description": "Private villa with majlis, courtyard pool and mature gardens.",
        "type": "villa",
        "listing_type": "sale",
        "status": "published",
        "location": {"city": "Riyadh", "city_ar": "الرياض", "region": "Riyadh", "country": "Saudi Arabia"},
        "specs": {"bedrooms": 7, "bathrooms": 8, "area": 1100, "plot_area": 2000, "pool": True, "garden": True},
        "price": {"amount": 12_000_000, "currency": "SAR"},
        "features": ["majlis", "driver quarters"],
        "lifestyle": ["family"],
        "agent_id": "agent-omar",
        "created_at": datetime(2026, 2, 2, 12, 0),
    },
    {
        "id": "prop-008",
        "slug": "london-mayfair-penthouse",
        "reference_code": "MOD-LDN-008",
        "title": "Mayfair Penthouse off Grosvenor Square",
        "title_ar": "بنتهاوس في مايفير قرب ساحة غروسفينور",
        "description": "Lateral penthouse with wraparound terrace, discreetly offered to members.",
        "type": "penthouse",
        "listing_type": "sale",
        "status": "published",
        "location": {"city": "London", "city_ar": "لندن", "region": "Greater London", "country": "United Kingdom"},
        "specs": {"bedrooms": 4, "bathrooms": 4, "area": 480},
        "price": {"amount": 9_750_000, "currency": "GBP"},
        "flags": {"exclusive": True, "off_market": True},
        "features": ["porter", "gym"],
        "lifestyle": ["city"],
        "agent_id": "agent-sofia",
        "created_at": datetime(2026, 1, 20, 16, 30),
    },
    {
        "id": "prop-009",
        "slug": "sheikh-zayed-commercial-plaza",
        "reference_code": "MOD-CAI-009",
        "title": "Retail Plaza in Sheikh Zayed",
        "title_ar": "مجمع تجاري في الشيخ زايد",
        "description": "Fully let retail plaza with anchor tenants and parking.",
        "type": "commercial",
        "listing_type": "sale",
        "status": "published",
        "location": {"city": "Sheikh Zayed", "city_ar": "الشيخ زايد", "region": "Giza", "country": "Egypt"},
        "specs": {"area": 3200},
        "price": {"amount": 6_300_000, "currency": "USD"},
        "agent_id": "agent-layla",
        "created_at": datetime(2025, 7, 5, 9, 0),
    },
    {
        "id": "prop-010",
        "slug": "el-gouna-waterfront-land",
        "reference_code": "MOD-HRG-010",
        "title": "Waterfront Plot in El Gouna",
        "title_ar": "قطعة أرض على الواجهة المائية في الجونة",
        "description": "Lagoon-front building plot with approved villa permits.",
        "type": "land",
        "listing_type": "sale",
        "status": "published",
        "location": {"city": "El Gouna", "city_ar": "الجونة", "region": "Red Sea", "country": "Egypt"},
        "specs": {"area": 0, "plot_area": 1500, "seaview": True},
        "price": {"amount": 480_000, "currency": "USD"},
        "lifestyle": ["beach"],
        "agent_id": "agent-layla",
        "created_at": datetime(2025, 12, 1, 13, 10),
    },
    {
        "id": "prop-011",
        "slug": "marbella-hillside-villa-draft",
        "title": "Hillside Villa in Benahavis",
        "title_ar": "فيلا على التلال في بيناهافيس",
        "description": "Draft listing awaiting photography.",
        "type": "villa",
        "listing_type": "sale",
        "status": "draft",
        "location": {"city": "Marbella", "city_ar": "ماربيا", "region": "Andalusia", "country": "Spain"},
        "specs": {"bedrooms": 5, "bathrooms": 5, "area": 600, "pool": True},
        "price": {"amount": 3_900_000, "currency": "EUR"},
        "agent_id": "agent-sofia",
        "created_at": datetime(2026, 3, 1, 10, 0),
    },
    {
        "id": "prop-012",
        "slug": "dubai-hills-townhouse-sold",
        "title": "Townhouse in Dubai Hills Estate",
        "title_ar": "تاون هاوس في دبي هيلز",
        "description": "Sold; kept for the agent portfolio.",
        "type": "house",
        "listing_type": "sale",
        "status": "sold",
        "location": {"city": "Dubai", "city_ar": "دبي", "region": "Dubai", "country": "UAE"},
        "specs": {"bedrooms": 4, "bathrooms": 4, "area": 290, "garden": True},
        "price": {"amount": 3_100_000, "currency": "AED"},
        "agent_id": "agent-omar",
        "created_at": datetime(2025, 6, 12, 9, 0),
    },
]


def seed_properties() -> List[Property]:
    """Fresh Property objects for the seed listings (safe to mutate)."""
    return [Property.model_validate(row) for row in SEED_LISTINGS]
