"""
modon/store_sql.py

SQL-backed property store (SQLite for local dev, PostgreSQL in production).

DATABASE_URL selects the backend. Queries are written once with named
parameters and portable SQL (LOWER(..) LIKE instead of ILIKE) so the same
statements run on both engines. SQLAlchemy calls block, so every public
coroutine hands its work to a worker thread.

Capabilities: the required PropertyStore interface, price range, type and
city counts, increment_views, and PropertyWriter (create, update, delete)
for the admin routes.
"""

from __future__ import annotations

import asyncio
import json
import uuid
from datetime import datetime
from typing import Any, Dict, List, Optional, Tuple
from urllib.parse import urlparse

from sqlalchemy import create_engine, pool, text
from sqlalchemy.engine import Connection, Engine

from domains.property.models.property import Property, PropertyStatus
from domains.property.models.search import SearchCriteria, SortSpec
from modon.config import DATABASE_URL, IS_DEV
from modon.stores import PaginatedResult, build_pagination


SCHEMA_STATEMENTS = [
    """
    CREATE TABLE IF NOT EXISTS properties (
        id TEXT PRIMARY KEY,
        slug TEXT UNIQUE NOT NULL,
        reference_code TEXT,
        title TEXT NOT NULL,
        title_ar TEXT,
        description TEXT,
        description_ar TEXT,
        property_type TEXT NOT NULL,
        listing_type TEXT NOT NULL,
        status TEXT NOT NULL DEFAULT 'draft',
        address TEXT,
        city TEXT,
        city_ar TEXT,
        region TEXT,
        country TEXT,
        latitude DOUBLE PRECISION,
        longitude DOUBLE PRECISION,
        bedrooms INTEGER DEFAULT 0,
        bathrooms INTEGER DEFAULT 0,
        area DOUBLE PRECISION DEFAULT 0,
        plot_area DOUBLE PRECISION,
        pool BOOLEAN DEFAULT FALSE,
        garden BOOLEAN DEFAULT FALSE,
        seaview BOOLEAN DEFAULT FALSE,
        price DOUBLE PRECISION NOT NULL,
        currency TEXT NOT NULL DEFAULT 'EUR',
        price_on_request BOOLEAN DEFAULT FALSE,
        featured BOOLEAN DEFAULT FALSE,
        exclusive BOOLEAN DEFAULT FALSE,
        off_market BOOLEAN DEFAULT FALSE,
        features TEXT,
        lifestyle TEXT,
        image_url TEXT,
        agent_id TEXT,
        views_count INTEGER DEFAULT 0,
        created_at TEXT NOT NULL,
        updated_at TEXT NOT NULL
    )
    """,
    "CREATE INDEX IF NOT EXISTS idx_properties_status ON properties(status)",
    "CREATE INDEX IF NOT EXISTS idx_properties_status_type ON properties(status, property_type)",
    "CREATE INDEX IF NOT EXISTS idx_properties_city ON properties(city)",
    "CREATE INDEX IF NOT EXISTS idx_properties_agent ON properties(agent_id)",
]

# Property field path -> column; anything else falls back to created_at
SORT_COLUMNS = {
    "price.amount": "price",
    "created_at": "created_at",
    "updated_at": "updated_at",
    "specs.area": "area",
    "view_count": "views_count",
}
DEFAULT_SORT = SortSpec(field="created_at", direction="desc")

COLUMNS = [
    "id", "slug", "reference_code", "title", "title_ar", "description", "description_ar",
    "property_type", "listing_type", "status", "address", "city", "city_ar", "region",
    "country", "latitude", "longitude", "bedrooms", "bathrooms", "area", "plot_area",
    "pool", "garden", "seaview", "price", "currency", "price_on_request", "featured",
    "exclusive", "off_market", "features", "lifestyle", "image_url", "agent_id",
    "views_count", "created_at", "updated_at",
]


def create_engine_for(url: str) -> Engine:
    """Engine with connection pooling; postgres:// URLs are normalized for SQLAlchemy."""
    parsed = urlparse(url)
    if not parsed.scheme:
        raise ValueError(f"Invalid DATABASE_URL: {url[:20]}...")

    if url.startswith("postgres://"):
        url = "postgresql://" + url[len("postgres://"):]

    if url.startswith("sqlite"):
        print("[DB] Using SQLite (local dev mode)")
        return create_engine(url, connect_args={"check_same_thread": False})

    print(f"[DB] Using PostgreSQL ({parsed.hostname})")
    return create_engine(
        url,
        poolclass=pool.QueuePool,
        pool_size=5,
        max_overflow=10,
        pool_pre_ping=True,  # Verify connections before use
        echo=False,
    )


def property_to_row(prop: Property) -> Dict[str, Any]:
    loc, specs, price, flags = prop.location, prop.specs, prop.price, prop.flags
    return {
        "id": prop.id,
        "slug": prop.slug,
        "reference_code": prop.reference_code,
        "title": prop.title,
        "title_ar": prop.title_ar,
        "description": prop.description,
        "description_ar": prop.description_ar,
        "property_type": prop.type.value,
        "listing_type": prop.listing_type.value,
        "status": prop.status.value,
        "address": loc.address,
        "city": loc.city,
        "city_ar": loc.city_ar,
        "region": loc.region,
        "country": loc.country,
        "latitude": loc.latitude,
        "longitude": loc.longitude,
        "bedrooms": specs.bedrooms,
        "bathrooms": specs.bathrooms,
        "area": specs.area,
        "plot_area": specs.plot_area,
        "pool": specs.pool,
        "garden": specs.garden,
        "seaview": specs.seaview,
        "price": price.amount,
        "currency": price.currency.value,
        "price_on_request": price.price_on_request,
        "featured": flags.featured,
        "exclusive": flags.exclusive,
        "off_market": flags.off_market,
        "features": json.dumps(prop.features, ensure_ascii=False),
        "lifestyle": json.dumps(prop.lifestyle, ensure_ascii=False),
        "image_url": prop.image_url,
        "agent_id": prop.agent_id,
        "views_count": prop.view_count,
        "created_at": prop.created_at.isoformat(),
        "updated_at": prop.updated_at.isoformat(),
    }


def row_to_property(row: Dict[str, Any]) -> Property:
    def tags(raw: Optional[str]) -> List[str]:
        try:
            return json.loads(raw) if raw else []
        except (json.JSONDecodeError, TypeError):
            return []

    return Property(
        id=row["id"],
        slug=row["slug"],
        reference_code=row.get("reference_code"),
        title=row["title"],
        title_ar=row.get("title_ar"),
        description=row.get("description") or "",
        description_ar=row.get("description_ar"),
        type=row["property_type"],
        listing_type=row["listing_type"],
        status=row["status"],
        location={
            "address": row.get("address"),
            "city": row.get("city") or "",
            "city_ar": row.get("city_ar"),
            "region": row.get("region"),
            "country": row.get("country") or "",
            "latitude": row.get("latitude"),
            "longitude": row.get("longitude"),
        },
        specs={
            "bedrooms": row.get("bedrooms") or 0,
            "bathrooms": row.get("bathrooms") or 0,
            "area": row.get("area") or 0,
            "plot_area": row.get("plot_area"),
            "pool": bool(row.get("pool")),
            "garden": bool(row.get("garden")),
            "seaview": bool(row.get("seaview")),
        },
        price={
            "amount": row["price"],
            "currency": row.get("currency") or "EUR",
            "price_on_request": bool(row.get("price_on_request")),
        },
        flags={
            "featured": bool(row.get("featured")),
            "exclusive": bool(row.get("exclusive")),
            "off_market": bool(row.get("off_market")),
        },
        features=tags(row.get("features")),
        lifestyle=tags(row.get("lifestyle")),
        image_url=row.get("image_url"),
        agent_id=row.get("agent_id"),
        view_count=row.get("views_count") or 0,
        created_at=datetime.fromisoformat(row["created_at"]),
        updated_at=datetime.fromisoformat(row["updated_at"]),
    )


LIKE_ESCAPE = "ESCAPE '\\'"


def like_pattern(term: str) -> str:
    """Lower-cased substring pattern; % and _ in the term match themselves."""
    escaped = term.lower().replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
    return f"%{escaped}%"


def build_where(criteria: SearchCriteria) -> Tuple[str, Dict[str, Any]]:
    """WHERE clause and parameters for a search. Values are always bound, never inlined."""
    clauses = ["status = :status"]
    params: Dict[str, Any] = {"status": criteria.status.value}

    def add(clause: str, **values: Any) -> None:
        clauses.append(clause)
        params.update(values)

    if criteria.type:
        add("property_type = :property_type", property_type=criteria.type.value)
    if criteria.listing_type:
        add("listing_type = :listing_type", listing_type=criteria.listing_type.value)
    if criteria.agent_id:
        add("agent_id = :agent_id", agent_id=criteria.agent_id)
    if criteria.query:
        columns = ("title", "COALESCE(title_ar, '')", "COALESCE(description, '')", "city", "country")
        add(
            "(" + " OR ".join(f"LOWER({c}) LIKE :q {LIKE_ESCAPE}" for c in columns) + ")",
            q=like_pattern(criteria.query),
        )
    if criteria.city:
        add(f"LOWER(city) LIKE :city {LIKE_ESCAPE}", city=like_pattern(criteria.city))
    if criteria.region:
        add("LOWER(region) = :region", region=criteria.region.lower())
    if criteria.country:
        add("LOWER(country) = :country", country=criteria.country.lower())
    if criteria.currency:
        add("currency = :currency", currency=criteria.currency)

    ranges = (
        ("price", ">=", "min_price", criteria.min_price),
        ("price", "<=", "max_price", criteria.max_price),
        ("bedrooms", ">=", "min_bedrooms", criteria.min_bedrooms),
        ("bedrooms", "<=", "max_bedrooms", criteria.max_bedrooms),
        ("bathrooms", ">=", "min_bathrooms", criteria.min_bathrooms),
        ("bathrooms", "<=", "max_bathrooms", criteria.max_bathrooms),
        ("area", ">=", "min_area", criteria.min_area),
        ("area", "<=", "max_area", criteria.max_area),
    )
    for column, op, name, value in ranges:
        if value is not None:
            add(f"{column} {op} :{name}", **{name: value})

    for column, tags in (("features", criteria.features), ("lifestyle", criteria.lifestyle)):
        for i, tag in enumerate(tags or []):
            name = f"{column}_{i}"
            add(f"LOWER(COALESCE({column}, '')) LIKE :{name} {LIKE_ESCAPE}", **{name: like_pattern(f'"{tag}"')})

    flags = (
        ("pool", criteria.has_pool),
        ("garden", criteria.has_garden),
        ("seaview", criteria.has_seaview),
        ("featured", criteria.is_featured),
        ("off_market", criteria.is_off_market),
    )
    for column, value in flags:
        if value is not None:
            add(f"{column} = :flag_{column}", **{f"flag_{column}": value})

    return " AND ".join(clauses), params


def order_by(sort: Optional[SortSpec]) -> str:
    sort = sort or DEFAULT_SORT
    column = SORT_COLUMNS.get(sort.field, "created_at")
    direction = "ASC" if sort.direction == "asc" else "DESC"
    # id as tie-breaker keeps pages stable
    return f"{column} {direction}, id ASC"


class SqlPropertyStore:
    """Pass-through to the managed database configured by DATABASE_URL."""

    def __init__(self, url: str = DATABASE_URL, engine: Optional[Engine] = None):
        self.engine = engine or create_engine_for(url)

    # ------------------------------------------------------------------
    # Schema & seeding
    # ------------------------------------------------------------------
    def init_schema(self) -> None:
        with self.engine.begin() as conn:
            for statement in SCHEMA_STATEMENTS:
                conn.execute(text(statement))
        print("[MIGRATION] Ensured properties table and indexes")

    def seed_if_empty(self, properties: List[Property]) -> int:
        with self.engine.begin() as conn:
            count = conn.execute(text("SELECT COUNT(*) FROM properties")).scalar_one()
            if count:
                return 0
            for prop in properties:
                self._insert(conn, prop)
        print(f"[MIGRATION] Seeded {len(properties)} properties")
        return len(properties)

    @staticmethod
    def _insert(conn: Connection, prop: Property) -> None:
        names = ", ".join(COLUMNS)
        values = ", ".join(f":{c}" for c in COLUMNS)
        conn.execute(text(f"INSERT INTO properties ({names}) VALUES ({values})"), property_to_row(prop))

    # ------------------------------------------------------------------
    # Blocking helpers (run in worker threads)
    # ------------------------------------------------------------------
    def _fetch(self, sql: str, params: Optional[Dict[str, Any]] = None) -> List[Property]:
        with self.engine.connect() as conn:
            rows = conn.execute(text(sql), params or {}).mappings().all()
        return [row_to_property(dict(r)) for r in rows]

    def _fetch_one(self, sql: str, params: Dict[str, Any]) -> Optional[Property]:
        found = self._fetch(sql, params)
        return found[0] if found else None

    def _scalar(self, sql: str, params: Optional[Dict[str, Any]] = None) -> Any:
        with self.engine.connect() as conn:
            return conn.execute(text(sql), params or {}).scalar()

    def _page(self, where: str, params: Dict[str, Any], sort: Optional[SortSpec],
              page: int, limit: int) -> PaginatedResult:
        offset = (page - 1) * limit
        with self.engine.connect() as conn:
            total = conn.execute(text(f"SELECT COUNT(*) FROM properties WHERE {where}"), params).scalar_one()
            rows = conn.execute(
                text(f"SELECT * FROM properties WHERE {where} ORDER BY {order_by(sort)} "
                     "LIMIT :limit OFFSET :offset"),
                {**params, "limit": limit, "offset": offset},
            ).mappings().all()
        if IS_DEV:
            print(f"[STORE] sql page={page}, limit={limit}, total={total}")
        return PaginatedResult(
            data=[row_to_property(dict(r)) for r in rows],
            pagination=build_pagination(page, limit, int(total)),
        )

    # ------------------------------------------------------------------
    # Required
    # ------------------------------------------------------------------
    async def find_all(self, criteria: SearchCriteria) -> PaginatedResult:
        where, params = build_where(criteria)
        return await asyncio.to_thread(self._page, where, params, criteria.sort, criteria.page, criteria.limit)

    async def find_by_slug(self, slug: str) -> Optional[Property]:
        return await asyncio.to_thread(self._fetch_one, "SELECT * FROM properties WHERE slug = :slug", {"slug": slug})

    async def find_featured(self, limit: int) -> List[Property]:
        return await asyncio.to_thread(
            self._fetch,
            "SELECT * FROM properties WHERE featured = :featured AND status = :status "
            f"ORDER BY {order_by(None)} LIMIT :limit",
            {"featured": True, "status": PropertyStatus.published.value, "limit": limit},
        )

    async def find_similar(self, property_id: str, limit: int) -> List[Property]:
        base = await self.find_by_id(property_id)
        if base is None:
            return []
        return await asyncio.to_thread(
            self._fetch,
            "SELECT * FROM properties WHERE id != :id AND property_type = :property_type "
            "AND listing_type = :listing_type AND status = :status "
            f"AND price >= :low AND price <= :high ORDER BY {order_by(None)} LIMIT :limit",
            {
                "id": base.id,
                "property_type": base.type.value,
                "listing_type": base.listing_type.value,
                "status": PropertyStatus.published.value,
                "low": base.price.amount * 0.7,
                "high": base.price.amount * 1.3,
                "limit": limit,
            },
        )

    async def find_by_agent(self, agent_id: str, page: int, limit: int) -> PaginatedResult:
        return await self.find_all(SearchCriteria(agent_id=agent_id, is_off_market=False, page=page, limit=limit))

    # ------------------------------------------------------------------
    # Optional capabilities
    # ------------------------------------------------------------------
    async def get_price_range(self, status: PropertyStatus) -> Dict[str, float]:
        def query() -> Dict[str, float]:
            with self.engine.connect() as conn:
                row = conn.execute(
                    text("SELECT MIN(price) AS min_price, MAX(price) AS max_price FROM properties WHERE status = :status"),
                    {"status": status.value},
                ).mappings().one()
            return {"min": row["min_price"] or 0, "max": row["max_price"] or 0}

        return await asyncio.to_thread(query)

    async def count_by_type(self, property_type: str) -> int:
        count = await asyncio.to_thread(
            self._scalar,
            "SELECT COUNT(*) FROM properties WHERE status = :status AND property_type = :property_type",
            {"status": PropertyStatus.published.value, "property_type": property_type},
        )
        return int(count or 0)

    async def count_by_city(self) -> Dict[str, int]:
        def query() -> Dict[str, int]:
            with self.engine.connect() as conn:
                rows = conn.execute(
                    text("SELECT city, COUNT(*) AS n FROM properties WHERE status = :status "
                         "GROUP BY city ORDER BY city"),
                    {"status": PropertyStatus.published.value},
                ).all()
            return {city: int(n) for city, n in rows if city}

        return await asyncio.to_thread(query)

    async def increment_views(self, property_id: str) -> None:
        def update() -> None:
            with self.engine.begin() as conn:
                conn.execute(
                    text("UPDATE properties SET views_count = COALESCE(views_count, 0) + 1 WHERE id = :id"),
                    {"id": property_id},
                )

        await asyncio.to_thread(update)

    # ------------------------------------------------------------------
    # Admin writes
    # ------------------------------------------------------------------
    async def find_by_id(self, property_id: str) -> Optional[Property]:
        return await asyncio.to_thread(self._fetch_one, "SELECT * FROM properties WHERE id = :id", {"id": property_id})

    async def list_all(self, page: int, limit: int, status: Optional[PropertyStatus] = None) -> PaginatedResult:
        if status is None:
            return await asyncio.to_thread(self._page, "1=1", {}, None, page, limit)
        return await asyncio.to_thread(self._page, "status = :status", {"status": status.value}, None, page, limit)

    async def create(self, prop: Property) -> Property:
        def insert() -> Property:
            with self.engine.begin() as conn:
                taken = conn.execute(text("SELECT 1 FROM properties WHERE slug = :slug"), {"slug": prop.slug}).first()
                created = prop
                if taken:
                    created = prop.model_copy(update={"slug": f"{prop.slug}-{uuid.uuid4().hex[:6]}"})
                self._insert(conn, created)
            return created

        return await asyncio.to_thread(insert)

    async def set_status(self, property_id: str, status: PropertyStatus) -> Optional[Property]:
        def update() -> int:
            with self.engine.begin() as conn:
                result = conn.execute(
                    text("UPDATE properties SET status = :status, updated_at = :updated_at WHERE id = :id"),
                    {"status": status.value, "updated_at": datetime.utcnow().isoformat(), "id": property_id},
                )
                return result.rowcount

        if not await asyncio.to_thread(update):
            return None
        return await self.find_by_id(property_id)

    async def update(self, property_id: str, changes: Dict[str, Any]) -> Optional[Property]:
        def write() -> Optional[Property]:
            with self.engine.begin() as conn:
                row = conn.execute(text("SELECT * FROM properties WHERE id = :id"), {"id": property_id}).mappings().first()
                if row is None:
                    return None
                current = row_to_property(dict(row))
                updated = Property.model_validate({**current.model_dump(), **changes, "updated_at": datetime.utcnow()})
                assignments = ", ".join(f"{c} = :{c}" for c in COLUMNS if c != "id")
                conn.execute(text(f"UPDATE properties SET {assignments} WHERE id = :id"), property_to_row(updated))
            return updated

        return await asyncio.to_thread(write)

    async def delete(self, property_id: str) -> bool:
        def remove() -> int:
            with self.engine.begin() as conn:
                return conn.execute(text("DELETE FROM properties WHERE id = :id"), {"id": property_id}).rowcount

        return bool(await asyncio.to_thread(remove))
