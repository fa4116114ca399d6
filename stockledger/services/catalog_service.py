from typing import Optional

from sqlalchemy import func, or_, select
from sqlalchemy.orm import Session

from stockledger.core.constants import AUDIT_CREATE, AUDIT_DELETE, AUDIT_UPDATE
from stockledger.core.errors import NotFound, ValidationError
from stockledger.core.identity import Operator
from stockledger.models.inventory import InventoryBalance
from stockledger.models.product import Product
from stockledger.models.stores import Store
from stockledger.schemas.product import ProductCreate, ProductUpdate
from stockledger.schemas.store import StoreCreate, StoreUpdate
from stockledger.services.audit_service import record_audit, row_values
from stockledger.services.costing import to_decimal

_STORE_FIELDS = ("code", "name", "address", "phone", "channel_id", "is_active")
_PRODUCT_FIELDS = (
    "sku",
    "name",
    "barcode",
    "category",
    "units_per_case",
    "unit_price",
    "safety_stock_case",
    "safety_stock_unit",
    "is_active",
)


def canonical_code(value: Optional[str]) -> str:
    text = (value or "").strip().upper()
    if not text:
        raise ValidationError("Code must not be blank")
    return text


def _clean_channel(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    text = value.strip()
    return text or None


# ---------------------------------------------------------------------------
# Stores
# ---------------------------------------------------------------------------


def get_store(db: Session, store_id: int) -> Store:
    store = db.get(Store, store_id)
    if store is None:
        raise NotFound("Store {} not found".format(store_id))
    return store


def list_stores(db: Session, *, include_inactive: bool = False) -> list[Store]:
    stmt = select(Store)
    if not include_inactive:
        stmt = stmt.where(Store.is_active.is_(True))
    return list(db.execute(stmt.order_by(Store.code)).scalars().all())


def get_store_by_channel(db: Session, channel_id: str) -> Store:
    store = db.execute(
        select(Store).where(Store.channel_id == channel_id, Store.is_active.is_(True))
    ).scalars().first()
    if store is None:
        raise NotFound("No active store is bound to channel {}".format(channel_id))
    return store


def _ensure_channel_free(db: Session, channel_id: Optional[str], store_id: Optional[int] = None):
    if channel_id is None:
        return
    stmt = select(Store.id).where(Store.channel_id == channel_id)
    if store_id is not None:
        stmt = stmt.where(Store.id != store_id)
    if db.execute(stmt).first() is not None:
        raise ValidationError("Channel {} is already bound to another store".format(channel_id))


def create_store(db: Session, payload: StoreCreate, operator: Operator) -> Store:
    code = canonical_code(payload.code)
    if not payload.name or not payload.name.strip():
        raise ValidationError("Store name must not be blank")
    if db.execute(select(Store.id).where(Store.code == code)).first() is not None:
        raise ValidationError("Store code {} already exists".format(code))
    channel_id = _clean_channel(payload.channel_id)
    _ensure_channel_free(db, channel_id)

    store = Store(
        code=code,
        name=payload.name.strip(),
        address=payload.address or "",
        phone=payload.phone or "",
        channel_id=channel_id,
        is_active=True,
    )
    db.add(store)
    db.flush()
    record_audit(db, "stores", store.id, AUDIT_CREATE, operator, new_value=row_values(store, _STORE_FIELDS))
    return store


def update_store(db: Session, store_id: int, payload: StoreUpdate, operator: Operator) -> Store:
    store = get_store(db, store_id)
    before = row_values(store, _STORE_FIELDS)
    changes = payload.model_dump(exclude_unset=True)
    if "channel_id" in changes:
        changes["channel_id"] = _clean_channel(changes["channel_id"])
        _ensure_channel_free(db, changes["channel_id"], store.id)
    if "name" in changes and not (changes["name"] or "").strip():
        raise ValidationError("Store name must not be blank")
    for key, value in changes.items():
        setattr(store, key, value)
    db.flush()
    record_audit(
        db, "stores", store.id, AUDIT_UPDATE, operator,
        old_value=before, new_value=row_values(store, _STORE_FIELDS),
    )
    return store


def deactivate_store(db: Session, store_id: int, operator: Operator) -> Store:
    store = get_store(db, store_id)
    before = row_values(store, _STORE_FIELDS)
    store.is_active = False
    db.flush()
    record_audit(
        db, "stores", store.id, AUDIT_DELETE, operator,
        old_value=before, new_value=row_values(store, _STORE_FIELDS),
    )
    return store


# ---------------------------------------------------------------------------
# Products
# ---------------------------------------------------------------------------


def get_product(db: Session, product_id: int) -> Product:
    product = db.get(Product, product_id)
    if product is None:
        raise NotFound("Product {} not found".format(product_id))
    return product


def get_product_by_sku(db: Session, sku: str) -> Product:
    product = db.execute(
        select(Product).where(Product.sku == canonical_code(sku))
    ).scalars().first()
    if product is None:
        raise NotFound("Product {} not found".format(sku))
    return product


def get_product_by_barcode(db: Session, barcode: str) -> Product:
    product = db.execute(
        select(Product).where(Product.barcode == (barcode or "").strip())
    ).scalars().first()
    if product is None:
        raise NotFound("No product with barcode {}".format(barcode))
    return product


def search_products(
    db: Session,
    query: Optional[str] = None,
    *,
    include_inactive: bool = False,
    limit: int = 50,
) -> list[Product]:
    stmt = select(Product)
    if not include_inactive:
        stmt = stmt.where(Product.is_active.is_(True))
    if query:
        pattern = "%{}%".format(query.strip().lower())
        stmt = stmt.where(
            or_(
                func.lower(Product.name).like(pattern),
                func.lower(Product.sku).like(pattern),
                Product.barcode == query.strip(),
            )
        )
    return list(db.execute(stmt.order_by(Product.sku).limit(limit)).scalars().all())


def _validate_product_numbers(values: dict) -> None:
    if values.get("units_per_case") is not None and values["units_per_case"] < 1:
        raise ValidationError("units_per_case must be at least 1")
    for key in ("safety_stock_case", "safety_stock_unit"):
        if values.get(key) is not None and values[key] < 0:
            raise ValidationError("{} must not be negative".format(key))
    if values.get("unit_price") is not None and to_decimal(values["unit_price"]) < 0:
        raise ValidationError("unit_price must not be negative")


def create_product(db: Session, payload: ProductCreate, operator: Operator) -> Product:
    sku = canonical_code(payload.sku)
    if not payload.name or not payload.name.strip():
        raise ValidationError("Product name must not be blank")
    values = payload.model_dump()
    _validate_product_numbers(values)
    if db.execute(select(Product.id).where(Product.sku == sku)).first() is not None:
        raise ValidationError("SKU {} already exists".format(sku))

    product = Product(
        sku=sku,
        name=payload.name.strip(),
        barcode=(payload.barcode or "").strip() or None,
        category=payload.category or "",
        units_per_case=payload.units_per_case,
        unit_price=payload.unit_price,
        safety_stock_case=payload.safety_stock_case,
        safety_stock_unit=payload.safety_stock_unit,
        is_active=True,
    )
    db.add(product)
    db.flush()
    record_audit(
        db, "products", product.id, AUDIT_CREATE, operator,
        new_value=row_values(product, _PRODUCT_FIELDS),
    )
    return product


def update_product(db: Session, product_id: int, payload: ProductUpdate, operator: Operator) -> Product:
    product = get_product(db, product_id)
    before = row_values(product, _PRODUCT_FIELDS)
    changes = payload.model_dump(exclude_unset=True)
    _validate_product_numbers(changes)
    if "name" in changes and not (changes["name"] or "").strip():
        raise ValidationError("Product name must not be blank")
    if "barcode" in changes:
        changes["barcode"] = (changes["barcode"] or "").strip() or None
    for key, value in changes.items():
        setattr(product, key, value)
    db.flush()
    record_audit(
        db, "products", product.id, AUDIT_UPDATE, operator,
        old_value=before, new_value=row_values(product, _PRODUCT_FIELDS),
    )
    return product


def deactivate_product(db: Session, product_id: int, operator: Operator) -> Product:
    product = get_product(db, product_id)
    before = row_values(product, _PRODUCT_FIELDS)
    product.is_active = False
    db.flush()
    record_audit(
        db, "products", product.id, AUDIT_DELETE, operator,
        old_value=before, new_value=row_values(product, _PRODUCT_FIELDS),
    )
    return product


# ---------------------------------------------------------------------------
# Balances
# ---------------------------------------------------------------------------


def balances_by_store(db: Session, store_id: int) -> list[InventoryBalance]:
    get_store(db, store_id)
    return list(
        db.execute(
            select(InventoryBalance)
            .where(InventoryBalance.store_id == store_id)
            .order_by(InventoryBalance.product_id)
        )
        .scalars()
        .all()
    )


def low_stock(db: Session, store_id: Optional[int] = None) -> list[tuple[InventoryBalance, Product]]:
    stmt = (
        select(InventoryBalance, Product)
        .join(Product, Product.id == InventoryBalance.product_id)
        .where(
            Product.is_active.is_(True),
            or_(
                InventoryBalance.quantity_case < Product.safety_stock_case,
                InventoryBalance.quantity_unit < Product.safety_stock_unit,
            ),
        )
    )
    if store_id is not None:
        stmt = stmt.where(InventoryBalance.store_id == store_id)
    stmt = stmt.order_by(InventoryBalance.store_id, Product.sku)
    return [(balance, product) for balance, product in db.execute(stmt).all()]


__all__ = [
    "balances_by_store",
    "canonical_code",
    "create_product",
    "create_store",
    "deactivate_product",
    "deactivate_store",
    "get_product",
    "get_product_by_barcode",
    "get_product_by_sku",
    "get_store",
    "get_store_by_channel",
    "list_stores",
    "low_stock",
    "search_products",
    "update_product",
    "update_store",
]
