"""Record store: transactional CRUD over customers and their products.

Every public operation runs in exactly one transaction. Uniqueness of the
identity documents is enforced by the database; a rejected write is
classified from the driver's integrity error instead of being pre-checked.

Design goals:
 - No FastAPI/HTTP concerns here; failures are raised as domain errors.
 - The session factory is injected so tests can run against SQLite.
"""
from __future__ import annotations

import logging
import math
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Dict, List, Mapping, Optional, Tuple

from sqlalchemy import delete, select, text
from sqlalchemy.exc import IntegrityError, InterfaceError, OperationalError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from ..models.database import Customer, ID_DOCUMENT_COLUMNS, Product
from ..models.schemas import CustomerRecord, IdentifierSnapshot, LookupKey, ProductRecord
from ..utils.errors import (
    DomainError,
    DuplicateIdentifier,
    IDSpaceExhausted,
    NotFound,
    StoreUnavailable,
    TransactionError,
    ValidationError,
)
from .id_generator import AttemptBudget, IdGenerator, is_customer_id

logger = logging.getLogger(__name__)

OPTIONAL_CUSTOMER_FIELDS = ("phone_number", "email") + ID_DOCUMENT_COLUMNS

# Upper bound of the INTEGER columns (age, quantity, product_id)
MAX_INT32 = 2**31 - 1

ID_DOCUMENT_LABELS = {
    "aadhar_id": "Aadhar ID",
    "passport_id": "Passport ID",
    "driving_license_id": "Driving License ID",
}

# Transaction-scoped deferral of foreign key checks; released on commit or rollback.
_DEFER_FK_STATEMENTS = {
    "postgresql": "SET CONSTRAINTS ALL DEFERRED",
    "sqlite": "PRAGMA defer_foreign_keys = ON",
}


class _CustomerIdCollision(Exception):
    """A concurrent insert claimed the generated id between check and insert."""


# ----------------------------- Validation ----------------------------- #


def _max_length(model, field: str) -> Optional[int]:
    return getattr(model.__table__.c[field].type, "length", None)


def _clean_text(model, fields: Mapping[str, Any], field: str) -> Optional[str]:
    value = fields.get(field)
    if value is None:
        return None
    if not isinstance(value, str):
        raise ValidationError(f"'{field}' must be a string", details={"field": field})
    value = value.strip()
    if not value:
        return None
    limit = _max_length(model, field)
    if limit is not None and len(value) > limit:
        raise ValidationError(
            f"'{field}' must be at most {limit} characters", details={"field": field})
    return value


def _positive_int(value: Any, upper: Optional[int] = None) -> Optional[int]:
    if isinstance(value, bool) or not isinstance(value, int):
        return None
    if value <= 0 or (upper is not None and value > upper):
        return None
    return value


def _positive_number(value: Any) -> Optional[float]:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    value = float(value)
    if not math.isfinite(value) or value <= 0:
        return None
    return value


def _require_mapping(fields: Any) -> Mapping[str, Any]:
    if not isinstance(fields, Mapping):
        raise ValidationError("Invalid request payload")
    return fields


def validate_customer_fields(fields: Mapping[str, Any]) -> Dict[str, Any]:
    """Normalize a full customer payload into column values.

    Optional fields missing from the payload are set to None (full replace).
    """
    fields = _require_mapping(fields)
    name = _clean_text(Customer, fields, "name")
    address = _clean_text(Customer, fields, "address")
    age = _positive_int(fields.get("age"), MAX_INT32)
    if not name or not address or age is None:
        raise ValidationError("Name, age, and address are mandatory")

    values: Dict[str, Any] = {"name": name, "age": age, "address": address}
    for field in OPTIONAL_CUSTOMER_FIELDS:
        values[field] = _clean_text(Customer, fields, field)

    if all(values[column] is None for column in ID_DOCUMENT_COLUMNS):
        raise ValidationError(
            "At least one ID document (Aadhar/Passport/Driving License) is required")
    return values


def validate_product_fields(fields: Mapping[str, Any]) -> Dict[str, Any]:
    fields = _require_mapping(fields)
    customer_id = _positive_int(fields.get("customer_id"))
    product_name = _clean_text(Product, fields, "product_name")
    quantity = _positive_int(fields.get("quantity"), MAX_INT32)
    price = _positive_number(fields.get("price"))
    if customer_id is None or not product_name or quantity is None or price is None:
        raise ValidationError("All product fields are required and must be valid")
    return {
        "customer_id": customer_id,
        "product_name": product_name,
        "quantity": quantity,
        "price": price,
    }


def classify_integrity_error(exc: IntegrityError) -> Exception:
    """Translate a driver integrity failure into the matching domain error."""
    message = str(exc.orig if exc.orig is not None else exc).lower()
    if "foreign key" in message:
        return NotFound("Customer not found")
    if "customers.customer_id" in message or "customers_pkey" in message:
        return _CustomerIdCollision(message)
    if "unique" in message or "duplicate" in message:
        field = next((column for column in ID_DOCUMENT_COLUMNS if column in message), None)
        label = ID_DOCUMENT_LABELS.get(field, "ID document")
        return DuplicateIdentifier(f"{label} already exists with another customer", field=field)
    if "check" in message:
        return ValidationError("Record violates a store constraint")
    return TransactionError("Database integrity error")


# ----------------------------- Store ----------------------------- #


class CustomerStore:
    """Transactional CRUD over the customers and products tables."""

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        id_generator: Optional[IdGenerator] = None,
    ):
        self._session_factory = session_factory
        self._id_generator = id_generator or IdGenerator()

    @asynccontextmanager
    async def _transaction(self) -> AsyncIterator[AsyncSession]:
        """Yield a session inside one transaction; commit on success, roll back on error."""
        async with self._session_factory() as session:
            try:
                async with session.begin():
                    yield session
            except DomainError:
                raise
            except IntegrityError as exc:
                raise classify_integrity_error(exc) from exc
            except (OperationalError, InterfaceError) as exc:
                logger.error("Database unavailable: %s", exc)
                raise StoreUnavailable("Database unavailable") from exc
            except SQLAlchemyError as exc:
                logger.error("Database error: %s", exc)
                raise TransactionError(f"Database error: {exc.__class__.__name__}") from exc

    # Customers -------------------------------------------------------------

    async def create_customer(self, fields: Mapping[str, Any]) -> CustomerRecord:
        values = validate_customer_fields(fields)
        # Existence-check rejections and insert collisions share one budget
        budget = self._id_generator.new_budget()
        while budget.remaining:
            try:
                return await self._insert_customer(values, budget)
            except _CustomerIdCollision:
                logger.warning(
                    "Customer id collided at insert (attempt %d/%d). Retrying...",
                    budget.used, budget.limit)
        raise IDSpaceExhausted(budget.limit)

    async def _insert_customer(self, values: Dict[str, Any], budget: AttemptBudget) -> CustomerRecord:
        async with self._transaction() as session:
            customer_id = await self._id_generator.generate(session, budget)
            row = Customer(customer_id=customer_id, **values)
            session.add(row)
            await session.flush()
            # Server-side defaults (created_at) are only visible after a re-read
            await session.refresh(row)
            record = CustomerRecord.model_validate(row)
        logger.info("Customer created", extra={"customer_id": record.customer_id})
        return record

    async def update_customer(
        self, customer_id: int, fields: Mapping[str, Any]
    ) -> Tuple[IdentifierSnapshot, CustomerRecord]:
        """Replace every mutable field of a customer.

        Returns the identifier snapshot taken before the write together with
        the canonical row re-read after it.
        """
        values = validate_customer_fields(fields)
        if not is_customer_id(customer_id):
            raise NotFound("Customer not found")
        async with self._transaction() as session:
            row = await session.get(Customer, customer_id, with_for_update=True)
            if row is None:
                raise NotFound("Customer not found")
            before = CustomerRecord.model_validate(row).identifiers()
            for field, value in values.items():
                setattr(row, field, value)
            await session.flush()
            await session.refresh(row)
            after = CustomerRecord.model_validate(row)
        return before, after

    async def delete_customer(self, customer_id: int) -> IdentifierSnapshot:
        """Delete a customer; owned products go with it via ON DELETE CASCADE."""
        if not is_customer_id(customer_id):
            raise NotFound("Customer not found")
        async with self._transaction() as session:
            row = await session.get(Customer, customer_id, with_for_update=True)
            if row is None:
                raise NotFound("Customer not found")
            snapshot = CustomerRecord.model_validate(row).identifiers()
            await session.delete(row)
            await session.flush()
        return snapshot

    async def get_customer(self, key: LookupKey, value: str) -> Optional[CustomerRecord]:
        """Fetch a customer by any identifier column; None when nothing matches."""
        if key is LookupKey.CUSTOMER_ID:
            try:
                lookup_value: Any = int(value)
            except (TypeError, ValueError):
                return None
            if not is_customer_id(lookup_value):
                return None
        else:
            lookup_value = value
        column = getattr(Customer, key.column)
        async with self._transaction() as session:
            row = await session.scalar(select(Customer).where(column == lookup_value))
            return CustomerRecord.model_validate(row) if row is not None else None

    async def list_customers(self) -> List[CustomerRecord]:
        async with self._transaction() as session:
            rows = await session.scalars(
                select(Customer).order_by(Customer.customer_id.desc()))
            return [CustomerRecord.model_validate(row) for row in rows]

    # Products --------------------------------------------------------------

    async def add_product(self, fields: Mapping[str, Any]) -> ProductRecord:
        values = validate_product_fields(fields)
        if not is_customer_id(values["customer_id"]):
            raise NotFound("Customer not found")
        async with self._transaction() as session:
            owner = await session.get(Customer, values["customer_id"])
            if owner is None:
                raise NotFound("Customer not found")
            product = Product(**values)
            session.add(product)
            await session.flush()
            record = ProductRecord.model_validate(product)
        return record

    async def list_products(self, customer_id: int) -> List[ProductRecord]:
        if not is_customer_id(customer_id):
            return []
        async with self._transaction() as session:
            rows = await session.scalars(
                select(Product)
                .where(Product.customer_id == customer_id)
                .order_by(Product.product_id)
            )
            return [ProductRecord.model_validate(row) for row in rows]

    async def delete_product(self, customer_id: int, product_id: int) -> None:
        """Delete the product only when it belongs to the given customer."""
        if not is_customer_id(customer_id) or not 0 < product_id <= MAX_INT32:
            raise NotFound("Product not found for the given customer")
        async with self._transaction() as session:
            result = await session.execute(
                delete(Product).where(
                    Product.customer_id == customer_id,
                    Product.product_id == product_id,
                ).execution_options(synchronize_session=False)
            )
            if result.rowcount == 0:
                raise NotFound("Product not found for the given customer")

    # Maintenance -----------------------------------------------------------

    async def flush_all(self) -> Dict[str, int]:
        """Remove every product and customer in one transaction.

        Foreign key checks are deferred for the duration of the transaction
        only, so a failure at any step leaves enforcement intact.
        """
        async with self._transaction() as session:
            dialect = session.get_bind().dialect.name
            statement = _DEFER_FK_STATEMENTS.get(dialect)
            if statement:
                await session.execute(text(statement))
            products = await session.execute(
                delete(Product).execution_options(synchronize_session=False))
            customers = await session.execute(
                delete(Customer).execution_options(synchronize_session=False))
            counts = {"products": products.rowcount, "customers": customers.rowcount}
        logger.warning("Flushed all customer and product data: %s", counts)
        return counts
