"""
Database models for the customer registry.
"""

from sqlalchemy import (
    BigInteger, CheckConstraint, Column, DateTime, Float, ForeignKey,
    Index, Integer, String, UniqueConstraint
)
from sqlalchemy.orm import declarative_base, relationship
from sqlalchemy.sql import func


Base = declarative_base()

# Optional identity documents; each is unique when present and at least one is required.
ID_DOCUMENT_COLUMNS = ("aadhar_id", "passport_id", "driving_license_id")


class Customer(Base):
    """Customer record keyed by a generated 10-digit identifier."""
    __tablename__ = 'customers'

    customer_id = Column(BigInteger, primary_key=True, autoincrement=False)
    name = Column(String(100), nullable=False)
    age = Column(Integer, nullable=False)
    address = Column(String(255), nullable=False)
    phone_number = Column(String(20))
    email = Column(String(100))
    aadhar_id = Column(String(50))
    passport_id = Column(String(50))
    driving_license_id = Column(String(50))
    created_at = Column(DateTime(timezone=True),
                        server_default=func.now(), nullable=False)

    # Relationships
    products = relationship(
        "Product",
        back_populates="customer",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    # Constraints
    __table_args__ = (
        UniqueConstraint('aadhar_id', name='uq_customers_aadhar_id'),
        UniqueConstraint('passport_id', name='uq_customers_passport_id'),
        UniqueConstraint('driving_license_id',
                         name='uq_customers_driving_license_id'),
        CheckConstraint(
            'aadhar_id IS NOT NULL OR passport_id IS NOT NULL OR driving_license_id IS NOT NULL',
            name='check_customer_has_id_document'),
        CheckConstraint('age > 0', name='check_customer_age_positive'),
    )


class Product(Base):
    """Product owned by exactly one customer; removed with its owner."""
    __tablename__ = 'products'

    product_id = Column(Integer, primary_key=True, autoincrement=True)
    customer_id = Column(
        BigInteger,
        ForeignKey('customers.customer_id',
                   ondelete='CASCADE', onupdate='CASCADE',
                   deferrable=True, initially='IMMEDIATE'),
        nullable=False,
    )
    product_name = Column(String(100), nullable=False)
    quantity = Column(Integer, nullable=False)
    price = Column(Float, nullable=False)

    customer = relationship("Customer", back_populates="products")

    __table_args__ = (
        CheckConstraint('quantity > 0', name='check_product_quantity_positive'),
        CheckConstraint('price > 0', name='check_product_price_positive'),
        Index('idx_products_customer_id', 'customer_id'),
    )
