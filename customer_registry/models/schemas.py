"""Record shapes returned by the store and serialized into the cache."""
from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Dict, Optional

from pydantic import BaseModel, ConfigDict


class LookupKey(str, Enum):
    """Identifier types a customer can be found by."""
    CUSTOMER_ID = "customer_id"
    AADHAR = "aadhar"
    PASSPORT = "passport"
    DRIVING_LICENSE = "driving_license"

    @property
    def column(self) -> str:
        """Customer column holding values of this key type."""
        return _KEY_COLUMNS[self]

    @classmethod
    def parse(cls, raw: str) -> Optional["LookupKey"]:
        try:
            return cls(raw)
        except ValueError:
            return None


_KEY_COLUMNS: Dict[LookupKey, str] = {
    LookupKey.CUSTOMER_ID: "customer_id",
    LookupKey.AADHAR: "aadhar_id",
    LookupKey.PASSPORT: "passport_id",
    LookupKey.DRIVING_LICENSE: "driving_license_id",
}


class CustomerRecord(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    customer_id: int
    name: str
    age: int
    address: str
    phone_number: Optional[str] = None
    email: Optional[str] = None
    aadhar_id: Optional[str] = None
    passport_id: Optional[str] = None
    driving_license_id: Optional[str] = None
    created_at: Optional[datetime] = None

    def identifiers(self) -> "IdentifierSnapshot":
        return IdentifierSnapshot(
            customer_id=self.customer_id,
            aadhar_id=self.aadhar_id,
            passport_id=self.passport_id,
            driving_license_id=self.driving_license_id,
        )


class IdentifierSnapshot(BaseModel):
    """Identifier values of a customer captured at a point in time.

    Cache keys for a customer can only be derived from these values, so
    mutations capture one before writing and invalidate with it afterwards.
    """
    model_config = ConfigDict(frozen=True)

    customer_id: int
    aadhar_id: Optional[str] = None
    passport_id: Optional[str] = None
    driving_license_id: Optional[str] = None

    def keys(self) -> Dict[LookupKey, str]:
        """Map each present identifier to its lookup key type."""
        keys: Dict[LookupKey, str] = {LookupKey.CUSTOMER_ID: str(self.customer_id)}
        if self.aadhar_id is not None:
            keys[LookupKey.AADHAR] = self.aadhar_id
        if self.passport_id is not None:
            keys[LookupKey.PASSPORT] = self.passport_id
        if self.driving_license_id is not None:
            keys[LookupKey.DRIVING_LICENSE] = self.driving_license_id
        return keys


class ProductRecord(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    product_id: int
    customer_id: int
    product_name: str
    quantity: int
    price: float
