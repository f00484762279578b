"""
Product catalog models.
"""

from uuid import uuid4

from sqlalchemy import (
    JSON,
    Boolean,
    Column,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    Uuid,
    func,
)
from sqlalchemy.dialects.postgresql import ARRAY, JSONB

from agrihub.core.database import Base

# TEXT[] / JSONB on PostgreSQL, JSON everywhere else.
StringList = ARRAY(Text).with_variant(JSON(), "sqlite")
JSONDocument = JSONB().with_variant(JSON(), "sqlite")


class Product(Base):
    """Agricultural product listed in the catalog."""

    __tablename__ = "products"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid4)
    company_name = Column(String(255), nullable=False)
    product_name = Column(String(255), nullable=False)
    brand_name = Column(String(255))
    product_description = Column(Text)
    product_type = Column(String(255))
    sub_type = Column(String(255))
    applied_seasons = Column(StringList)
    suitable_crops = Column(StringList)
    benefits = Column(Text)
    dosage = Column(String(255))
    application_method = Column(String(255))
    pack_sizes = Column(StringList)
    price_range = Column(String(100))
    available_states = Column(StringList)
    organic_certified = Column(Boolean, default=False, nullable=False)
    iso_certified = Column(Boolean, default=False, nullable=False)
    govt_approved = Column(Boolean, default=False, nullable=False)
    product_image_url = Column(Text)
    source_url = Column(Text)
    notes = Column(Text)
    is_active = Column(Boolean, default=True, nullable=False)
    view_count = Column(Integer, default=0, nullable=False)
    custom_fields = Column(JSONDocument, default=dict)
    created_by = Column(Uuid(as_uuid=True), ForeignKey("users.id"))
    updated_by = Column(Uuid(as_uuid=True), ForeignKey("users.id"))
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False
    )

    __table_args__ = (
        Index("idx_products_company", "company_name"),
        Index("idx_products_type", "product_type"),
        Index("idx_products_name", "product_name"),
        Index("idx_products_active", "is_active"),
        Index("idx_products_created", "created_at"),
    )
