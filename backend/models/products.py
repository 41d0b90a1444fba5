from sqlalchemy import Column, Integer, String, Text, Numeric, Boolean, UniqueConstraint
from database import Base
from models.audit_mixin import TimestampMixin

class Product(Base, TimestampMixin):
    __tablename__ = "products"
    __table_args__ = (UniqueConstraint('tenant_id', 'sku', name='_tenant_product_sku_uc'),)

    id = Column(Integer, primary_key=True, index=True)
    tenant_id = Column(String, index=True, nullable=False)
    name = Column(String, nullable=False)
    description = Column(Text, nullable=True)
    sku = Column(String(50), nullable=True)
    sales_price = Column(Numeric(15, 2), nullable=True)
    purchase_price = Column(Numeric(15, 2), nullable=True)
    is_active = Column(Boolean, default=True, nullable=False)
