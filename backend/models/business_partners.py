from sqlalchemy import Column, Integer, String, Text, Enum, Boolean, ForeignKey
from sqlalchemy.orm import relationship
from database import Base
import enum
from models.audit_mixin import TimestampMixin

class PartnerStatus(enum.Enum):
    ACTIVE = "Active"
    INACTIVE = "Inactive"
    BLOCKED = "Blocked"

class BusinessPartner(Base, TimestampMixin):
    __tablename__ = "business_partners"

    id = Column(Integer, primary_key=True, index=True)
    tenant_id = Column(String, index=True, nullable=False)
    company_id = Column(Integer, ForeignKey("companies.id"), nullable=False, index=True)
    # Set when the partner stands for another company of the same tenant
    linked_company_id = Column(Integer, ForeignKey("companies.id"), nullable=True, index=True)
    name = Column(String, nullable=False)
    contact_name = Column(String, nullable=True)
    phone = Column(String, nullable=True)
    address = Column(Text, nullable=True)
    email = Column(String, nullable=True)
    status = Column(Enum(PartnerStatus), default=PartnerStatus.ACTIVE, nullable=False)
    is_vendor = Column(Boolean, default=True, nullable=False)
    is_customer = Column(Boolean, default=True, nullable=False)

    # Relationships
    purchase_orders = relationship("PurchaseOrder", back_populates="vendor", foreign_keys="PurchaseOrder.vendor_id")
    sales_orders = relationship("SalesOrder", back_populates="customer", foreign_keys="SalesOrder.customer_id")
    linked_company = relationship("Company", foreign_keys=[linked_company_id])
