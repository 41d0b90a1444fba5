from sqlalchemy import Column, Integer, String, Boolean, Enum, UniqueConstraint
from sqlalchemy.orm import relationship
from database import Base
import enum
from models.audit_mixin import TimestampMixin

class CompanyType(enum.Enum):
    MANUFACTURER = "manufacturer"
    PLANT = "plant"
    DISTRIBUTOR = "distributor"

class Company(Base, TimestampMixin):
    __tablename__ = "companies"
    __table_args__ = (UniqueConstraint('tenant_id', 'code', name='_tenant_company_code_uc'),)

    id = Column(Integer, primary_key=True, index=True)
    tenant_id = Column(String, index=True, nullable=False)
    name = Column(String, nullable=False)
    code = Column(String(20), nullable=False)
    company_type = Column(Enum(CompanyType), nullable=False)  # Fixed at creation
    base_currency = Column(String(3), default="USD", nullable=False)
    is_active = Column(Boolean, default=True, nullable=False)

    # Relationships
    accounts = relationship("ChartOfAccounts", back_populates="company")
