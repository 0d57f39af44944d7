from sqlalchemy import Column, Integer, String, Boolean, Enum
from portal.core.database import Base
from portal.models.base import TimestampMixin
from portal.models.product_category import MasterCategory


class ApiSetting(Base, TimestampMixin):
    __tablename__ = "api_settings"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(128), nullable=False)
    endpoint = Column(String(255), nullable=False)
    master_category = Column(
        Enum(MasterCategory, values_callable=lambda e: [m.value for m in e]),
        nullable=False,
    )
    is_enabled = Column(Boolean, default=True, nullable=False)
