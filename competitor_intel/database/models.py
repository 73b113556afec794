"""
Database models for cached provider metrics, business profiles and
OAuth-connected social accounts.
"""

from sqlalchemy import (
    Boolean, Column, DateTime, ForeignKey, Index, Integer, JSON, String, UniqueConstraint
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from competitor_intel.database.session import Base


class MetricCache(Base):
    __tablename__ = "metric_cache"

    id = Column(Integer, primary_key=True, autoincrement=True)
    subject_type = Column(String(20), nullable=False)  # user, competitor
    owner_id = Column(String(255), nullable=False)
    domain = Column(String(255), nullable=False)  # domain, or handle for social metrics
    metric_kind = Column(String(100), nullable=False)
    payload = Column(JSON, nullable=False)
    source = Column(String(100))
    created_at = Column(DateTime, nullable=False)
    expires_at = Column(DateTime, nullable=False)

    __table_args__ = (
        UniqueConstraint("subject_type", "owner_id", "domain", "metric_kind", name="uq_metric_cache_key"),
        Index("idx_metric_cache_expires", "expires_at"),
    )


class BusinessProfile(Base):
    __tablename__ = "business_profiles"

    id = Column(Integer, primary_key=True, autoincrement=True)
    owner_id = Column(String(255), nullable=False, unique=True)
    name = Column(String(500))
    domain = Column(String(255))
    declared_handles = Column(JSON, default=dict)  # {platform: username}
    created_at = Column(DateTime, default=func.now())
    updated_at = Column(DateTime, default=func.now(), onupdate=func.now())

    competitors = relationship(
        "CompetitorProfile", back_populates="business", cascade="all, delete-orphan"
    )


class CompetitorProfile(Base):
    __tablename__ = "competitor_profiles"

    id = Column(Integer, primary_key=True, autoincrement=True)
    business_id = Column(Integer, ForeignKey("business_profiles.id"), nullable=False)
    domain = Column(String(255), nullable=False)
    name = Column(String(500))
    handles = Column(JSON, default=dict)
    created_at = Column(DateTime, default=func.now())

    business = relationship("BusinessProfile", back_populates="competitors")

    __table_args__ = (
        UniqueConstraint("business_id", "domain", name="uq_competitor_domain"),
    )


class SocialConnection(Base):
    __tablename__ = "social_connections"

    id = Column(Integer, primary_key=True, autoincrement=True)
    owner_id = Column(String(255), nullable=False)
    platform = Column(String(50), nullable=False)  # facebook, instagram, linkedin
    username = Column(String(255), nullable=False)
    is_active = Column(Boolean, default=True)
    connected_at = Column(DateTime, default=func.now())

    __table_args__ = (
        UniqueConstraint("owner_id", "platform", name="uq_social_owner_platform"),
    )
