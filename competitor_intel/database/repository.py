"""Business profile and social connection lookups."""

from typing import Optional

from loguru import logger
from sqlalchemy.orm import sessionmaker

from competitor_intel.core.models import (
    BusinessProfile, CompetitorProfile, HandleSource, SocialHandle
)
from competitor_intel.database import models as db
from competitor_intel.database.session import get_db_session, get_session_factory
from competitor_intel.utils.helpers import normalize_domain, strip_handle


class ProfileRepository:
    """Reads and writes owner profiles; returns plain dataclasses, never ORM rows."""

    def __init__(self, session_factory: Optional[sessionmaker] = None):
        self.session_factory = session_factory or get_session_factory()

    def get_profile(self, owner_id: str) -> Optional[BusinessProfile]:
        with get_db_session(self.session_factory) as session:
            row = session.query(db.BusinessProfile).filter_by(owner_id=owner_id).first()
            if row is None:
                return None
            return BusinessProfile(
                owner_id=row.owner_id,
                domain=row.domain,
                name=row.name or "",
                declared_handles=dict(row.declared_handles or {}),
                competitors=[
                    CompetitorProfile(
                        domain=c.domain,
                        name=c.name or "",
                        handles=dict(c.handles or {}),
                    )
                    for c in row.competitors
                ],
            )

    def get_connections(self, owner_id: str) -> list[SocialHandle]:
        """Active OAuth-connected accounts for ``owner_id``."""
        with get_db_session(self.session_factory) as session:
            rows = (
                session.query(db.SocialConnection)
                .filter_by(owner_id=owner_id, is_active=True)
                .all()
            )
            return [
                SocialHandle(
                    platform=row.platform,
                    username=strip_handle(row.username),
                    source=HandleSource.OAUTH,
                    connected=True,
                )
                for row in rows
            ]

    def save_profile(
        self,
        owner_id: str,
        domain: str,
        name: str = "",
        declared_handles: Optional[dict[str, str]] = None,
    ) -> None:
        domain = normalize_domain(domain)
        with get_db_session(self.session_factory) as session:
            row = session.query(db.BusinessProfile).filter_by(owner_id=owner_id).first()
            if row is None:
                row = db.BusinessProfile(owner_id=owner_id)
                session.add(row)
            row.domain = domain
            row.name = name or row.name
            if declared_handles is not None:
                row.declared_handles = {p: strip_handle(u) for p, u in declared_handles.items()}
        logger.info("Saved business profile for {} ({})", owner_id, domain)

    def add_competitor(
        self,
        owner_id: str,
        domain: str,
        name: str = "",
        handles: Optional[dict[str, str]] = None,
    ) -> None:
        domain = normalize_domain(domain)
        with get_db_session(self.session_factory) as session:
            profile = session.query(db.BusinessProfile).filter_by(owner_id=owner_id).first()
            if profile is None:
                raise LookupError(f"No business profile for owner {owner_id}")

            competitor = next((c for c in profile.competitors if c.domain == domain), None)
            if competitor is None:
                competitor = db.CompetitorProfile(domain=domain)
                profile.competitors.append(competitor)
            competitor.name = name or competitor.name
            if handles is not None:
                competitor.handles = {p: strip_handle(u) for p, u in handles.items()}
        logger.info("Saved competitor {} for {}", domain, owner_id)

    def connect_account(self, owner_id: str, platform: str, username: str) -> None:
        with get_db_session(self.session_factory) as session:
            row = (
                session.query(db.SocialConnection)
                .filter_by(owner_id=owner_id, platform=platform)
                .first()
            )
            if row is None:
                row = db.SocialConnection(owner_id=owner_id, platform=platform)
                session.add(row)
            row.username = strip_handle(username)
            row.is_active = True
        logger.info("Connected {} account @{} for {}", platform, strip_handle(username), owner_id)

    def disconnect_account(self, owner_id: str, platform: str) -> bool:
        with get_db_session(self.session_factory) as session:
            row = (
                session.query(db.SocialConnection)
                .filter_by(owner_id=owner_id, platform=platform, is_active=True)
                .first()
            )
            if row is None:
                return False
            row.is_active = False
            return True
