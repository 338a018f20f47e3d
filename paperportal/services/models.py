"""SQLAlchemy models for the document store."""

from typing import Optional
from datetime import datetime

from flask_sqlalchemy import SQLAlchemy
from pytz import UTC
from sqlalchemy import Boolean, Column, DateTime, Integer, JSON, String, \
    Text

from .. import domain

db: SQLAlchemy = SQLAlchemy()


def to_storage(when: Optional[datetime]) -> Optional[datetime]:
    """Datetimes are stored as naive UTC."""
    if when is None:
        return None
    if when.tzinfo is not None:
        when = when.astimezone(UTC).replace(tzinfo=None)
    return when


def from_storage(when: Optional[datetime]) -> Optional[datetime]:
    """Re-attach UTC to a stored datetime."""
    if when is None:
        return None
    if when.tzinfo is None:
        return UTC.localize(when)
    return when.astimezone(UTC)


class DBAccount(db.Model):
    """Persistence for :class:`domain.Account`."""

    __tablename__ = 'accounts'

    account_id = Column(Integer, primary_key=True, autoincrement=True)
    email = Column(String(255), nullable=False, unique=True, index=True)
    fullname = Column(String(255), nullable=False)
    role = Column(String(16), nullable=False)
    password_hash = Column(String(255), nullable=False)
    refresh_token = Column(Text, nullable=True)
    verified = Column(Boolean, nullable=False, default=False)
    created = Column(DateTime)
    updated = Column(DateTime)

    def to_domain(self) -> domain.Account:
        """Generate a :class:`domain.Account` from this row."""
        return domain.Account(
            account_id=str(self.account_id),
            email=self.email,
            fullname=self.fullname,
            role=self.role,
            password_hash=self.password_hash,
            refresh_token=self.refresh_token,
            verified=bool(self.verified),
            created=from_storage(self.created),
            updated=from_storage(self.updated)
        )


class DBPendingAccount(db.Model):
    """Persistence for :class:`domain.PendingAccount`."""

    __tablename__ = 'pending_accounts'

    pending_id = Column(Integer, primary_key=True, autoincrement=True)
    email = Column(String(255), nullable=False, unique=True, index=True)
    fullname = Column(String(255), nullable=False)
    role = Column(String(16), nullable=False)
    password = Column(String(255), nullable=False)
    otp = Column(String(16), nullable=False)
    otp_expires = Column(DateTime, nullable=False)
    created = Column(DateTime)

    def to_domain(self) -> domain.PendingAccount:
        """Generate a :class:`domain.PendingAccount` from this row."""
        return domain.PendingAccount(
            pending_id=str(self.pending_id),
            email=self.email,
            fullname=self.fullname,
            role=self.role,
            password=self.password,
            otp=self.otp,
            otp_expires=from_storage(self.otp_expires),
            created=from_storage(self.created)
        )


class DBPaper(db.Model):
    """Persistence for :class:`domain.Paper`."""

    __tablename__ = 'papers'

    paper_id = Column(Integer, primary_key=True, autoincrement=True)
    fullname = Column(String(255), nullable=False, index=True)
    email = Column(String(255), nullable=False, index=True)
    title = Column(String(1024), nullable=False)
    abstract = Column(Text, nullable=False)
    keywords = Column(JSON, nullable=False, default=list)

    pdf_viewer_url = Column(String(1024), nullable=False)
    pdf_download_url = Column(String(1024), nullable=False)
    pdf_storage_id = Column(String(255), nullable=False)

    supplementary_viewer_url = Column(String(1024), nullable=True)
    supplementary_download_url = Column(String(1024), nullable=True)
    supplementary_storage_id = Column(String(255), nullable=True)

    status = Column(String(32), nullable=False,
                    default=domain.PaperStatus.SUBMITTED)
    created = Column(DateTime)
    updated = Column(DateTime)

    def to_domain(self) -> domain.Paper:
        """Generate a :class:`domain.Paper` from this row."""
        supplementary: Optional[domain.Document] = None
        if self.supplementary_storage_id:
            supplementary = domain.Document(
                viewer_url=self.supplementary_viewer_url,
                download_url=self.supplementary_download_url,
                storage_id=self.supplementary_storage_id
            )
        return domain.Paper(
            paper_id=str(self.paper_id),
            fullname=self.fullname,
            email=self.email,
            title=self.title,
            abstract=self.abstract,
            keywords=list(self.keywords or []),
            pdf=domain.Document(
                viewer_url=self.pdf_viewer_url,
                download_url=self.pdf_download_url,
                storage_id=self.pdf_storage_id
            ),
            supplementary=supplementary,
            status=self.status,
            created=from_storage(self.created),
            updated=from_storage(self.updated)
        )
