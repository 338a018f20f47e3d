"""Provides access to stored papers."""

from typing import Any, Dict, List, Optional
import logging

from .. import domain
from ..util import now
from . import util
from .exceptions import NoSuchPaper
from .models import DBPaper, to_storage

logger = logging.getLogger(__name__)

_DOCUMENT_SLOTS = ('pdf', 'supplementary')
_FIELDS = ('fullname', 'email', 'title', 'abstract', 'keywords', 'status')


def create_paper(paper: domain.Paper) -> domain.Paper:
    """
    Create a new record for a :class:`domain.Paper`.

    Parameters
    ----------
    paper : :class:`domain.Paper`

    Returns
    -------
    :class:`domain.Paper`
        The stored paper, with its identifier and timestamps.

    """
    created = to_storage(now())
    db_paper = DBPaper(
        fullname=paper.fullname,
        email=paper.email,
        title=paper.title,
        abstract=paper.abstract,
        keywords=list(paper.keywords),
        status=paper.status,
        created=created,
        updated=created
    )
    _set_document(db_paper, 'pdf', paper.pdf)
    _set_document(db_paper, 'supplementary', paper.supplementary)
    with util.transaction() as session:
        session.add(db_paper)
    logger.debug('Created paper %s', db_paper.paper_id)
    return db_paper.to_domain()


def get_paper(paper_id: str) -> domain.Paper:
    """
    Load a paper by its identifier.

    Raises
    ------
    :class:`.NoSuchPaper`

    """
    with util.transaction() as session:
        return _load(session, paper_id).to_domain()


def update_paper(paper_id: str, changes: Dict[str, Any]) -> domain.Paper:
    """
    Apply a partial update to a stored paper.

    Parameters
    ----------
    paper_id : str
    changes : dict
        Keys are :class:`domain.Paper` field names. Document slots (``pdf``,
        ``supplementary``) take a :class:`domain.Document`. Fields that are
        not present are left untouched.

    Returns
    -------
    :class:`domain.Paper`
        The paper as stored after the update.

    """
    with util.transaction() as session:
        db_paper = _load(session, paper_id)
        for field, value in changes.items():
            if field in _DOCUMENT_SLOTS:
                _set_document(db_paper, field, value)
            elif field in _FIELDS:
                setattr(db_paper, field,
                        list(value) if field == 'keywords' else value)
            else:
                raise ValueError(f'Cannot update field {field}')
        db_paper.updated = to_storage(now())
        session.add(db_paper)
    return db_paper.to_domain()


def delete_paper(paper_id: str) -> None:
    """
    Delete a paper record.

    Stored documents are not touched here.
    """
    with util.transaction() as session:
        session.delete(_load(session, paper_id))


def list_papers(email: Optional[str] = None) -> List[domain.Paper]:
    """
    List stored papers, optionally only those owned by ``email``.

    Papers are returned in the order in which they were submitted.
    """
    with util.transaction() as session:
        query = session.query(DBPaper)
        if email is not None:
            query = query.filter(DBPaper.email == email)
        return [db_paper.to_domain()
                for db_paper in query.order_by(DBPaper.paper_id).all()]


def _load(session: Any, paper_id: str) -> DBPaper:
    try:
        db_paper = session.get(DBPaper, int(paper_id))
    except (TypeError, ValueError) as e:
        raise NoSuchPaper(f'No paper {paper_id}') from e
    if db_paper is None:
        raise NoSuchPaper(f'No paper {paper_id}')
    return db_paper


def _set_document(db_paper: DBPaper, slot: str,
                  document: Optional[domain.Document]) -> None:
    setattr(db_paper, f'{slot}_viewer_url',
            document.viewer_url if document else None)
    setattr(db_paper, f'{slot}_download_url',
            document.download_url if document else None)
    setattr(db_paper, f'{slot}_storage_id',
            document.storage_id if document else None)
