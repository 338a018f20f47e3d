"""
Controllers for paper submission and review.

Review status is a free field. The administrator may set any of the five
statuses at any time; it is not a workflow. Any content edit puts a paper
back to ``Submitted``, since earlier review no longer applies.

Stored documents and paper records are not updated atomically. Replacing a
document uploads the new one, stores the record, and only then deletes the
old blob; a failure between those steps can leave an orphaned blob.
"""

from typing import Any, Dict, Optional
from http import HTTPStatus
import logging

from flask import current_app
from werkzeug.datastructures import FileStorage, MultiDict
from werkzeug.exceptions import BadRequest, Forbidden, \
    InternalServerError, NotFound
from wtforms import Form, StringField
from wtforms.validators import DataRequired

from .. import domain
from ..auth import policy
from ..services import blobs, notifications, papers
from ..services.exceptions import DeletionFailed, NoSuchPaper, UploadFailed
from ..util import normalize_email, normalize_keywords
from .util import REQUIRED, ResponseData, validate

logger = logging.getLogger(__name__)

PRIMARY = 'pdfFile'
SUPPLEMENTARY = 'supplementaryPdf'

_SLOTS = {PRIMARY: 'pdf', SUPPLEMENTARY: 'supplementary'}


def _strip(value: Optional[str]) -> Optional[str]:
    return value.strip() if isinstance(value, str) else value


class SubmissionForm(Form):
    """Metadata for a new paper."""

    fullname = StringField('Full name', filters=[_strip],
                           validators=[DataRequired(REQUIRED)])
    email = StringField('Email', filters=[_strip],
                        validators=[DataRequired(REQUIRED)])
    paperTitle = StringField('Title', filters=[_strip],
                             validators=[DataRequired(REQUIRED)])
    abstract = StringField('Abstract', filters=[_strip],
                           validators=[DataRequired(REQUIRED)])
    keywords = StringField('Keywords', filters=[_strip],
                           validators=[DataRequired(REQUIRED)])


class StatusForm(Form):
    """A new review status."""

    status = StringField('Status', validators=[DataRequired(REQUIRED)])


def submit(form_data: MultiDict, files: MultiDict) -> ResponseData:
    """
    Submit a new paper.

    Parameters
    ----------
    form_data : MultiDict
        Should include ``fullname``, ``email``, ``paperTitle``, ``abstract``
        and ``keywords``.
    files : MultiDict
        Must include the primary document (``pdfFile``), and may include a
        supplementary document (``supplementaryPdf``).

    Returns
    -------
    dict
        The stored paper.
    int
        HTTP status code.
    dict
        Headers to add to the response.

    Raises
    ------
    :class:`.InvalidInput`
        If a field is missing.
    :class:`.BadRequest`
        If the primary document is missing, or a document is not a PDF.
    :class:`.InternalServerError`
        If the primary document could not be stored.

    """
    form = SubmissionForm(form_data)
    validate(form, 'All fields except supplementary PDF are required')
    keywords = normalize_keywords(form_data.getlist('keywords'))
    if not keywords:
        raise BadRequest('All fields except supplementary PDF are required')

    primary = _get_file(files, PRIMARY)
    if primary is None:
        raise BadRequest('PDF file is required')
    supplementary = _get_file(files, SUPPLEMENTARY)
    _check_type(primary, supplementary)

    try:
        pdf = blobs.upload(primary)
    except UploadFailed as e:
        logger.error('Failed to store primary document: %s', e)
        raise InternalServerError('Failed to upload PDF file') from e

    supplementary_document: Optional[domain.Document] = None
    if supplementary is not None:
        try:
            supplementary_document = blobs.upload(supplementary)
        except UploadFailed as e:
            logger.warning('Failed to store supplementary document: %s', e)

    paper = papers.create_paper(domain.Paper(
        fullname=form.fullname.data,
        email=normalize_email(form.email.data),
        title=form.paperTitle.data,
        abstract=form.abstract.data,
        keywords=keywords,
        pdf=pdf,
        supplementary=supplementary_document,
        status=domain.PaperStatus.SUBMITTED
    ))
    logger.info('Paper %s submitted', paper.paper_id)

    notifications.deliver(notifications.Message(
        to=current_app.config['ADMIN_EMAIL'],
        subject='New Paper Submitted',
        body=(f'A new paper titled "{paper.title}" has been submitted by '
              f'{paper.fullname} ({paper.email}).')
    ))
    return domain.to_dict(paper), HTTPStatus.CREATED, {}


def update(paper_id: str, actor: domain.Account, form_data: MultiDict,
           files: MultiDict) -> ResponseData:
    """
    Update the content of a paper, and reset its status to ``Submitted``.

    Only fields that are provided are changed. A replacement document is
    stored first; if that fails the existing document is kept and the rest
    of the update still applies. The replaced blob is deleted after the
    record is stored.

    Raises
    ------
    :class:`.NotFound`
    :class:`.Forbidden`
        Unless the actor owns the paper or is the administrator.
    :class:`.BadRequest`
        If a replacement document is not a PDF.

    """
    paper = _load(paper_id)
    if not policy.can_mutate(actor, paper):
        logger.debug('Account %s may not edit paper %s', actor.account_id,
                     paper_id)
        raise Forbidden('You cannot edit this paper')

    changes: Dict[str, Any] = {}
    title = _strip(form_data.get('paperTitle'))
    if title:
        changes['title'] = title
    abstract = _strip(form_data.get('abstract'))
    if abstract:
        changes['abstract'] = abstract
    keywords = normalize_keywords(form_data.getlist('keywords'))
    if keywords:
        changes['keywords'] = keywords
    changes['status'] = domain.PaperStatus.SUBMITTED

    replacements = {key: _get_file(files, key) for key in _SLOTS}
    _check_type(*replacements.values())

    replaced = []
    for key, upload in replacements.items():
        if upload is None:
            continue
        slot = _SLOTS[key]
        try:
            changes[slot] = blobs.upload(upload)
        except UploadFailed as e:
            logger.warning('Keeping %s of paper %s; upload failed: %s',
                           slot, paper_id, e)
            continue
        previous = getattr(paper, slot)
        if previous is not None:
            replaced.append(previous.storage_id)

    updated = papers.update_paper(paper.paper_id, changes)
    for storage_id in replaced:
        _delete_blob(storage_id)
    logger.info('Paper %s updated by account %s', paper_id,
                actor.account_id)

    message = (f'The paper titled "{updated.title}" was updated by '
               f'{actor.fullname} ({actor.email}). Status has been reset to '
               f'{domain.PaperStatus.SUBMITTED} for review.')
    for recipient in _recipients(updated.email):
        notifications.deliver(notifications.Message(
            to=recipient,
            subject='Paper Updated',
            body=message
        ))
    return domain.to_dict(updated), HTTPStatus.OK, {}


def remove(paper_id: str, actor: domain.Account) -> ResponseData:
    """
    Delete a paper and its stored documents.

    Failure to delete a stored document is logged; the paper is deleted
    regardless.

    Raises
    ------
    :class:`.NotFound`
    :class:`.Forbidden`
        Unless the actor owns the paper or is the administrator.

    """
    paper = _load(paper_id)
    if not policy.can_mutate(actor, paper):
        logger.debug('Account %s may not delete paper %s', actor.account_id,
                     paper_id)
        raise Forbidden('You cannot delete this paper')

    try:
        papers.delete_paper(paper.paper_id)
    except NoSuchPaper as e:
        raise NotFound('Paper not found') from e
    for document in (paper.pdf, paper.supplementary):
        if document is not None:
            _delete_blob(document.storage_id)
    logger.info('Paper %s deleted by account %s', paper_id,
                actor.account_id)
    return {}, HTTPStatus.OK, {}


def set_status(paper_id: str, actor: domain.Account,
               form_data: MultiDict) -> ResponseData:
    """
    Set the review status of a paper, and notify its author.

    Raises
    ------
    :class:`.BadRequest`
        If the status is not one of :attr:`domain.PaperStatus.ALL`.
    :class:`.NotFound`
    :class:`.Forbidden`
        Unless the actor is the administrator.

    """
    form = StatusForm(form_data)
    if not form.validate() or form.status.data not in domain.PaperStatus.ALL:
        raise BadRequest('Invalid status value')
    new_status = form.status.data

    paper = _load(paper_id)
    if not policy.can_transition_status(actor):
        raise Forbidden('Only admin can update the paper status')

    updated = papers.update_paper(paper.paper_id, {'status': new_status})
    logger.info('Paper %s status set to %s', paper_id, new_status)

    notifications.deliver(notifications.Message(
        to=updated.email,
        subject=f'Status Update for Your Paper "{updated.title}"',
        body=(f'Hello {updated.fullname},\n\n'
              f'Your paper titled "{updated.title}" has been updated by the '
              f'admin.\nThe new status of your paper is: {new_status}.\n')
    ))
    return domain.to_dict(updated), HTTPStatus.OK, {}


def list_all(actor: domain.Account) -> ResponseData:
    """List every paper. Administrator only."""
    if not policy.is_admin(actor):
        raise Forbidden('Admin access only')
    return {'papers': [domain.to_dict(paper)
                       for paper in papers.list_papers()]}, HTTPStatus.OK, {}


def list_by_author(email: str) -> ResponseData:
    """
    List the papers submitted with a given e-mail address.

    Any authenticated account may list the papers of any address.
    """
    found = papers.list_papers(email=normalize_email(email))
    return {'papers': [domain.to_dict(paper) for paper in found]}, \
        HTTPStatus.OK, {}


def _load(paper_id: str) -> domain.Paper:
    try:
        return papers.get_paper(paper_id)
    except NoSuchPaper as e:
        raise NotFound('Paper not found') from e


def _get_file(files: MultiDict, key: str) -> Optional[FileStorage]:
    upload = files.get(key)
    if upload is None or not upload.filename:
        return None
    return upload


def _check_type(*uploads: Optional[FileStorage]) -> None:
    for upload in uploads:
        if upload is not None and not blobs.accepts(upload.filename):
            raise BadRequest('Only PDF files are allowed')


def _delete_blob(storage_id: str) -> None:
    try:
        blobs.delete(storage_id)
    except DeletionFailed as e:
        logger.warning('Could not delete stored document %s: %s',
                       storage_id, e)


def _recipients(author_email: str) -> list:
    admin_email = current_app.config['ADMIN_EMAIL']
    if author_email == admin_email:
        return [admin_email]
    return [author_email, admin_email]
