"""
Blob store for uploaded documents.

Documents are addressed by an opaque storage identifier. Only PDF content is
accepted. Any failure to store a document, including a timeout in the
underlying storage, is raised as :class:`.UploadFailed`; nothing is left
pending.
"""

from typing import Optional
import logging
import os
import uuid

from flask import Flask, current_app, g
from werkzeug.datastructures import FileStorage

from .. import domain
from .exceptions import DeletionFailed, UploadFailed

logger = logging.getLogger(__name__)

ALLOWED_EXTENSIONS = ('.pdf',)


def accepts(filename: Optional[str]) -> bool:
    """Whether a file with this name may be stored."""
    return (filename or '').lower().endswith(ALLOWED_EXTENSIONS)


class FileStore(object):
    """Keeps documents in a directory that is served under a base URL."""

    def __init__(self, root: str, base_url: str) -> None:
        """Set the storage directory and public URL prefix."""
        self._root = root
        self._base_url = base_url.rstrip('/')

    def upload(self, upload: FileStorage) -> domain.Document:
        """
        Store an uploaded document.

        Parameters
        ----------
        upload : :class:`FileStorage`

        Returns
        -------
        :class:`domain.Document`

        Raises
        ------
        :class:`.UploadFailed`
            If the file is not a PDF, or could not be written.

        """
        filename = upload.filename or ''
        if not accepts(filename):
            raise UploadFailed('Only PDF files are allowed')

        storage_id = f'{uuid.uuid4().hex}.pdf'
        path = os.path.join(self._root, storage_id)
        try:
            os.makedirs(self._root, exist_ok=True)
            upload.save(path)
        except OSError as e:
            raise UploadFailed(f'Could not store {filename}: {e}') from e
        logger.debug('Stored %s as %s', filename, storage_id)
        viewer_url = f'{self._base_url}/{storage_id}'
        return domain.Document(
            viewer_url=viewer_url,
            download_url=f'{viewer_url}?download=1',
            storage_id=storage_id
        )

    def delete(self, storage_id: str) -> None:
        """
        Delete a stored document.

        Raises
        ------
        :class:`.DeletionFailed`

        """
        path = os.path.join(self._root, os.path.basename(storage_id))
        try:
            os.remove(path)
        except OSError as e:
            raise DeletionFailed(f'Could not delete {storage_id}: {e}') from e
        logger.debug('Deleted %s', storage_id)

    @classmethod
    def init_app(cls, app: Flask) -> None:
        """Set default configuration parameters for an application."""
        app.config.setdefault('BLOB_ROOT',
                              os.path.join(os.getcwd(), 'uploads'))
        app.config.setdefault('BLOB_BASE_URL', '/uploads')

    @classmethod
    def get_store(cls, app: Optional[Flask] = None) -> 'FileStore':
        """Get a new store for the configured directory."""
        config = (app or current_app).config
        return cls(config['BLOB_ROOT'], config['BLOB_BASE_URL'])

    @classmethod
    def current_store(cls) -> 'FileStore':
        """Get/create a :class:`.FileStore` for this context."""
        if 'blobs' not in g:
            g.blobs = cls.get_store()
        return g.blobs      # type: ignore


def upload(document: FileStorage) -> domain.Document:
    """Store a document with the blob store for this context."""
    return FileStore.current_store().upload(document)


def delete(storage_id: str) -> None:
    """Delete a document from the blob store for this context."""
    FileStore.current_store().delete(storage_id)
