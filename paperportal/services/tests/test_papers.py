"""Tests for :mod:`paperportal.services.papers`."""

from unittest import TestCase

from ... import domain
from ...tests.util import temporary_app
from .. import papers
from ..exceptions import NoSuchPaper


def _document(name):
    return domain.Document(f'/uploads/{name}', f'/uploads/{name}?download=1',
                           name)


class TestPapers(TestCase):
    """Papers are kept in the document store."""

    def setUp(self):
        self._ctx = temporary_app()
        self._ctx.__enter__()
        self.paper = domain.Paper(
            fullname='Some Author',
            email='author@example.org',
            title='On things',
            abstract='We consider things.',
            keywords=['things', 'stuff'],
            pdf=_document('a.pdf')
        )

    def tearDown(self):
        self._ctx.__exit__(None, None, None)

    def test_create(self):
        """A new paper gets an identifier, and can be loaded."""
        stored = papers.create_paper(self.paper)
        self.assertIsNotNone(stored.paper_id)
        self.assertEqual(stored.status, domain.PaperStatus.SUBMITTED)
        self.assertIsNone(stored.supplementary)
        loaded = papers.get_paper(stored.paper_id)
        self.assertEqual(loaded, stored)
        self.assertEqual(loaded.keywords, ['things', 'stuff'])
        self.assertEqual(loaded.pdf, _document('a.pdf'))

    def test_missing(self):
        """Unknown identifiers are reported."""
        with self.assertRaises(NoSuchPaper):
            papers.get_paper('999')
        with self.assertRaises(NoSuchPaper):
            papers.get_paper('abc')
        with self.assertRaises(NoSuchPaper):
            papers.delete_paper('999')

    def test_partial_update(self):
        """Fields that are not given are left alone."""
        stored = papers.create_paper(self.paper)
        updated = papers.update_paper(stored.paper_id, {
            'abstract': 'We reconsider things.',
            'supplementary': _document('b.pdf')
        })
        self.assertEqual(updated.abstract, 'We reconsider things.')
        self.assertEqual(updated.title, 'On things')
        self.assertEqual(updated.keywords, ['things', 'stuff'])
        self.assertEqual(updated.pdf, _document('a.pdf'))
        self.assertEqual(updated.supplementary, _document('b.pdf'))
        self.assertGreaterEqual(updated.updated, stored.updated)

    def test_unknown_field(self):
        """Only paper fields may be updated."""
        stored = papers.create_paper(self.paper)
        with self.assertRaises(ValueError):
            papers.update_paper(stored.paper_id, {'paper_id': '5'})

    def test_list(self):
        """Papers can be listed, optionally by address."""
        first = papers.create_paper(self.paper)
        second = papers.create_paper(self.paper._replace(email='b@x.com'))
        self.assertEqual(papers.list_papers(), [first, second])
        self.assertEqual(papers.list_papers(email='b@x.com'), [second])
        self.assertEqual(papers.list_papers(email='c@x.com'), [])

    def test_delete(self):
        """A deleted paper is gone."""
        stored = papers.create_paper(self.paper)
        papers.delete_paper(stored.paper_id)
        with self.assertRaises(NoSuchPaper):
            papers.get_paper(stored.paper_id)
