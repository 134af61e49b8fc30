import pytest

from identitylab import Reference, Repository, SessionFactory
from identitylab.core import Model, StringField
from identitylab.persistence import NotFoundError


class Book(Model):
    title = StringField(nullable=False)


@pytest.fixture
def factory():
    with SessionFactory.from_dsn("sqlite:///:memory:", models=[Book]) as factory:
        yield factory


def test_save_assigns_id_and_tracks_instance(factory):
    with factory.session() as session:
        books = Repository(session, Book)
        book = books.save(Book(title="Dune"))
        assert book.pk == 1
        assert books.find_by_id(1) is book


def test_get_one_and_find_by_id_share_representative(factory):
    book_id = factory.store.insert(Book(title="Emma"))
    with factory.session() as session:
        books = Repository(session, Book)
        reference = books.get_one(book_id)
        assert isinstance(reference, Reference)
        assert books.find_by_id(book_id) is reference
        assert books.get_by_id(book_id) is reference
        assert reference.title == "Emma"


def test_find_by_id_returns_none_for_missing_row(factory):
    with factory.session() as session:
        books = Repository(session, Book)
        assert books.find_by_id(9) is None
        with pytest.raises(NotFoundError):
            books.get_by_id(9)


def test_delete_by_id_removes_row_and_cache_entry(factory):
    book_id = factory.store.insert(Book(title="Ulysses"))
    with factory.session() as session:
        books = Repository(session, Book)
        loaded = books.get_by_id(book_id)
        books.delete_by_id(book_id)
        assert not session.contains(loaded)
        assert books.exists_by_id(book_id) is False
        assert books.find_by_id(book_id) is None
        with pytest.raises(NotFoundError):
            books.delete_by_id(book_id)
