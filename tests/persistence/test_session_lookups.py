import pytest

from identitylab.adapters import ConnectionConfig
from identitylab.core import Model, StringField
from identitylab.persistence import (
    LazyLoadError,
    NotFoundError,
    Reference,
    RepresentativeKind,
    SessionFactory,
    kind_of,
)


class User(Model):
    pass


class Pet(Model):
    name = StringField(nullable=False)


@pytest.fixture
def factory(tmp_path):
    factory = SessionFactory(
        ConnectionConfig(url=f"sqlite:///{tmp_path / 'lookups.db'}"), models=[User, Pet]
    )
    yield factory
    factory.dispose()


def insert_user(factory) -> int:
    return factory.store.insert(User())


def test_reference_then_materialized_returns_same_reference(factory):
    user_id = insert_user(factory)
    with factory.session() as session:
        reference = session.get_reference(User, user_id)
        loaded = session.get(User, user_id)
        assert loaded is reference
        assert kind_of(loaded) is RepresentativeKind.REFERENCE
        assert reference.initialized is False


def test_materialized_then_reference_returns_same_instance(factory):
    user_id = insert_user(factory)
    with factory.session() as session:
        loaded = session.get(User, user_id)
        reference = session.get_reference(User, user_id)
        assert reference is loaded
        assert isinstance(reference, User)
        assert kind_of(reference) is RepresentativeKind.MATERIALIZED


def test_clear_then_materialized_returns_new_instance(factory):
    user_id = insert_user(factory)
    with factory.session() as session:
        reference = session.get_reference(User, user_id)
        session.clear()
        loaded = session.get(User, user_id)
        assert loaded is not reference
        assert kind_of(loaded) is RepresentativeKind.MATERIALIZED
        assert loaded.pk == user_id


def test_clear_then_reference_returns_new_reference(factory):
    user_id = insert_user(factory)
    with factory.session() as session:
        loaded = session.get(User, user_id)
        session.clear()
        reference = session.get_reference(User, user_id)
        assert reference is not loaded
        assert isinstance(reference, Reference)


def test_reference_to_deleted_row_fails_on_access(factory):
    user_id = insert_user(factory)
    factory.store.delete(User, user_id)
    with factory.session() as session:
        reference = session.get_reference(User, user_id)
        assert reference.pk == user_id
        with pytest.raises(NotFoundError):
            reference.id
        # the failed reference stays cached; a materialized lookup returns it unchanged
        assert session.get(User, user_id) is reference


def test_materialized_lookup_of_missing_row_raises(factory):
    with factory.session() as session:
        with pytest.raises(NotFoundError):
            session.get(User, 404)
        assert session.find(User, 404) is None
        assert len(session.identity_map) == 0


def test_detach_affects_only_one_key(factory):
    first_id = insert_user(factory)
    second_id = insert_user(factory)
    with factory.session() as session:
        first = session.get_reference(User, first_id)
        second = session.get(User, second_id)
        session.detach(first)
        assert session.get_reference(User, first_id) is not first
        assert session.get_reference(User, second_id) is second
        assert session.contains(second)
        assert not session.contains(first)


def test_detach_by_model_and_pk(factory):
    user_id = insert_user(factory)
    with factory.session() as session:
        loaded = session.get(User, user_id)
        session.detach(User, user_id)
        assert session.get(User, user_id) is not loaded


def test_detach_and_clear_on_absent_keys_are_noops(factory):
    with factory.session() as session:
        session.detach(User, 12345)
        session.detach(User(id=777))
        session.clear()
        session.clear()
        assert len(session.identity_map) == 0


def test_detach_ignores_stale_representative(factory):
    user_id = insert_user(factory)
    with factory.session() as session:
        stale = session.get(User, user_id)
        session.clear()
        current = session.get(User, user_id)
        session.detach(stale)
        assert session.get(User, user_id) is current


def test_detached_unloaded_reference_cannot_load(factory):
    pet_id = factory.store.insert(Pet(name="Rex"))
    with factory.session() as session:
        reference = session.get_reference(Pet, pet_id)
        session.detach(reference)
        with pytest.raises(LazyLoadError):
            reference.name


def test_loaded_reference_survives_session_end(factory):
    pet_id = factory.store.insert(Pet(name="Rex"))
    with factory.session() as session:
        reference = session.get_reference(Pet, pet_id)
        assert reference.name == "Rex"
    assert reference.name == "Rex"


def test_sessions_do_not_share_representatives(factory):
    user_id = insert_user(factory)
    first_session = factory.create_session()
    second_session = factory.create_session()
    try:
        first = first_session.get(User, user_id)
        second = second_session.get(User, user_id)
        assert first is not second
        assert first_session.identity_map.get(User, user_id).session_id == first_session.session_id
        assert second_session.identity_map.get(User, user_id).session_id == second_session.session_id
    finally:
        first_session.close()
        second_session.close()


def test_string_key_maps_to_the_same_entry(factory):
    user_id = insert_user(factory)
    with factory.session() as session:
        first = session.get(User, str(user_id))
        second = session.get(User, str(user_id))
        assert first is second
        assert session.get_reference(User, user_id) is first
        assert len(session.identity_map) == 1
        session.detach(User, str(user_id))
        assert len(session.identity_map) == 0


def test_reference_registered_under_normalized_key(factory):
    user_id = insert_user(factory)
    with factory.session() as session:
        reference = session.get_reference(User, str(user_id))
        assert reference.pk == user_id
        assert session.get(User, user_id) is reference


def test_overlapping_sessions_keep_separate_caches_and_transactions(factory):
    user_id = insert_user(factory)
    with factory.session() as outer:
        outer_user = outer.get(User, user_id)
        pet = Pet(name="Rex")
        outer.add(pet)
        outer.flush()
        with pytest.raises(RuntimeError):
            with factory.session() as inner:
                inner_user = inner.get(User, user_id)
                assert inner_user is not outer_user
                assert inner.identity_map.get(User, user_id).session_id == inner.session_id
                # uncommitted rows of the outer session are not visible here
                assert inner.find(Pet, pet.pk) is None
                raise RuntimeError("abort inner unit of work")
        assert inner.closed
        assert outer.transaction_manager.active
        assert outer.get(User, user_id) is outer_user
        assert outer.get(Pet, pet.pk) is pet
    assert factory.store.exists(Pet, pet.pk)


def test_rollback_of_one_session_keeps_another_sessions_commit(factory):
    with pytest.raises(RuntimeError):
        with factory.session() as outer:
            with factory.session() as inner:
                pet = Pet(name="Tom")
                inner.add(pet)
            assert outer.transaction_manager.active
            assert outer.get(Pet, pet.pk).name == "Tom"
            raise RuntimeError("abort outer unit of work")
    assert factory.store.exists(Pet, pet.pk)


def test_unit_of_work_end_discards_cache(factory):
    user_id = insert_user(factory)
    session = factory.create_session()
    try:
        session.begin()
        reference = session.get_reference(User, user_id)
        session.commit()
        assert len(session.identity_map) == 0
        assert reference.attached is False
        session.begin()
        assert session.get(User, user_id) is not reference
        session.rollback()
        assert len(session.identity_map) == 0
    finally:
        session.close()


@pytest.mark.parametrize("first_lookup", ["get", "get_reference"])
@pytest.mark.parametrize("second_lookup", ["get", "get_reference"])
def test_repeated_lookups_share_one_representative(factory, first_lookup, second_lookup):
    pet_id = factory.store.insert(Pet(name="Tom"))
    with factory.session() as session:
        first = getattr(session, first_lookup)(Pet, pet_id)
        second = getattr(session, second_lookup)(Pet, pet_id)
        assert first is second
        assert first.name == "Tom"
