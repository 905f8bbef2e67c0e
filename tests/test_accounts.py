from datetime import timedelta

import pytest

from conftest import NOW, NOW_MS
from sellerhub.core.errors import AuthorizationError
from sellerhub.services.accounts import AccountData


def _data(**overrides) -> AccountData:
    values = dict(
        seller_id="100",
        account="seller1@example.com",
        country="ph",
        access_token="T1",
        refresh_token="R1",
        expires_in=3600,
    )
    values.update(overrides)
    return AccountData(**values)


def test_upsert_new_account(store, clock):
    acc = store.upsert(_data())

    assert acc.id == "100"
    assert acc.account == "seller1@example.com"
    assert acc.country == "ph"
    assert acc.access_token == "T1"
    assert acc.expires_in == 3600
    assert acc.token_expires_at == NOW_MS + 3600 * 1000
    assert len(store.list()) == 1


def test_id_falls_back_to_account_name(store, clock):
    acc = store.upsert(_data(seller_id=None))
    assert acc.id == "seller1@example.com"


def test_account_data_without_identity():
    with pytest.raises(ValueError):
        _ = _data(seller_id=None, account=None).id


def test_upsert_existing_overwrites_in_place(store, clock):
    store.upsert(_data(seller_id="1", account="a"))
    first = store.upsert(_data(seller_id="2", account="b"))
    store.upsert(_data(seller_id="3", account="c"))
    added_at = first.added_at

    clock.set(NOW + timedelta(hours=2))
    updated = store.upsert(
        _data(seller_id="2", account="b", access_token="T2", refresh_token="R2", expires_in=60)
    )

    assert [a.id for a in store.list()] == ["1", "2", "3"]
    assert updated.access_token == "T2"
    assert store.refresh_token_for(updated) == "R2"
    assert updated.expires_in == 60
    assert updated.token_expires_at == NOW_MS + 2 * 3600 * 1000 + 60 * 1000
    # added_at сохраняется при перезаписи
    assert updated.added_at == added_at


def test_list_preserves_insertion_order(store, clock):
    for sid in ("30", "10", "20"):
        store.upsert(_data(seller_id=sid))
    assert [a.id for a in store.list()] == ["30", "10", "20"]


def test_refresh_token_is_encrypted_at_rest(store, clock):
    acc = store.upsert(_data(refresh_token="R-secret"))
    assert acc.refresh_token_enc
    assert "R-secret" not in acc.refresh_token_enc
    assert store.refresh_token_for(acc) == "R-secret"


def test_missing_refresh_token(store, clock):
    acc = store.upsert(_data(refresh_token=None))
    assert store.refresh_token_for(acc) is None


def test_remove(store, clock):
    store.upsert(_data(seller_id="1"))
    store.upsert(_data(seller_id="2"))

    store.remove("1")
    store.remove("unknown")

    assert [a.id for a in store.list()] == ["2"]


def test_set_active_and_get_active(store, clock):
    store.upsert(_data(seller_id="1"))
    store.upsert(_data(seller_id="2", access_token="T2"))

    assert store.get_active() is None
    acc = store.set_active("2")
    assert acc.id == "2"
    assert store.get_active().id == "2"

    store.set_active("1")
    assert store.get_active().id == "1"
    # другой аккаунт не трогаем
    assert store.get("2").access_token == "T2"


def test_set_active_unknown_keeps_pointer(store, clock):
    store.upsert(_data(seller_id="1"))
    store.set_active("1")

    assert store.set_active("missing") is None
    assert store.get_active().id == "1"


def test_removed_active_account_is_not_returned(store, clock):
    store.upsert(_data(seller_id="1"))
    store.set_active("1")
    store.remove("1")

    assert store.get_active() is None
    assert store.set_active("1") is None


def test_clear_all(store, clock):
    store.upsert(_data(seller_id="1"))
    store.upsert(_data(seller_id="2"))
    store.set_active("2")

    store.clear_all()

    assert store.list() == []
    assert store.get_active() is None


def test_upsert_after_clear_all_starts_fresh(store, clock):
    store.upsert(_data(seller_id="1"))
    store.set_active("1")
    store.clear_all()

    store.upsert(_data(seller_id="1"))
    assert store.get_active() is None
    assert len(store.list()) == 1


def test_is_expired_boundary(store, clock):
    acc = store.upsert(_data(expires_in=10))

    clock.set(NOW + timedelta(seconds=10))
    assert store.is_expired(acc) is False

    clock.set(NOW + timedelta(seconds=10, milliseconds=1))
    assert store.is_expired(acc) is True


def test_is_expired_does_not_mutate(store, clock):
    acc = store.upsert(_data(expires_in=10))
    clock.set(NOW + timedelta(days=1))

    assert store.is_expired(acc)
    reloaded = store.get(acc.id)
    assert reloaded.access_token == "T1"
    assert reloaded.token_expires_at == NOW_MS + 10 * 1000


def test_undecryptable_refresh_token(store, clock):
    acc = store.upsert(_data())
    acc.refresh_token_enc = "not-a-fernet-token"

    with pytest.raises(AuthorizationError):
        store.refresh_token_for(acc)
