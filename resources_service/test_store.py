"""
Unit tests for the in-memory ResourceStore.
"""
import threading
from decimal import Decimal
import pytest
from pydantic import ValidationError

from resources_service.models import Resource
from resources_service.store import Outcome, ResourceStore


@pytest.fixture
def store():
    return ResourceStore()


@pytest.fixture
def fan():
    return Resource(id=1, name="ElectricFan", quantity=14, price=Decimal("20.90"))


class TestPut:
    """Tests for put (upsert)."""

    def test_put_then_get(self, store, fan):
        result = store.put(1, fan)
        assert result.ok
        assert store.get(1).value == fan

    def test_put_overwrites_every_field(self, store, fan):
        store.put(1, fan)
        store.put(1, Resource(id=1, name="Heater", quantity=3, price=Decimal("45.00")))
        stored = store.get(1).value
        assert stored.name == "Heater"
        assert stored.quantity == 3
        assert stored.price == Decimal("45.00")
        assert len(store) == 1

    def test_put_keys_by_given_id(self, store, fan):
        store.put(7, fan)
        assert store.get(7).value.id == 7
        assert 1 not in store

    def test_stored_record_is_a_copy(self, store, fan):
        store.put(1, fan)
        fan.quantity = 99
        assert store.get(1).value.quantity == 14


class TestGet:
    """Tests for get and all."""

    def test_get_absent_is_not_found(self, store):
        result = store.get(42)
        assert result.outcome is Outcome.NOT_FOUND
        assert result.value is None

    def test_returned_record_is_a_copy(self, store, fan):
        store.put(1, fan)
        store.get(1).value.name = "Changed"
        assert store.get(1).value.name == "ElectricFan"

    def test_all_empty(self, store):
        assert store.all() == []

    def test_all_insertion_order(self, store):
        for i in (3, 1, 2):
            store.put(i, Resource(id=i, name=f"r{i}", quantity=i, price=Decimal("1.00")))
        assert [r.id for r in store.all()] == [3, 1, 2]

    def test_all_keeps_position_on_overwrite(self, store):
        for i in (1, 2):
            store.put(i, Resource(id=i, name=f"r{i}", quantity=i, price=Decimal("1.00")))
        store.put(1, Resource(id=1, name="again", quantity=0, price=Decimal("2.00")))
        assert [r.name for r in store.all()] == ["again", "r2"]


class TestUpdate:
    """Tests for update."""

    def test_update_replaces_fields(self, store, fan):
        store.put(1, fan)
        result = store.update(1, Resource(id=1, name="ElectricFan", quantity=15, price=Decimal("29.80")))
        assert result.ok
        assert result.value.quantity == 15
        assert store.get(1).value.price == Decimal("29.80")

    def test_update_keeps_stored_id(self, store, fan):
        store.put(1, fan)
        store.update(1, Resource(id=5, name="x", quantity=0, price=Decimal("0.10")))
        assert store.get(1).value.id == 1
        assert 5 not in store

    def test_update_absent_is_not_found_and_no_mutation(self, store, fan):
        result = store.update(1, fan)
        assert result.not_found
        assert len(store) == 0


class TestDelete:
    """Tests for delete."""

    def test_delete_removes(self, store, fan):
        store.put(1, fan)
        result = store.delete(1)
        assert result.ok
        assert result.value == fan
        assert store.get(1).not_found

    def test_delete_twice(self, store, fan):
        store.put(1, fan)
        assert store.delete(1).ok
        assert store.delete(1).not_found

    def test_delete_absent_leaves_others(self, store, fan):
        store.put(1, fan)
        assert store.delete(2).not_found
        assert len(store) == 1


class TestResourceModel:
    """Tests for the Resource model itself."""

    def test_price_rejects_strings(self):
        with pytest.raises(ValidationError):
            Resource(id=1, name="ElectricFan", quantity=14, price="20.90")

    def test_price_rejects_booleans(self):
        with pytest.raises(ValidationError):
            Resource(id=1, name="ElectricFan", quantity=14, price=True)

    def test_price_accepts_int_and_decimal(self):
        assert Resource(id=1, name="a", quantity=1, price=20).price == Decimal(20)
        assert str(Resource(id=1, name="a", quantity=1, price=Decimal("20.90")).price) == "20.90"

    def test_no_orm_mode_config(self):
        assert "from_attributes" not in Resource.model_config


class TestConcurrency:
    """Concurrent writers never leave a half-written record."""

    def test_parallel_puts(self, store):
        def writer(n):
            for i in range(200):
                store.put(1, Resource(id=1, name=f"w{n}", quantity=n, price=Decimal(n)))

        threads = [threading.Thread(target=writer, args=(n,)) for n in range(4)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        record = store.get(1).value
        assert record.name == f"w{record.quantity}"
        assert record.price == Decimal(record.quantity)
