"""
Tests for the MetaService, run against every repository implementation
"""

import pytest

from metastore.codec import ValueType
from metastore.exceptions import (
    AlreadyExists,
    InvalidKey,
    InvalidScope,
    InvalidType,
    NotFound,
    UniqueConstraintError,
    UnsupportedValueType,
)
from metastore.repositories.memory import InMemoryMetaRepository
from metastore.services.meta import MetaService


@pytest.mark.unit
class TestScope:
    async def test_default_realm(self, meta_service):
        """Scope defaults to the configured realm"""
        scope = meta_service.scope()
        assert scope.realm == "test-realm"
        assert scope.owner_type == ""
        assert scope.owner_id == ""

    async def test_owner_scope(self, meta_service):
        """Owner type and id are stored as strings"""
        scope = meta_service.scope("users", 15, realm="profiles")
        assert scope.realm == "profiles"
        assert scope.owner_type == "users"
        assert scope.owner_id == "15"

    async def test_invalid_scope(self, meta_service):
        """Over-long scope parts raise InvalidScope"""
        with pytest.raises(InvalidScope):
            meta_service.scope(realm="r" * 129)
        with pytest.raises(InvalidScope):
            meta_service.scope(owner_type="t" * 129)


@pytest.mark.unit
class TestWrites:
    async def test_set_and_get_every_type(self, meta_service, sample_values):
        """Values come back equal and with the same type"""
        scope = meta_service.scope()
        for key, value in sample_values.items():
            await meta_service.set(scope, key, value)

        for key, value in sample_values.items():
            result = await meta_service.get(scope, key, default="missing")
            assert result == value
            assert type(result) is type(value)

    async def test_set_stores_inferred_type(self, meta_service):
        """Stored type tag follows the value"""
        scope = meta_service.scope()
        await meta_service.set(scope, "count", 5)
        await meta_service.set(scope, "tags", ["a", "b"])

        count = await meta_service.repository.find_one(scope, "count")
        tags = await meta_service.repository.find_one(scope, "tags")
        assert (count.type, count.value) == (ValueType.INT, "5")
        assert (tags.type, tags.value) == (ValueType.ARRAY, '["a", "b"]')
        assert await meta_service.get(scope, "count") == 5
        assert await meta_service.get(scope, "tags") == ["a", "b"]

    async def test_set_overwrites(self, meta_service):
        """Two sets on the same key leave one record with the last value"""
        scope = meta_service.scope()
        await meta_service.set(scope, "color", "red")
        await meta_service.set(scope, "color", ["blue"])

        assert await meta_service.count(scope) == 1
        assert await meta_service.get(scope, "color") == ["blue"]

    async def test_set_with_integer_key(self, meta_service):
        """Integer keys are stored as strings"""
        scope = meta_service.scope()
        await meta_service.set(scope, 7, "seven")

        assert await meta_service.get(scope, "7") == "seven"
        assert await meta_service.keys(scope) == ["7"]

    async def test_type_hint_is_validated_but_value_wins(self, meta_service):
        """Type hints are checked but the value decides the stored type"""
        scope = meta_service.scope()
        await meta_service.set(scope, "n", 5, type="string")

        record = await meta_service.repository.find_one(scope, "n")
        assert record.type is ValueType.INT
        assert await meta_service.get(scope, "n") == 5

        with pytest.raises(InvalidType):
            await meta_service.set(scope, "n", 5, type="object")

    async def test_create(self, meta_service):
        """Create stores a new value"""
        scope = meta_service.scope()
        await meta_service.create(scope, "foo", 1.25)
        assert await meta_service.get(scope, "foo") == 1.25

    async def test_create_twice_fails_and_keeps_first_value(self, meta_service):
        """Create on an existing key raises AlreadyExists"""
        scope = meta_service.scope()
        await meta_service.create(scope, "foo", "first")

        with pytest.raises(AlreadyExists, match="Can't create") as exc_info:
            await meta_service.create(scope, "foo", "second")

        assert exc_info.value.key == "foo"
        assert exc_info.value.scope == scope
        assert await meta_service.get(scope, "foo") == "first"

    async def test_create_in_other_scope_is_allowed(self, meta_service):
        """Same key may be created in another scope"""
        await meta_service.create(meta_service.scope(), "foo", 1)
        await meta_service.create(meta_service.scope("users", 1), "foo", 2)

        assert await meta_service.get(meta_service.scope(), "foo") == 1
        assert await meta_service.get(meta_service.scope("users", 1), "foo") == 2

    async def test_update(self, meta_service):
        """Update overwrites an existing value"""
        scope = meta_service.scope()
        await meta_service.set(scope, "foo", "old")
        await meta_service.update(scope, "foo", {"new": True})

        assert await meta_service.get(scope, "foo") == {"new": True}

    async def test_update_missing_fails(self, meta_service):
        """Update on a missing key raises NotFound"""
        scope = meta_service.scope()
        with pytest.raises(NotFound, match="Can't update"):
            await meta_service.update(scope, "never-set", 1)

        assert await meta_service.exists(scope, "never-set") is False

    async def test_invalid_key(self, meta_service):
        """Invalid keys raise InvalidKey on writes and reads"""
        scope = meta_service.scope()
        with pytest.raises(InvalidKey):
            await meta_service.set(scope, "k" * 129, 1)
        with pytest.raises(InvalidKey):
            await meta_service.set(scope, 1.5, 1)
        with pytest.raises(InvalidKey):
            await meta_service.get(scope, ["k"])

        assert await meta_service.count(scope) == 0

    async def test_unsupported_value(self, meta_service):
        """Unsupported values raise UnsupportedValueType"""
        scope = meta_service.scope()
        with pytest.raises(UnsupportedValueType):
            await meta_service.set(scope, "obj", object())

        assert await meta_service.exists(scope, "obj") is False


@pytest.mark.unit
class TestReads:
    async def test_get_default(self, meta_service):
        """Missing keys return the default"""
        scope = meta_service.scope()
        default = {"fallback": [1, 2]}

        assert await meta_service.get(scope, "missing") is None
        assert await meta_service.get(scope, "missing", default) is default

        await meta_service.set(scope, "present", 0)
        assert await meta_service.get(scope, "present", default) == 0

    async def test_stored_null_ignores_default(self, meta_service):
        """A stored null is returned instead of the default"""
        scope = meta_service.scope()
        await meta_service.set(scope, "nothing", None)

        assert await meta_service.get(scope, "nothing", "default") is None
        assert await meta_service.exists(scope, "nothing") is True

    async def test_exists(self, meta_service):
        """Exists reflects stored keys per scope"""
        scope = meta_service.scope()
        await meta_service.set(scope, "foo", "bar")

        assert await meta_service.exists(scope, "foo") is True
        assert await meta_service.exists(scope, "bar") is False
        assert await meta_service.exists(meta_service.scope(realm="other"), "foo") is False

    async def test_count_per_scope(self, meta_service):
        """Count only covers the given scope"""
        default_scope = meta_service.scope()
        custom_realm = meta_service.scope(realm="custom")
        owned = meta_service.scope("posts", "9", realm="custom")

        assert await meta_service.count(default_scope) == 0

        for i in range(3):
            await meta_service.set(default_scope, f"k{i}", i)
        for i in range(5):
            await meta_service.set(custom_realm, f"k{i}", i)
        await meta_service.set(owned, "k0", "owned")

        assert await meta_service.count(default_scope) == 3
        assert await meta_service.count(custom_realm) == 5
        assert await meta_service.count(owned) == 1

    async def test_all_is_ordered_and_last_write_wins(self, meta_service):
        """All returns key-ordered latest values"""
        scope = meta_service.scope("users", "1")
        await meta_service.set(scope, "zeta", 1)
        await meta_service.set(scope, "alpha", [1])
        await meta_service.set(scope, "mid", "x")
        await meta_service.set(scope, "zeta", 2)
        await meta_service.set(meta_service.scope("users", "2"), "beta", "elsewhere")

        result = await meta_service.all(scope)

        assert result == {"alpha": [1], "mid": "x", "zeta": 2}
        assert list(result) == ["alpha", "mid", "zeta"]

    async def test_all_empty(self, meta_service):
        """All on an empty scope is an empty dict"""
        assert await meta_service.all(meta_service.scope()) == {}
        assert await meta_service.keys(meta_service.scope()) == []

    async def test_keys_are_ordered(self, meta_service):
        """Keys come back sorted"""
        scope = meta_service.scope()
        for key in ["b", "a", "c", "B"]:
            await meta_service.set(scope, key, "")

        assert await meta_service.keys(scope) == ["B", "a", "b", "c"]


@pytest.mark.unit
class TestQuery:
    async def test_wildcard_positions(self, meta_service):
        """Leading, trailing and embedded wildcards all match"""
        scope = meta_service.scope()
        await meta_service.set(scope, "startabcend", "hit")
        await meta_service.set(scope, "unrelated", "miss")

        assert await meta_service.query(scope, "start*") == {"startabcend": "hit"}
        assert await meta_service.query(scope, "*abc*") == {"startabcend": "hit"}
        assert await meta_service.query(scope, "*end") == {"startabcend": "hit"}

    async def test_query_is_ordered(self, meta_service):
        """Query results are ordered by key"""
        scope = meta_service.scope()
        await meta_service.set(scope, "user.2.name", "B")
        await meta_service.set(scope, "user.1.name", "A")
        await meta_service.set(scope, "user.1.email", "a@b.c")
        await meta_service.set(scope, "product.1", "X")

        result = await meta_service.query(scope, "user.*.name")

        assert list(result.items()) == [("user.1.name", "A"), ("user.2.name", "B")]

    async def test_query_default_when_nothing_matches(self, meta_service):
        """Query returns the default when nothing matches"""
        scope = meta_service.scope()
        await meta_service.set(scope, "abc", 1)

        assert await meta_service.query(scope, "xyz*") is None
        assert await meta_service.query(scope, "xyz*", {}) == {}

    async def test_query_treats_other_characters_literally(self, meta_service):
        """Only '*' is a wildcard"""
        scope = meta_service.scope()
        await meta_service.set(scope, "a_b", 1)
        await meta_service.set(scope, "axb", 2)
        await meta_service.set(scope, "a?b", 3)
        await meta_service.set(scope, "a[b]", 4)

        assert await meta_service.query(scope, "a_*") == {"a_b": 1}
        assert await meta_service.query(scope, "a?*") == {"a?b": 3}
        assert await meta_service.query(scope, "a[b]") == {"a[b]": 4}

    async def test_query_is_case_sensitive(self, meta_service):
        """Query matching is case-sensitive"""
        scope = meta_service.scope()
        await meta_service.set(scope, "Name", 1)

        assert await meta_service.query(scope, "name*") is None
        assert await meta_service.query(scope, "Na*") == {"Name": 1}

    async def test_query_stays_in_scope(self, meta_service):
        """Query never crosses scopes"""
        await meta_service.set(meta_service.scope(), "abc", 1)
        await meta_service.set(meta_service.scope(realm="other"), "abd", 2)

        assert await meta_service.query(meta_service.scope(), "ab*") == {"abc": 1}


@pytest.mark.unit
class TestDeletes:
    async def test_remove_single_key(self, meta_service):
        """Remove deletes a single key"""
        scope = meta_service.scope()
        await meta_service.set(scope, "foo", "bar")

        assert await meta_service.remove(scope, "foo") == 1
        assert await meta_service.all(scope) == {}

    async def test_remove_many_ignores_missing(self, meta_service):
        """Remove skips missing keys and stays in scope"""
        scope = meta_service.scope()
        await meta_service.set(scope, "k1", 1)
        await meta_service.set(scope, "k3", 3)
        await meta_service.set(meta_service.scope(realm="other"), "k1", "other")

        deleted = await meta_service.remove(scope, ["k1", "k2"])

        assert deleted == 1
        assert await meta_service.all(scope) == {"k3": 3}
        assert await meta_service.get(meta_service.scope(realm="other"), "k1") == "other"

    async def test_remove_with_duplicates_and_int_keys(self, meta_service):
        """Duplicate and integer keys count once"""
        scope = meta_service.scope()
        await meta_service.set(scope, 1, "one")
        await meta_service.set(scope, "2", "two")

        assert await meta_service.remove(scope, (1, "1", 2)) == 2
        assert await meta_service.count(scope) == 0

    async def test_remove_accepts_any_iterable(self, meta_service):
        """Remove takes dict views and generators as key lists"""
        scope = meta_service.scope()
        for key in ["a", "b", "c", "d"]:
            await meta_service.set(scope, key, key)

        assert await meta_service.remove(scope, {"a": 1, "b": 2}.keys()) == 2
        assert await meta_service.remove(scope, (key for key in ["c", "missing"])) == 1
        assert await meta_service.keys(scope) == ["d"]

    async def test_remove_rejects_non_key_values(self, meta_service):
        """Remove rejects values that aren't keys or key iterables"""
        scope = meta_service.scope()
        await meta_service.set(scope, "a", 1)

        for keys in [None, True, 1.5, ["a", object()]]:
            with pytest.raises(InvalidKey):
                await meta_service.remove(scope, keys)
        assert await meta_service.exists(scope, "a")

    async def test_remove_nothing(self, meta_service):
        """Removing no keys deletes nothing"""
        assert await meta_service.remove(meta_service.scope(), []) == 0

    async def test_purge_only_touches_scope(self, meta_service):
        """Purge empties one scope and returns the count"""
        scope = meta_service.scope()
        owned = meta_service.scope("users", "1")
        for i in range(4):
            await meta_service.set(scope, f"k{i}", i)
        await meta_service.set(owned, "k0", "kept")

        assert await meta_service.purge(scope) == 4
        assert await meta_service.count(scope) == 0
        assert await meta_service.all(owned) == {"k0": "kept"}
        assert await meta_service.purge(scope) == 0


@pytest.mark.unit
class TestServiceInfo:
    async def test_service_info(self, meta_service):
        """Service info reports realm, repository and capabilities"""
        await meta_service.set(meta_service.scope(), "a", 1)
        await meta_service.set(meta_service.scope(realm="other"), "a", 1)

        info = await meta_service.get_service_info()

        assert info["type"] == "meta_service"
        assert info["initialized"] is True
        assert info["default_realm"] == "test-realm"
        assert info["repository"]["total_records"] == 2
        assert info["repository"]["total_realms"] == 2
        assert "array" in info["value_types"]


class RacingRepository(InMemoryMetaRepository):
    """Pretends another writer inserted the record between lookup and insert"""

    async def find_one(self, scope, key):
        return None

    async def insert(self, record):
        raise UniqueConstraintError("UNIQUE constraint failed")


@pytest.mark.unit
class TestConcurrency:
    async def test_create_translates_unique_violation(self):
        """A lost insert race surfaces as AlreadyExists"""
        service = MetaService(RacingRepository(), default_realm="race")

        with pytest.raises(AlreadyExists) as exc_info:
            await service.create(service.scope(), "key", "value")

        assert isinstance(exc_info.value.__cause__, UniqueConstraintError)

    async def test_lazy_initialization(self):
        """First call initializes the repository"""
        service = MetaService(InMemoryMetaRepository())
        assert service.default_realm == "metastore"

        await service.set(service.scope(), "a", 1)

        info = await service.get_service_info()
        assert info["initialized"] is True
