"""Tests for the engine sentinels."""

import copy as _copy
import pickle as _pickle

import hieralookup.core.values as values


class TestSentinels:
    def test_distinct_from_undef(self) -> None:
        assert values.NOT_FOUND is not None
        assert values.ABSENT is not None
        assert values.NOT_FOUND is not values.ABSENT

    def test_falsy(self) -> None:
        assert not values.NOT_FOUND
        assert not values.ABSENT

    def test_repr(self) -> None:
        assert repr(values.NOT_FOUND) == "NOT_FOUND"

    def test_identity_survives_copy_and_pickle(self) -> None:
        assert _copy.copy(values.NOT_FOUND) is values.NOT_FOUND
        assert _copy.deepcopy([values.ABSENT])[0] is values.ABSENT
        assert _pickle.loads(_pickle.dumps(values.NOT_FOUND)) is values.NOT_FOUND

    def test_is_found(self) -> None:
        assert values.is_found(None)
        assert values.is_found(0)
        assert not values.is_found(values.NOT_FOUND)
