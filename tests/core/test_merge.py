"""Tests for merge strategy parsing and value merging."""

import copy as _copy
import typing as _typing

import pytest as _pytest

import hieralookup.core.errors as errors
import hieralookup.core.merge as merge


def _strategy(spec: _typing.Any) -> merge.MergeStrategy:
    return merge.parse_strategy(spec)


class TestParseStrategy:
    """Strategy names and strategy hashes."""

    def test_none_is_first(self) -> None:
        assert merge.parse_strategy(None) is merge.FIRST
        assert not merge.FIRST.is_merge

    @_pytest.mark.parametrize("name", ["first", "unique", "hash", "deep"])
    def test_names(self, name: str) -> None:
        strategy = merge.parse_strategy(name)
        assert strategy.kind is merge.StrategyKind(name)
        assert str(strategy) == name

    def test_hash_form(self) -> None:
        strategy = merge.parse_strategy(
            {"strategy": "deep", "knockout_prefix": "--", "merge_hash_arrays": True}
        )
        assert strategy == merge.MergeStrategy(
            merge.StrategyKind.DEEP, knockout_prefix="--", merge_hash_arrays=True
        )

    def test_strategy_instance_passed_through(self) -> None:
        strategy = merge.MergeStrategy(merge.StrategyKind.HASH)
        assert merge.parse_strategy(strategy) is strategy

    def test_hash_without_strategy(self) -> None:
        with _pytest.raises(errors.MergeTypeError) as excinfo:
            merge.parse_strategy({"merge_key": "hash"})
        assert str(excinfo.value) == merge.MISSING_STRATEGY_MESSAGE

    def test_unknown_name(self) -> None:
        with _pytest.raises(errors.MergeTypeError, match="unknown merge strategy 'shallow'"):
            merge.parse_strategy("shallow")

    def test_unknown_option(self) -> None:
        with _pytest.raises(errors.MergeTypeError, match="invalid merge options"):
            merge.parse_strategy({"strategy": "deep", "sort_merged_arrays": True})

    def test_deep_option_with_other_strategy(self) -> None:
        with _pytest.raises(errors.MergeTypeError, match="only valid with the 'deep' strategy"):
            merge.parse_strategy({"strategy": "hash", "knockout_prefix": "--"})

    def test_not_a_name_or_hash(self) -> None:
        with _pytest.raises(errors.MergeTypeError, match="got Integer"):
            merge.parse_strategy(3)


class TestFirst:
    def test_takes_highest_precedence(self) -> None:
        assert merge.merge_values(["a", "b"], merge.FIRST) == "a"

    def test_requires_values(self) -> None:
        with _pytest.raises(ValueError):
            merge.merge_values([], merge.FIRST)


class TestUnique:
    def test_concatenates_in_order(self) -> None:
        result = merge.merge_values([["env_c"], ["module_c"]], _strategy("unique"))
        assert result == ["env_c", "module_c"]

    def test_first_occurrence_wins(self) -> None:
        result = merge.merge_values([["x", "y"], ["y", "z"]], _strategy("unique"))
        assert result == ["x", "y", "z"]

    def test_deduplicates_unhashable_items(self) -> None:
        result = merge.merge_values([[{"a": 1}], [{"a": 1}, {"b": 2}]], _strategy("unique"))
        assert result == [{"a": 1}, {"b": 2}]

    def test_equal_values_of_different_types_kept(self) -> None:
        result = merge.merge_values([[1], [True, 1.0, 1]], _strategy("unique"))
        assert result == [1, True, 1.0]
        assert [type(item) for item in result] == [int, bool, float]

    def test_rejects_hash(self) -> None:
        with _pytest.raises(errors.MergeTypeError) as excinfo:
            merge.merge_values([["a"], {"k": "v"}], _strategy("unique"))
        assert str(excinfo.value) == "'unique' merge requires Array values, got Hash"


class TestHash:
    def test_higher_precedence_wins(self) -> None:
        result = merge.merge_values(
            [{"k1": "env_e1", "k3": "env_e3"}, {"k1": "module_e1", "k2": "module_e2"}],
            _strategy("hash"),
        )
        assert result == {"k1": "env_e1", "k2": "module_e2", "k3": "env_e3"}

    def test_is_shallow(self) -> None:
        result = merge.merge_values(
            [{"k": {"a": 1}}, {"k": {"b": 2}}],
            _strategy("hash"),
        )
        assert result == {"k": {"a": 1}}

    def test_result_shares_no_nested_values(self) -> None:
        higher = {"k": {"a": 1}}
        lower = {"j": [1]}
        result = merge.merge_values([higher, lower], _strategy("hash"))
        result["k"]["a"] = 2
        result["j"].append(2)
        assert (higher, lower) == ({"k": {"a": 1}}, {"j": [1]})

    def test_rejects_array(self) -> None:
        with _pytest.raises(errors.MergeTypeError, match="'hash' merge requires Hash values"):
            merge.merge_values([{"a": 1}, ["b"]], _strategy("hash"))


class TestDeep:
    def test_recursive_merge(self) -> None:
        result = merge.merge_values(
            [
                {"f": {"k1": {"s1": "global_f11"}}},
                {"f": {"k1": {"s1": "env_f11", "s2": "env_f12"}}},
                {"f": {"k1": {"s3": "module_f13"}, "k2": {"s2": "module_f22"}}},
            ],
            _strategy("deep"),
        )
        assert result == {
            "f": {
                "k1": {"s1": "global_f11", "s2": "env_f12", "s3": "module_f13"},
                "k2": {"s2": "module_f22"},
            }
        }

    def test_arrays_replaced_not_merged(self) -> None:
        result = merge.merge_values([{"a": [1]}, {"a": [2, 3]}], _strategy("deep"))
        assert result == {"a": [1]}

    def test_higher_scalar_replaces_lower_hash(self) -> None:
        result = merge.merge_values([{"a": "flat"}, {"a": {"x": 1}}], _strategy("deep"))
        assert result == {"a": "flat"}

    def test_knockout_prefix_removes_key(self) -> None:
        strategy = _strategy({"strategy": "deep", "knockout_prefix": "--"})
        result = merge.merge_values([{"a": "--", "b": 2}, {"a": 1, "c": 3}], strategy)
        assert result == {"b": 2, "c": 3}

    def test_knockout_in_nested_hash(self) -> None:
        strategy = _strategy({"strategy": "deep", "knockout_prefix": "--"})
        result = merge.merge_values(
            [{"h": {"x": "--"}}, {"h": {"x": 1, "y": 2}}],
            strategy,
        )
        assert result == {"h": {"y": 2}}

    def test_merge_hash_arrays(self) -> None:
        strategy = _strategy({"strategy": "deep", "merge_hash_arrays": True})
        result = merge.merge_values(
            [
                {"users": [{"name": "a", "uid": 1}]},
                {"users": [{"shell": "sh"}, {"name": "b"}]},
            ],
            strategy,
        )
        assert result == {"users": [{"name": "a", "uid": 1, "shell": "sh"}, {"name": "b"}]}

    def test_inputs_not_mutated(self) -> None:
        higher = {"f": {"k1": {"s1": "a"}}}
        lower = {"f": {"k1": {"s2": "b"}}}
        snapshot = _copy.deepcopy((higher, lower))
        merge.merge_values([higher, lower], _strategy("deep"))
        assert (higher, lower) == snapshot

    def test_rejects_scalar(self) -> None:
        with _pytest.raises(errors.MergeTypeError, match="'deep' merge requires Hash values"):
            merge.merge_values([{"a": 1}, "text"], _strategy("deep"))


class TestUndef:
    """Undef values take no part in a merge."""

    @_pytest.mark.parametrize("name", ["unique", "hash", "deep"])
    def test_all_undef_is_undef(self, name: str) -> None:
        assert merge.merge_values([None, None], _strategy(name)) is None

    def test_undef_skipped(self) -> None:
        assert merge.merge_values([None, ["a"]], _strategy("unique")) == ["a"]
