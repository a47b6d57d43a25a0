from __future__ import annotations

from pension_engine.domain.patches import PatchOperation, apply_patch, diff


def test_identical_documents_produce_no_operations() -> None:
    assert diff({"a": [1, {"b": 2}]}, {"a": [1, {"b": 2}]}) == []


def test_object_members_are_added_removed_and_replaced() -> None:
    before = {"keep": 1, "change": 1, "drop": 1}
    after = {"keep": 1, "change": 2, "new": 3}

    assert diff(before, after) == [
        PatchOperation("remove", "/drop"),
        PatchOperation("replace", "/change", 2),
        PatchOperation("add", "/new", 3),
    ]


def test_null_members_are_replaced_not_added() -> None:
    assert diff({"a": None}, {"a": {"x": 1}}) == [PatchOperation("replace", "/a", {"x": 1})]
    assert diff({"a": 5}, {"a": None}) == [PatchOperation("replace", "/a", None)]


def test_changed_arrays_are_rewritten() -> None:
    assert diff({"l": [1, 2]}, {"l": [1, 3]}) == [
        PatchOperation("remove", "/l/1"),
        PatchOperation("remove", "/l/0"),
        PatchOperation("add", "/l/0", 1),
        PatchOperation("add", "/l/1", 3),
    ]


def test_keys_are_escaped() -> None:
    assert diff({}, {"a/b~c": 1}) == [PatchOperation("add", "/a~1b~0c", 1)]


def test_apply_patch_reproduces_target_without_mutating_source() -> None:
    before = {
        "dossiers": {
            "D1": {"status": "ACTIVE", "policies": [{"salary": 100, "projections": None}]},
        }
    }
    after = {
        "dossiers": {
            "D1": {
                "status": "RETIRED",
                "policies": [{"salary": 103, "projections": [{"date": "2030-01-01"}]}],
            },
            "D/2": {"status": "ACTIVE", "policies": []},
        }
    }

    assert apply_patch(before, diff(before, after)) == after
    assert apply_patch(after, diff(after, before)) == before
    assert before["dossiers"]["D1"]["status"] == "ACTIVE"
