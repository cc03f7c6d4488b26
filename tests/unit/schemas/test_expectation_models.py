from datetime import date
from decimal import Decimal

import pytest
from werkzeug.datastructures import FileStorage

from form_facade.constants import UnpermittedParametersAction
from form_facade.errors import ParameterFilteringError
from form_facade.schemas.expectation import (
    build_expectation_model,
    collect_unpermitted,
    filter_parameters,
    freeze_expectation,
)


@pytest.mark.unit
def test_freeze_expectation_marks_nested_collections() -> None:
    frozen = freeze_expectation(["name", {"author": ["name"]}, {"comments": [["body", "_destroy"]]}])

    assert frozen == (
        "name",
        ("author", False, ("name",)),
        ("comments", True, ("body", "_destroy")),
    )


@pytest.mark.unit
def test_freeze_expectation_rejects_unknown_items() -> None:
    with pytest.raises(TypeError):
        freeze_expectation(["name", 3])


@pytest.mark.unit
def test_generated_models_are_cached() -> None:
    frozen = freeze_expectation(["name"])

    assert build_expectation_model(frozen) is build_expectation_model(frozen)
    assert build_expectation_model(frozen) is not build_expectation_model(frozen, strict=True)


@pytest.mark.unit
def test_filter_accepts_keys_that_clash_with_model_attributes() -> None:
    data = {"_destroy": "1", "model_config": "x", "f0": "internal"}

    assert filter_parameters(data, ["_destroy", "model_config"]) == {"_destroy": "1", "model_config": "x"}


@pytest.mark.unit
def test_filter_orders_index_keyed_collections_numerically() -> None:
    data = {"items": {"10": {"sku": "c"}, "2": {"sku": "b"}, "0": {"sku": "a"}}}

    permitted = filter_parameters(data, [{"items": [["sku"]]}])

    assert permitted == {"items": [{"sku": "a"}, {"sku": "b"}, {"sku": "c"}]}


@pytest.mark.unit
def test_filter_rejects_non_numeric_collection_keys() -> None:
    with pytest.raises(ParameterFilteringError) as exc_info:
        filter_parameters({"items": {"first": {"sku": "a"}}}, [{"items": [["sku"]]}])

    assert exc_info.value.path == ("items",)


@pytest.mark.unit
def test_filter_preserves_scalar_objects() -> None:
    upload = FileStorage(filename="cover.png")
    data = {"cover": upload, "price": Decimal("9.90"), "published_on": date(2024, 5, 1), "note": None}

    permitted = filter_parameters(data, ["cover", "price", "published_on", "note"])

    assert permitted["cover"] is upload
    assert permitted["price"] == Decimal("9.90")
    assert permitted["published_on"] == date(2024, 5, 1)
    assert permitted["note"] is None


@pytest.mark.unit
def test_filter_omits_keys_not_present_in_input() -> None:
    assert filter_parameters({"name": "x"}, ["name", "email", {"author": ["name"]}]) == {"name": "x"}


@pytest.mark.unit
def test_strict_filter_without_root_rejects_top_level_extras() -> None:
    with pytest.raises(ParameterFilteringError) as exc_info:
        filter_parameters({"name": "x", "admin": "1"}, ["name"], action=UnpermittedParametersAction.RAISE)

    assert exc_info.value.unpermitted == ("admin",)
    assert exc_info.value.extra["unpermitted"] == ["admin"]


@pytest.mark.unit
def test_strict_filter_reports_nested_collection_paths() -> None:
    data = {"post": {"comments": [{"body": "a", "spam": "1"}]}}

    with pytest.raises(ParameterFilteringError) as exc_info:
        filter_parameters(data, {"post": [{"comments": [["body"]]}]}, action=UnpermittedParametersAction.RAISE)

    assert exc_info.value.unpermitted == ("post.comments.0.spam",)


@pytest.mark.unit
def test_collect_unpermitted_walks_nested_shapes() -> None:
    frozen = freeze_expectation(["name", {"author": ["name"]}, {"comments": [["body"]]}])
    data = {
        "name": "x",
        "admin": "1",
        "author": {"name": "Amy", "role": "x"},
        "comments": {"0": {"body": "a"}, "1": {"body": "b", "spam": "1"}},
    }

    assert collect_unpermitted(data, frozen, prefix=("post",)) == (
        "post.admin",
        "post.author.role",
        "post.comments.1.spam",
    )


@pytest.mark.unit
def test_expectation_with_several_roots_is_rejected() -> None:
    with pytest.raises(TypeError):
        filter_parameters({"a": {}}, {"a": ["x"], "b": ["y"]})
