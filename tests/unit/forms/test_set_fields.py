from datetime import date

import pytest
from structlog.testing import capture_logs
from werkzeug.datastructures import MultiDict

from form_facade import ParameterFilteringError, Parameters, PersistenceFailure
from form_facade.settings import reset_settings
from form_facade.types import SupportsPersistence
from tests.fixtures.domain import Comment, FullPostForm, Person, Post, PostForm


@pytest.mark.unit
def test_set_fields_applies_filtered_params_under_root() -> None:
    post = Post(title="Old")
    form = PostForm(post)

    form.set_fields(Parameters({"post": {"name": "Hello", "author": {"name": "Amy"}}}))

    assert post.title == "Hello"
    assert post.author == Person(name="Amy")
    assert form.as_json() == {"post": {"name": "Hello", "author": {"name": "Amy"}}}


@pytest.mark.unit
def test_set_fields_drops_unpermitted_keys_by_default() -> None:
    post = Post(title="Old")

    PostForm(post).set_fields(
        Parameters({"post": {"name": "Hello", "admin": "1"}, "authenticity_token": "abc"}),
    )

    assert post.title == "Hello"
    assert not hasattr(post, "admin")


@pytest.mark.unit
def test_set_fields_respects_write_gate() -> None:
    post = Post(title="Old")

    FullPostForm(post).set_fields(Parameters({"post": {"summary": "nope", "secret": "kept"}}))

    assert post.title == "Old"
    assert post.secret == "kept"


@pytest.mark.unit
def test_set_fields_accepts_index_keyed_collections_with_destroy_flag() -> None:
    post = Post()
    params = Parameters(
        {
            "post": {
                "comments": {
                    "1": {"body": "second", "_destroy": "1"},
                    "0": {"body": "first"},
                    "2": {"body": "third", "_destroy": "0"},
                },
            },
        },
    )

    FullPostForm(post).set_fields(params)

    assert post.comments == [Comment(body="first"), Comment(body="third")]


@pytest.mark.unit
def test_set_fields_from_bracketed_multidict() -> None:
    post = Post()
    params = Parameters.from_multidict(
        MultiDict(
            [
                ("post[name]", "Hello"),
                ("post[author][name]", "Amy"),
                ("post[comments][0][body]", "first"),
                ("post[views]", "3"),
            ],
        ),
    )

    FullPostForm(post).set_fields(params)

    assert post.title == "Hello"
    assert post.views == "3"
    assert post.author == Person(name="Amy")
    assert post.comments == [Comment(body="first")]


@pytest.mark.unit
def test_set_fields_keeps_scalar_types_from_json_payloads() -> None:
    post = Post()

    FullPostForm(post).set_fields(
        Parameters({"post": {"views": 3, "featured": True, "published_on": date(2024, 5, 1)}}),
    )

    assert post.views == 3
    assert post.featured is True
    assert post.published_on == date(2024, 5, 1)


@pytest.mark.unit
def test_set_fields_with_root_override_and_without_root() -> None:
    post = Post()

    PostForm(post).set_fields(Parameters({"article": {"name": "From article"}}), root="article")
    assert post.title == "From article"

    PostForm(post, root=False).set_fields(Parameters({"name": "Unwrapped", "post": {"name": "ignored"}}))
    assert post.title == "Unwrapped"


@pytest.mark.unit
@pytest.mark.parametrize("payload", [{}, {"post": {}}, {"comment": {"name": "x"}}])
def test_set_fields_requires_non_empty_root(payload: dict[str, object]) -> None:
    post = Post(title="Old")

    with pytest.raises(ParameterFilteringError) as exc_info:
        PostForm(post).set_fields(Parameters(payload))

    assert exc_info.value.path == ("post",)
    assert exc_info.value.message_key == "PARAMETER_MISSING"
    assert post.title == "Old"


@pytest.mark.unit
def test_set_fields_rejects_nested_value_that_is_not_a_mapping() -> None:
    with pytest.raises(ParameterFilteringError) as exc_info:
        PostForm(Post()).set_fields(Parameters({"post": {"author": "Amy"}}))

    assert exc_info.value.path == ("post", "author")


@pytest.mark.unit
def test_set_fields_rejects_structured_value_for_scalar_field() -> None:
    with pytest.raises(ParameterFilteringError) as exc_info:
        PostForm(Post()).set_fields(Parameters({"post": {"name": {"first": "Amy"}}}))

    assert exc_info.value.path == ("post", "name")
    assert exc_info.value.message_key == "PARAMETER_FILTERING_ERROR"


@pytest.mark.unit
def test_strict_mode_raises_on_unpermitted_keys(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("FORM_FACADE_UNPERMITTED_PARAMETERS", "raise")
    reset_settings()
    post = Post(title="Old")

    with pytest.raises(ParameterFilteringError) as exc_info:
        PostForm(post).set_fields(Parameters({"post": {"name": "Hello", "admin": "1"}, "utf8": "✓"}))

    assert exc_info.value.unpermitted == ("post.admin",)
    assert exc_info.value.message_key == "UNPERMITTED_PARAMETERS"
    assert post.title == "Old"


@pytest.mark.unit
def test_log_mode_reports_unpermitted_keys(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("FORM_FACADE_UNPERMITTED_PARAMETERS", "log")
    reset_settings()
    post = Post()

    with capture_logs() as logs:
        PostForm(post).set_fields(
            Parameters({"post": {"name": "Hello", "admin": "1", "author": {"name": "Amy", "role": "x"}}}),
        )

    warnings = [entry for entry in logs if entry["log_level"] == "warning"]
    assert post.title == "Hello"
    assert warnings[0]["event"] == "存在未允许的参数"
    assert warnings[0]["unpermitted"] == ["post.admin", "post.author.role"]


@pytest.mark.unit
def test_trusted_mapping_is_assigned_without_filtering() -> None:
    post = Post()

    PostForm(post).set_fields({"name": "Trusted", "author": {"name": "Amy"}})

    assert post.title == "Trusted"
    assert post.author == Person(name="Amy")


@pytest.mark.unit
def test_permitted_parameters_are_assigned_without_filtering() -> None:
    post = Post()

    FullPostForm(post).set_fields(Parameters({"secret": "direct"}).permit_all())

    assert post.secret == "direct"


@pytest.mark.unit
def test_assigning_unknown_or_read_only_field_raises_attribute_error() -> None:
    form = FullPostForm(Post())

    with pytest.raises(AttributeError):
        form.set_fields({"admin": True})
    with pytest.raises(AttributeError):
        form.assign_attributes({"summary": "nope"})


@pytest.mark.unit
def test_save_delegates_to_wrapped_object() -> None:
    post = Post(save_result=True)

    assert isinstance(post, SupportsPersistence)
    assert PostForm(post).save() is True
    assert post.save_calls == 1


@pytest.mark.unit
def test_failed_save_returns_false_and_logs() -> None:
    post = Post(save_result=False, messages={"title": ["can't be blank"]})

    with capture_logs() as logs:
        saved = PostForm(post).save()

    assert saved is False
    assert post.save_calls == 1
    entry = next(entry for entry in logs if entry["event"] == "表单保存未成功")
    assert entry["log_level"] == "info"
    assert entry["fields"] == ["title"]


@pytest.mark.unit
def test_save_or_raise_propagates_wrapped_object_exception() -> None:
    failure = PersistenceFailure("标题重复")
    post = Post(failure=failure)

    with pytest.raises(PersistenceFailure) as exc_info:
        PostForm(post).save_or_raise()

    assert exc_info.value is failure
    assert post.save_calls == 1


@pytest.mark.unit
def test_save_or_raise_returns_result_on_success() -> None:
    post = Post()

    assert PostForm(post).save_or_raise() is True
