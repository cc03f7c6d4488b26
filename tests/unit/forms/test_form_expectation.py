import pytest

from form_facade import Field, Many, ModelForm, One
from tests.fixtures.domain import FullPostForm, Post, PostForm


@pytest.mark.unit
def test_expectation_wraps_writable_fields_in_root() -> None:
    form = PostForm(Post(title="Hi"))

    assert form.params_expectation() == {"post": ["name", {"author": ["name"]}]}


@pytest.mark.unit
def test_class_expectation_without_root_is_a_plain_list() -> None:
    assert PostForm.expectation() == ["name", {"author": ["name"]}]
    assert PostForm.expectation(root="entry") == {"entry": ["name", {"author": ["name"]}]}


@pytest.mark.unit
def test_write_disabled_fields_are_excluded() -> None:
    expected = FullPostForm.expectation()

    assert "summary" not in expected
    assert expected == [
        "name",
        "views",
        "published_on",
        "featured",
        "secret",
        {"author": ["name"]},
        {"comments": [["body", "_destroy"]]},
    ]


@pytest.mark.unit
def test_write_disabled_fields_are_excluded_at_any_depth() -> None:
    class _Inner(ModelForm):
        label = Field()
        slug = Field(write=False)

    class _Outer(ModelForm):
        item = One(form=_Inner)
        items = Many(form=_Inner)
        hidden = One(form=_Inner, write=False)

    assert _Outer.expectation() == [{"item": ["label"]}, {"items": [["label"]]}]


@pytest.mark.unit
def test_instance_root_override_applies_to_expectation() -> None:
    post = Post()

    assert PostForm(post, root=False).params_expectation() == ["name", {"author": ["name"]}]
    assert PostForm(post).params_expectation(root="article") == {"article": ["name", {"author": ["name"]}]}
    assert PostForm().params_expectation() == ["name", {"author": ["name"]}]


@pytest.mark.unit
def test_params_root_class_attribute_sets_default_root() -> None:
    class _ArticleForm(PostForm):
        params_root = "article"

    assert _ArticleForm(Post()).params_expectation() == {"article": ["name", {"author": ["name"]}]}
    assert _ArticleForm(Post()).as_json() == {"article": {"name": None, "author": None}}


@pytest.mark.unit
@pytest.mark.parametrize("root", [True, False, 1])
def test_expectation_rejects_unresolved_root(root: object) -> None:
    with pytest.raises(TypeError):
        PostForm.schema().expectation(root=root)
    with pytest.raises(TypeError):
        PostForm(Post()).expectation(root=root)


@pytest.mark.unit
def test_params_expectation_resolves_boolean_root() -> None:
    form = PostForm(Post())

    assert form.params_expectation(root=True) == {"post": ["name", {"author": ["name"]}]}
    assert form.params_expectation(root=False) == ["name", {"author": ["name"]}]
