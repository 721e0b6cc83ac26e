import pytest

from relaygate.adapters.bedrock.aliases import DEFAULT_MODEL_ALIASES, ModelAliasResolver, load_model_aliases
from relaygate.core.errors import InvalidRequestError, ModelAliasNotFound


@pytest.mark.parametrize(
    ("alias", "model_id"),
    [
        ("nova-pro", "amazon.nova-pro-v1:0"),
        ("nova-lite", "amazon.nova-lite-v1:0"),
        ("nova-micro", "amazon.nova-micro-v1:0"),
    ],
)
def test_resolve_known_aliases(alias, model_id):
    assert ModelAliasResolver().resolve(alias) == model_id


@pytest.mark.parametrize(
    "identifier",
    ["amazon.nova-micro-v1:0", "anthropic.claude-3-haiku-20240307-v1:0", "meta.llama3-1-8b-instruct-v1:0", "x.y"],
)
def test_dotted_identifiers_pass_through(identifier):
    assert ModelAliasResolver().resolve(identifier) == identifier


def test_unknown_alias_lists_known_aliases():
    with pytest.raises(ModelAliasNotFound) as excinfo:
        ModelAliasResolver().resolve("unknown-model")
    err = excinfo.value
    assert isinstance(err, InvalidRequestError)
    assert err.status_code == 400
    assert err.identifier == "unknown-model"
    for alias in DEFAULT_MODEL_ALIASES:
        assert alias in err.message


def test_lookup_is_exact_match():
    resolver = ModelAliasResolver()
    with pytest.raises(ModelAliasNotFound):
        resolver.resolve("Nova-Micro")
    with pytest.raises(ModelAliasNotFound):
        resolver.resolve(" nova-micro")


def test_injected_table_replaces_defaults():
    resolver = ModelAliasResolver({"tiny": "vendor.tiny-v1"})
    assert resolver.resolve("tiny") == "vendor.tiny-v1"
    with pytest.raises(ModelAliasNotFound):
        resolver.resolve("nova-micro")


def test_alias_table_is_read_only():
    resolver = ModelAliasResolver()
    with pytest.raises(TypeError):
        resolver.aliases["nova-micro"] = "other.model"  # type: ignore[index]


def test_load_model_aliases_merges_yaml(tmp_path):
    path = tmp_path / "aliases.yaml"
    path.write_text("aliases:\n  claude-haiku: anthropic.claude-3-haiku-20240307-v1:0\n", encoding="utf-8")

    aliases = load_model_aliases(str(path))

    assert aliases["claude-haiku"] == "anthropic.claude-3-haiku-20240307-v1:0"
    assert aliases["nova-micro"] == "amazon.nova-micro-v1:0"


def test_load_model_aliases_without_file_uses_defaults(tmp_path):
    assert dict(load_model_aliases("")) == dict(DEFAULT_MODEL_ALIASES)
    assert dict(load_model_aliases(str(tmp_path / "missing.yaml"))) == dict(DEFAULT_MODEL_ALIASES)


def test_load_model_aliases_rejects_non_mapping(tmp_path):
    path = tmp_path / "aliases.yaml"
    path.write_text("aliases:\n  - nova-micro\n", encoding="utf-8")
    with pytest.raises(ValueError):
        load_model_aliases(str(path))
