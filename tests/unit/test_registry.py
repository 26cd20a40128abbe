"""Tests for the node registry."""
import pytest

from node_registry import NodeDefinition, NodePackManifest, NodeRegistry, PortDefinition
from node_registry.models import ConfigOption
from node_sdk import FunctionExecutor, NodeResult
from node_sdk.errors import DuplicateNodeTypeError, RegistryFrozenError


def _definition(node_type, category="data", display_name=None, description=""):
    return NodeDefinition(
        type=node_type,
        display_name=display_name or node_type.title(),
        category=category,
        description=description,
        outputs={"value": PortDefinition(type="any")},
    )


def _executor():
    return FunctionExecutor(lambda config, inputs: NodeResult.success({"value": 1}))


class TestNodeDefinition:
    """Test definition metadata."""

    def test_aliases(self):
        definition = NodeDefinition.model_validate({
            "type": "echo",
            "displayName": "Echo",
            "configOptions": [{"key": "mode", "default": "loud"}],
        })
        assert definition.node_type == "echo"
        assert definition.display_name == "Echo"
        assert definition.default_config == {"mode": "loud"}

    def test_explicit_default_config_wins(self):
        definition = NodeDefinition(
            type="echo",
            display_name="Echo",
            config_options=[ConfigOption(key="mode", default="loud")],
            default_config={"mode": "quiet"},
        )
        assert definition.default_config == {"mode": "quiet"}

    def test_ports_keep_order(self):
        definition = NodeDefinition(
            type="multi",
            display_name="Multi",
            inputs={"b": PortDefinition(), "a": PortDefinition(optional=True)},
        )
        assert list(definition.inputs) == ["b", "a"]
        assert definition.inputs["a"].optional is True


class TestNodeRegistry:
    """Test registration and lookup."""

    def test_lookup_returns_registered_entry(self):
        registry = NodeRegistry()
        definition = _definition("echo")
        executor = _executor()
        presentation = {"color": "#000"}

        registry.register("echo", definition, executor, presentation)
        entry = registry.lookup("echo")

        assert entry.definition is definition
        assert entry.executor is executor
        assert entry.presentation is presentation
        assert "echo" in registry
        assert len(registry) == 1

    def test_unknown_lookup(self):
        assert NodeRegistry().lookup("nope") is None

    def test_duplicate_rejected(self):
        registry = NodeRegistry()
        registry.register("echo", _definition("echo"), _executor())

        with pytest.raises(DuplicateNodeTypeError):
            registry.register("echo", _definition("echo"), _executor())

    def test_key_must_match_definition(self):
        with pytest.raises(ValueError):
            NodeRegistry().register("other", _definition("echo"), _executor())

    def test_executor_must_have_execute(self):
        with pytest.raises(TypeError):
            NodeRegistry().register("echo", _definition("echo"), object())

    def test_frozen_registry_rejects_writes(self):
        registry = NodeRegistry()
        registry.freeze()

        assert registry.frozen
        with pytest.raises(RegistryFrozenError):
            registry.register("echo", _definition("echo"), _executor())

    def test_list_types_in_registration_order(self):
        registry = NodeRegistry()
        for node_type in ("zeta", "alpha", "mid"):
            registry.register(node_type, _definition(node_type), _executor())

        assert registry.list_types() == ["zeta", "alpha", "mid"]
        assert [e.node_type for e in registry] == ["zeta", "alpha", "mid"]

    def test_group_by_category(self):
        registry = NodeRegistry()
        registry.register("a", _definition("a", category="input"), _executor())
        registry.register("b", _definition("b", category="data"), _executor())
        registry.register("c", _definition("c", category="input"), _executor())

        grouped = registry.group_by_category()

        assert list(grouped) == ["input", "data"]
        assert [d.node_type for d in grouped["input"]] == ["a", "c"]
        assert registry.categories() == ["input", "data"]

    def test_search(self):
        registry = NodeRegistry()
        registry.register("json_parser", _definition("json_parser", description="Parses JSON"), _executor())
        registry.register("http_request", _definition("http_request", category="api"), _executor())
        registry.register("text_input", _definition("text_input", display_name="Text Box"), _executor())

        assert [d.node_type for d in registry.search("JSON")] == ["json_parser"]
        assert [d.node_type for d in registry.search("api")] == ["http_request"]
        assert [d.node_type for d in registry.search("text box")] == ["text_input"]
        assert len(registry.search("   ")) == 3
        assert registry.search("nothing-matches") == []

    def test_register_pack(self):
        from nodepacks.core import TextInputNode, OutputNode

        registry = NodeRegistry()
        manifest = NodePackManifest(name="mini", nodes=["text_input", "output"])

        registry.register_pack(manifest, [TextInputNode(), OutputNode()])

        assert registry.list_types() == ["text_input", "output"]
        assert registry.list_packs() == [manifest]
        assert registry.lookup("text_input").presentation["color"] == "#4CAF50"
