"""Tests for the execution dispatcher."""
import asyncio

from node_registry import NodeDefinition, NodeRegistry
from node_sdk import FunctionExecutor, NodeResult, VerificationResult
from workflow_runtime import NodeDispatcher


def _registry(**executors):
    registry = NodeRegistry()
    for node_type, executor in executors.items():
        registry.register(
            node_type,
            NodeDefinition(type=node_type, display_name=node_type),
            executor,
        )
    registry.freeze()
    return registry


class TestNodeDispatcher:
    """Test dispatch and failure conversion."""

    def test_unknown_type_is_error_envelope(self):
        dispatcher = NodeDispatcher(_registry())

        result = asyncio.run(dispatcher.execute("no-such-type", {}, {}))

        assert result.is_error
        assert result.error == "Unknown node type: no-such-type"
        assert result.meta.error_type == "UnknownNodeType"

    def test_passes_config_and_inputs(self):
        seen = {}

        def echo(config, inputs):
            seen.update(config=config, inputs=inputs)
            return NodeResult.success({"echo": inputs["value"]})

        dispatcher = NodeDispatcher(_registry(echo=FunctionExecutor(echo)))

        result = asyncio.run(dispatcher.execute("echo", {"mode": "x"}, {"value": 3}))

        assert result.is_success
        assert result.data == {"echo": 3}
        assert seen == {"config": {"mode": "x"}, "inputs": {"value": 3}}

    def test_awaits_async_executor(self):
        async def slow(config, inputs):
            await asyncio.sleep(0)
            return VerificationResult(success=True, verified=True, data=inputs)

        dispatcher = NodeDispatcher(_registry(slow=FunctionExecutor(slow)))

        result = asyncio.run(dispatcher.execute("slow", {}, {"id": 1}))

        assert isinstance(result, VerificationResult)
        assert result.verified

    def test_exception_becomes_error_envelope(self):
        def broken(config, inputs):
            raise RuntimeError("executor exploded")

        dispatcher = NodeDispatcher(_registry(broken=FunctionExecutor(broken)))

        result = asyncio.run(dispatcher.execute("broken", {}, {}))

        assert result.is_error
        assert result.error == "executor exploded"
        assert result.meta.error_type == "RuntimeError"
        assert result.meta.source_operation == "broken_error"

    def test_async_exception_becomes_error_envelope(self):
        async def broken(config, inputs):
            raise KeyError("missing")

        dispatcher = NodeDispatcher(_registry(broken=FunctionExecutor(broken)))

        result = asyncio.run(dispatcher.execute("broken", {}, {}))

        assert result.is_error
        assert "missing" in result.error

    def test_mapping_result_wrapped(self):
        dispatcher = NodeDispatcher(
            _registry(legacy=FunctionExecutor(lambda config, inputs: {"text": "hi"}))
        )

        result = asyncio.run(dispatcher.execute("legacy", None, None))

        assert result.is_success
        assert result.data == {"text": "hi"}

    def test_unexpected_return_type_is_error(self):
        dispatcher = NodeDispatcher(_registry(odd=FunctionExecutor(lambda config, inputs: 42)))

        result = asyncio.run(dispatcher.execute("odd", {}, {}))

        assert result.is_error
        assert "expected an envelope" in result.error

    def test_concurrent_executions_are_independent(self):
        async def echo(config, inputs):
            await asyncio.sleep(0)
            return NodeResult.success({"n": inputs["n"]})

        dispatcher = NodeDispatcher(_registry(echo=FunctionExecutor(echo)))

        async def run_all():
            return await asyncio.gather(
                *(dispatcher.execute("echo", {}, {"n": n}) for n in range(5))
            )

        results = asyncio.run(run_all())

        assert [r.data["n"] for r in results] == [0, 1, 2, 3, 4]
