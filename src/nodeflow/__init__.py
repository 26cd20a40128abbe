"""
nodeflow - Node execution runtime for a visual workflow builder.

Layers, leaf first:
- node_sdk: envelopes, interpolation, HTTP calls, action verification
- node_registry: catalog of node types
- workflow_runtime: dispatcher and sequential workflow runner
- nodepacks.core: built-in nodes

nodeflow itself holds configuration, logging, bootstrap and the CLI.
"""

__version__ = "0.1.0"
