"""Node orchestrator for the block index service."""

from .node import Node, NodeConfig

__all__ = ["Node", "NodeConfig"]
