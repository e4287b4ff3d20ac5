"""Dispatch graph: state, nodes/routing and the Dispatcher entry point."""

from assistant_core.flows.dispatcher import Dispatcher, build_dispatcher

__all__ = ["Dispatcher", "build_dispatcher"]
