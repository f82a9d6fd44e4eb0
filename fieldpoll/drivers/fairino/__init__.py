"""
Fairino Robot Adapters

Supports:
- Fairino collaborative robots (XML-RPC)
"""

from fieldpoll.drivers.fairino.rpc_driver import FairinoRPCAdapter, FairinoSession

__all__ = ['FairinoRPCAdapter', 'FairinoSession']
