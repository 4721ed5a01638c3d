"""
Ledger module for the NoteLayer SDK.

This module defines the ledger RPC contract consumed by the protocol layer
and ships two implementations: an in-memory simulated ledger and a
JSON-over-HTTP client.
"""
from .transport import LedgerRpc, get_ledger
from .memory_transport import InMemoryLedger
from .http_transport import HttpLedgerRpc

__all__ = ['LedgerRpc', 'get_ledger', 'InMemoryLedger', 'HttpLedgerRpc']
