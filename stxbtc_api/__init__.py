"""
Stacks + Bitcoin utility API.

Provides:
- Stacks <-> Bitcoin address conversion
- Clarity value encoding / decoding
- Read-only Clarity query helpers (data vars, map entries, function calls)
  with ABI-driven argument encoding
- Bitcoin anchoring information for Stacks blocks and transactions
"""

__version__ = "0.1.0"
