"""Core interfaces.

Why:
- Defines contracts (Protocol) that concrete adapters implement.
- Dependencies point inwards: the smoke controls depend on the contract,
  not on `subprocess`.
"""
