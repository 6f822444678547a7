"""Adapters: I/O against Vault, the supervisor census and local processes."""
