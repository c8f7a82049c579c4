"""RWA Token Manager - interactive ERC20 token management for private EVM chains."""

__version__ = "0.1.0"
