"""Authorization and transition engine for a P2P crypto-for-cash marketplace."""

__version__ = "0.1.0"
