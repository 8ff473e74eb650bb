"""logpilot: keeps per-container log shipper configs in sync with running containers."""

__version__ = "0.1.0"
