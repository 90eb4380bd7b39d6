"""VIP Club backend: membership-gated galleries and access links."""

__version__ = "0.1.0"
