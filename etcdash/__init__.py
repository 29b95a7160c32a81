"""etcd cluster dashboard engine - status polling and maintenance actions."""

__version__ = "1.0.0"
