"""Bizledger - double-entry bookkeeping, sales, purchases and inventory for a small business."""

__version__ = "0.1.0"


def __getattr__(name):
    # The CLI pulls in every service; load it only when asked for
    if name == "main":
        from bizledger.cli.main import main

        return main
    raise AttributeError(f"module '{__name__}' has no attribute '{name}'")
