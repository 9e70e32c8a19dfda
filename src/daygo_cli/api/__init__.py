"""HTTP side of daygo: sync client and sync server."""
