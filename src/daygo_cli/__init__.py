"""daygo: track the task you are working on, queue the next ones, sync with a peer."""

__version__ = "0.1.0"
