"""Services for daygo: task queue, lifecycle, storage facade and sync."""
