"""Event-driven control loop of the interactive session."""
