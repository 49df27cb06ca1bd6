"""Service layer: transport client, poller, lifecycle controller and helpers."""
