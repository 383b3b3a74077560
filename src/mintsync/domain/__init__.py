"""Domain layer: change model, resolution and sync services."""
