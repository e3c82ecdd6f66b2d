"""Domain layer: entities, ports and exceptions."""
