"""Domain services: chapter registry, structure reconciliation, authoring and scoring."""
