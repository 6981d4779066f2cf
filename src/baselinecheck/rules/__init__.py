"""Detection rules: models, catalog, presets and the registry."""
