"""Configuration models and YAML loading."""
