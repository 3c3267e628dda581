"""Configuration: settings models, ``bcl.toml`` discovery, logging setup."""
