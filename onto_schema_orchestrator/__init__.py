"""Configuration, document assembly and command line for onto-schema."""
