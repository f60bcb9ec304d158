"""Configuration, security primitives and shared result types."""
