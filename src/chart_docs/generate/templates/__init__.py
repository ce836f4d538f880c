"""Packaged Jinja2 templates for README generation."""
