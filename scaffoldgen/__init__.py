"""scaffoldgen: configuration-driven project scaffolding.

Renders named Jinja2 templates into a file tree (or one output stream) from a
JSON/YAML config document, then runs the configured post-generation commands
in the output directory.
"""

__version__ = "0.1.0"
