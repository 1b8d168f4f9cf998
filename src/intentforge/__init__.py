"""Intentforge - conversational project generation pipeline.

This package turns a natural-language project description into a generated
source tree: requirement extraction, architecture planning, templated file
generation, sandboxed materialization on disk, and an external build/test
step driven by a per-project status state machine.
"""

__version__ = "0.1.0"
