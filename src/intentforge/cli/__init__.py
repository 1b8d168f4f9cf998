"""CLI sub-commands for Intentforge."""
