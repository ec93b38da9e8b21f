"""Operator CLI for ECS clusters.

The command surface is implemented with Typer and Rich for help and error
ergonomics, while list outputs stay line-oriented for shell pipelines.
"""

__all__ = ["__version__"]

__version__ = "0.1.0"
