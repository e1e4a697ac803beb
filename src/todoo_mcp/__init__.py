"""Todoo MCP - task tools and authorization core for the Todoo task tracker."""

__version__ = "0.1.0"
