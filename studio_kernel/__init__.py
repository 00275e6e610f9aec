"""
Studio Kernel

Shared core of the pricing and project-lifecycle engine:
- Typed exception hierarchy with machine-readable codes
- Structured JSON logging with contextual fields
- Immutable domain records (office, templates, budgets, projects, finances)
- Injectable clock
"""

__version__ = "0.1.0"
