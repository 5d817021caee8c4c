"""KbuOS live ISO builder.

Core design goals:
- Ordered, idempotent steps with declared inputs and outputs
- Every external tool invocation logged
- Kernel pseudo-filesystems released on every exit path
- Configuration files generated from typed structures
"""

__all__ = []
