"""
Proration Kernel

Pure building blocks for prorated billing:
- Immutable plan, period and result value objects
- Calendar-correct billing-cycle arithmetic
- Typed exceptions with machine-readable codes
- Structured JSON logging
"""

__version__ = "0.1.0"
