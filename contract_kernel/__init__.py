"""
Contract Kernel

Persistence, workflow orchestration and audit trail for the contract
business-plan (PAKD) approval core:
- Frozen financial snapshots per review cycle
- Role-gated stage transitions with a single authorization table
- Append-only review log
- Per-plan write serialization
"""

__version__ = "0.1.0"
