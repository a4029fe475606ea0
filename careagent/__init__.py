"""
CareAgent - Clinical Activation, Hardening and Audit Kernel

This package gates and polices an AI agent acting inside a clinical workspace:
- Activation gate for the CANS.md configuration document
- Layered hardening engine enforced on every tool call
- Hash-chained, append-only audit log with background verification
- Hook liveness canary
"""

__version__ = "0.1.0"
__author__ = "CareAgent Contributors"
