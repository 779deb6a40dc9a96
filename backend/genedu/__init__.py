"""
GenEdu Backend — Notebook and Admin API
=========================================

Layering:

    ┌─────────────────────────────────────┐
    │   Routes       /notebooks, /admin   │  ← cookies in, envelopes out
    ├─────────────────────────────────────┤
    │   Dependencies  auth + admin check  │
    ├─────────────────────────────────────┤
    │   Services      access rules, CRUD  │  ← raise GenEduError subclasses
    ├─────────────────────────────────────┤
    │   Models        notebooks, users,   │
    │                 activities          │
    └─────────────────────────────────────┘
"""

__version__ = "1.0.0"
