"""
GenEdu Backend — Services Layer
=================================

Service Inventory:
    - access:           pure view/edit/delete predicates over a notebook
    - NotebookService:  read (with view counting), partial update, delete
    - AdminUserService: admin-only user update and delete
    - ActivityTracker:  append-only activity log, written best-effort
"""
