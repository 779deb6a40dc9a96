"""
GenEdu Backend — API Routes
=============================

Route Inventory:
    - notebooks.py:    GET / PUT / DELETE /notebooks/{notebook_id}
    - admin_users.py:  PUT / DELETE       /admin/users/{user_id}
    - health.py:       GET                /health
"""
