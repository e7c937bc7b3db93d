"""
Todo Users API package.

Data access and mutation semantics for the todo and user resources, served
over FastAPI. The application factory lives in todo_users_api.main.
"""

__version__ = "0.1.0"
