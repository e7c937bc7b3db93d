"""HTTP routers for the todo and user resources."""
