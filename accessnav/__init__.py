"""AccessNav API: accounts, routes and role-based access control."""

__version__ = "0.1.0"
