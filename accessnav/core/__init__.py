"""Core services for AccessNav: configuration, security and RBAC."""
