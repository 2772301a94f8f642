"""Cluster RBAC management client."""
