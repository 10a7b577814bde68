"""
Consolidated models package.

IMPORTANT: Explicit imports only - no wildcards to prevent circular imports.
Use string-based forward references in relationships: relationship("Company", ...)
"""

# Workforce models synced from the portal's reporting exports
from ewa_admin.models.workforce import generate_id, Company, Employee, CompanyAdmin

__all__ = [
    "generate_id",
    "Company",
    "Employee",
    "CompanyAdmin",
]
