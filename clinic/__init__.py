"""
Clinic Backend

A FastAPI-based clinic management backend with stateless token
authentication, role-based access control and conflict-checked
appointment scheduling.
"""

__version__ = "1.0.0"
