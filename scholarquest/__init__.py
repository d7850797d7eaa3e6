"""
ScholarQuest Backend Package
============================

Flask-based backend for the ScholarQuest gamified learning platform.

Structure:
- routes/: API route blueprints
- services/: Business logic services
- session_gate.py: Session redirect policy
- auth.py: Request authentication hooks
- config.py: Configuration management
"""

from .config import config, Config

__version__ = "1.0.0"

__all__ = ['config', 'Config']
