"""
Notebook Grader Backend Package
===============================

Flask-based backend for grading notebook submissions against a fixed
rubric and issuing completion certificates.

Structure:
- routes/: API route blueprints
- services/: Grading engine, certificate renderer, submission store
- rubric.py / rubric_config.py: Rubric values and default rubric data
- config.py: Configuration management
"""

from .config import config, Config

__version__ = "1.0.0"

__all__ = ['config', 'Config']
