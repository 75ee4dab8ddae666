"""
Glaucoma Risk Questionnaire Service

Scores patient questionnaire answers against the admin-managed question
catalog and advice table.
"""

__version__ = "1.0.0"
