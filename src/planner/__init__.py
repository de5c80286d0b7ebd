"""Syllabus coverage planner.

Tracks, per student phone number and class, which chapters and topics of
the syllabus have been completed, with free-text comments.
"""

__version__ = "0.1.0"
