# models/types.py

"""
Holds TypeVar definition for simplifying type checks.
"""

from typing import TypeVar

from .announcement import Announcement
from .class_session import ClassSession
from .material import Material
from .message import CourseMessage

RecordType = TypeVar("RecordType", Announcement, ClassSession, CourseMessage, Material)
