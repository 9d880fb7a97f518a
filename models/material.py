# models/material.py

"""
Course material shared with enrolled learners: a titled link tied to one course.
"""

from __future__ import annotations


class Material:

    def __init__(self, id: str, course: str, title: str, link: str = ""):
        self._id = id
        self._course = course
        self._title = title
        self._link = link

    @property
    def id(self) -> str:
        return self._id

    @property
    def course(self) -> str:
        return self._course

    @property
    def title(self) -> str:
        return self._title

    @property
    def link(self) -> str:
        return self._link

    def to_dict(self) -> dict:
        return {"course": self._course, "title": self._title, "link": self._link}

    @classmethod
    def from_dict(cls, data: dict, material_id: str | None = None) -> Material:
        return cls(
            id=material_id or data.get("id", ""),
            course=(data.get("course") or "").strip(),
            title=data.get("title", ""),
            link=data.get("link", ""),
        )

    def __repr__(self) -> str:
        return f"Material({self._id}, {self._course}, {self._title})"
