"""Relation projection view.

Usage:
    >>> from crudable.projection import project, ProjectedRecord
"""

from crudable.projection.view import ProjectedRecord, project, transform_api_response

__all__ = [
    "ProjectedRecord",
    "project",
    "transform_api_response",
]
