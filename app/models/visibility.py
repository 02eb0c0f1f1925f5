from sqlalchemy import Column, JSON


class VisibilityMixin:
    """Role/position allow-lists. An empty list leaves that dimension unrestricted."""

    visible_to_roles = Column(JSON, nullable=False, default=list)
    visible_to_positions = Column(JSON, nullable=False, default=list)
