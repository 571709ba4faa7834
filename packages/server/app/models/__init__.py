# Table models, imported so create_all sees every table.
from .base import UUIDMixin, TimestampMixin, CreatedAtMixin  # noqa: F401
from .user import User  # noqa: F401
from .category import Category, ProjectCategory  # noqa: F401
from .project import Project  # noqa: F401
from .vote import Vote  # noqa: F401
from .comment import Comment  # noqa: F401
