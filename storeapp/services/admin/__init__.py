"""Admin portal services - project and user administration"""

from .project_admin import ProjectStore
from .user_admin import UserStore, build_user_payload
