"""Models package."""

from .user import User
from .role import Role
from .project import Project
from .phase import Phase
from .ledger_entry import LedgerEntry
from .material import Material
from .phase_photo import PhasePhoto
from .project_member import ProjectMember
from .project_share import ProjectShare
