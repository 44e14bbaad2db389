# Modèles SQLAlchemy pour core-gestion-pl
#
# Importés ici pour que create_db_and_tables() enregistre toutes les tables
# dans Base.metadata.

from .archive import ArchiveFolder, StudentArchiveFolder
from .holiday import PublicHoliday
from .organization import City, Segment
from .prospect import CountryPhoneConfig, Prospect, ProspectCallHistory
from .rbac import Permission, Profile, Role, RolePermission

__all__ = [
    "ArchiveFolder",
    "City",
    "CountryPhoneConfig",
    "Permission",
    "Profile",
    "Prospect",
    "ProspectCallHistory",
    "PublicHoliday",
    "Role",
    "RolePermission",
    "Segment",
    "StudentArchiveFolder",
]
