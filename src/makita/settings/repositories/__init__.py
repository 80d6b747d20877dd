"""Repository layer: one class per table family, each method takes the connection."""
from makita.settings.repositories.guilds_repo import GuildsRepository
from makita.settings.repositories.permissions_repo import PermissionRow, PermissionsRepository
from makita.settings.repositories.previews_repo import PreviewsRepository

__all__ = [
    "GuildsRepository",
    "PermissionRow",
    "PermissionsRepository",
    "PreviewsRepository",
]
