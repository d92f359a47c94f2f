"""
Database models for Box Keeper.
"""
from boxkeeper.models.workspace import Workspace, WorkspaceMember, MemberRole
from boxkeeper.models.location import Location
from boxkeeper.models.box import Box
from boxkeeper.models.qr_code import QrCode, QrCodeStatus

__all__ = [
    "Workspace",
    "WorkspaceMember",
    "MemberRole",
    "Location",
    "Box",
    "QrCode",
    "QrCodeStatus",
]
