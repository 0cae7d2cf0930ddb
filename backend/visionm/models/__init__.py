# Models exports
from visionm.models.profile import ProfileUpdate, ProfileResponse, CompanyResponse, SessionResponse
from visionm.models.company import CompanyCreate, WorkspaceRequestCreate, TokenBody
from visionm.models.invite import InviteCreate, InviteAccept, InviteInfo
from visionm.models.project import (
    ProjectCreate, ProjectUpdate, ProjectResponse,
    ProjectUserInvite, ProjectAccessCheck
)
from visionm.models.dataset import DatasetStatusResponse, DatasetFileResponse
from visionm.models.account import EmailCheck, VerificationRequest
