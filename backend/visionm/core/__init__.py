# Core module exports
from visionm.core.config import *
from visionm.core.database import db, client
from visionm.core.security import (
    hash_password,
    verify_password,
    create_token,
    get_current_identity,
    get_current_user,
    get_member_user,
    get_admin_user,
    security
)
