# Routes exports
from visionm.routes.profile import router as profile_router
from visionm.routes.companies import router as companies_router
from visionm.routes.workspace_requests import router as workspace_requests_router
from visionm.routes.invites import router as invites_router
from visionm.routes.projects import router as projects_router
from visionm.routes.datasets import router as datasets_router
from visionm.routes.accounts import router as accounts_router
