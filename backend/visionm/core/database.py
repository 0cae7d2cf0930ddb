from motor.motor_asyncio import AsyncIOMotorClient
from visionm.core.config import MONGO_URL, DB_NAME

client = AsyncIOMotorClient(MONGO_URL)
db = client[DB_NAME]


async def ensure_indexes():
    """Unique keys the workflows rely on; safe to run on every startup."""
    await db.profiles.create_index("id", unique=True)
    await db.profiles.create_index("email")
    await db.companies.create_index("id", unique=True)
    await db.companies.create_index([("name", 1), ("admin_email", 1)])
    await db.workspace_join_requests.create_index("id", unique=True)
    await db.workspace_join_requests.create_index("token", unique=True)
    await db.workspace_join_requests.create_index([("admin_email", 1), ("status", 1)])
    await db.company_invites.create_index("id", unique=True)
    await db.company_invites.create_index("token", unique=True)
    await db.projects.create_index("id", unique=True)
    await db.project_users.create_index([("project_id", 1), ("user_email", 1)], unique=True)
    await db.datasets.create_index("id", unique=True)
    await db.dataset_files.create_index("dataset_id")
    await db.email_verification_tokens.create_index("token", unique=True)
