import os
from dotenv import load_dotenv

load_dotenv()

# Database
MONGO_URL = os.environ.get("MONGO_URL", "mongodb://localhost:27017")
DB_NAME = os.environ.get("DB_NAME", "visionm")

# Auth provider (tokens are issued externally, we only verify them)
AUTH_JWT_SECRET = os.environ.get("AUTH_JWT_SECRET", "your-secret-key-change-in-production")
AUTH_JWT_ALGORITHM = os.environ.get("AUTH_JWT_ALGORITHM", "HS256")
AUTH_JWT_AUDIENCE = os.environ.get("AUTH_JWT_AUDIENCE") or None
AUTH_JWT_EXPIRATION_HOURS = 24
AUTH_URL = os.environ.get("AUTH_URL", "").rstrip("/")
AUTH_SERVICE_ROLE_KEY = os.environ.get("AUTH_SERVICE_ROLE_KEY", "")

# Email (Resend)
RESEND_API_KEY = os.environ.get("RESEND_API_KEY", "")
SENDER_EMAIL = os.environ.get("SENDER_EMAIL", "VisionM <no-reply@visionm.com>")

# Frontend base URL used in email links
APP_URL = os.environ.get("APP_URL", "http://localhost:5173").rstrip("/")

# S3
S3_ACCESS_KEY = os.environ.get("S3_ACCESS_KEY")
S3_SECRET_KEY = os.environ.get("S3_SECRET_KEY")
S3_ENDPOINT = os.environ.get("S3_ENDPOINT")
S3_BUCKET = os.environ.get("S3_BUCKET", "datasets")
S3_REGION = os.environ.get("S3_REGION")

# Token lifetimes
INVITE_TTL_DAYS = int(os.environ.get("INVITE_TTL_DAYS", "7"))
JOIN_REQUEST_TTL_DAYS = int(os.environ.get("JOIN_REQUEST_TTL_DAYS", "7"))
VERIFICATION_TTL_HOURS = int(os.environ.get("VERIFICATION_TTL_HOURS", "24"))

# bcrypt cost factor for shared project passwords
PROJECT_PASSWORD_BCRYPT_ROUNDS = int(os.environ.get("PROJECT_PASSWORD_BCRYPT_ROUNDS", "10"))

# CORS
CORS_ORIGINS = [o.strip() for o in os.environ.get("CORS_ORIGINS", "*").split(",") if o.strip()]
