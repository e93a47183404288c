"""
Configuration management for the Notebook Grader backend.
"""
import os
from pathlib import Path
from dotenv import load_dotenv

# Load environment variables
load_dotenv()

# Base paths
BASE_DIR = Path(__file__).parent.parent
BACKEND_DIR = Path(__file__).parent

HOME_DIR = Path.home()
RUBRIC_FILE = os.getenv("RUBRIC_FILE", str(HOME_DIR / ".notebook_grader_rubric.json"))

# Document store (Supabase)
SUPABASE_URL = os.getenv("SUPABASE_URL", "")
SUPABASE_SERVICE_KEY = os.getenv("SUPABASE_SERVICE_KEY", "")
SUPABASE_JWT_SECRET = os.getenv("SUPABASE_JWT_SECRET", "")
SUBMISSIONS_TABLE = os.getenv("SUBMISSIONS_TABLE", "submissions")
USER_ROLES_TABLE = os.getenv("USER_ROLES_TABLE", "user_roles")
SUBSCRIPTION_POLL_INTERVAL = float(os.getenv("SUBSCRIPTION_POLL_INTERVAL", "2.0"))

# Certificate configuration
CERTIFICATE_THRESHOLD = int(os.getenv("CERTIFICATE_THRESHOLD", "50"))
CERTIFICATE_LOGO_URL = os.getenv(
    "CERTIFICATE_LOGO_URL",
    "https://raw.githubusercontent.com/Moleboge98/Moleboge98/main/"
    "Call%20for%20Application%20for%20the%20Data%20Analytics%20(17).png",
)
CERTIFICATE_SIGNATURE_URL = os.getenv(
    "CERTIFICATE_SIGNATURE_URL",
    "https://raw.githubusercontent.com/Moleboge98/Moleboge98/main/Duduzile%20signature.png",
)
CERTIFICATE_COURSE_NAME = os.getenv(
    "CERTIFICATE_COURSE_NAME", "BRICS Astronomy & IDIA Data Analytics Training Course"
)
CERTIFICATE_SIGNATORY_NAME = os.getenv("CERTIFICATE_SIGNATORY_NAME", "Duduzile Kubheka")
CERTIFICATE_SIGNATORY_TITLE = os.getenv(
    "CERTIFICATE_SIGNATORY_TITLE", "BRICS Astronomy Project Coordinator"
)
ASSET_FETCH_TIMEOUT = float(os.getenv("ASSET_FETCH_TIMEOUT", "10"))

# Server configuration
HOST = os.getenv("HOST", "0.0.0.0")
PORT = int(os.getenv("PORT", "3000"))
DEBUG = os.getenv("DEBUG", "").lower() in ("1", "true", "yes")


class Config:
    """Application configuration class."""

    def __init__(self):
        self.supabase_url = SUPABASE_URL
        self.supabase_service_key = SUPABASE_SERVICE_KEY
        self.jwt_secret = SUPABASE_JWT_SECRET
        self.submissions_table = SUBMISSIONS_TABLE
        self.user_roles_table = USER_ROLES_TABLE
        self.subscription_poll_interval = SUBSCRIPTION_POLL_INTERVAL
        self.rubric_file = RUBRIC_FILE
        self.certificate_threshold = CERTIFICATE_THRESHOLD
        self.logo_url = CERTIFICATE_LOGO_URL
        self.signature_url = CERTIFICATE_SIGNATURE_URL
        self.course_name = CERTIFICATE_COURSE_NAME
        self.signatory_name = CERTIFICATE_SIGNATORY_NAME
        self.signatory_title = CERTIFICATE_SIGNATORY_TITLE
        self.asset_fetch_timeout = ASSET_FETCH_TIMEOUT

    @property
    def use_supabase(self):
        return bool(self.supabase_url and self.supabase_service_key)

    def to_dict(self):
        # Secrets excluded
        return {
            "supabase_url": self.supabase_url,
            "submissions_table": self.submissions_table,
            "user_roles_table": self.user_roles_table,
            "subscription_poll_interval": self.subscription_poll_interval,
            "rubric_file": self.rubric_file,
            "certificate_threshold": self.certificate_threshold,
            "logo_url": self.logo_url,
            "signature_url": self.signature_url,
            "course_name": self.course_name,
            "signatory_name": self.signatory_name,
            "signatory_title": self.signatory_title,
            "asset_fetch_timeout": self.asset_fetch_timeout,
        }

    def update(self, data: dict):
        for key, value in data.items():
            if hasattr(self, key):
                setattr(self, key, value)


# Global config instance
config = Config()
