# shorttrack/models/__init__.py

from shorttrack.models.user import User  # noqa: F401
from shorttrack.models.verification_code import VerificationCode, CodePurpose  # noqa: F401
from shorttrack.models.link import Link  # noqa: F401
from shorttrack.models.visit import Visit  # noqa: F401
from shorttrack.models.backup_code import BackupCode  # noqa: F401
