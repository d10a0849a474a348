"""Domain services"""
from .checkin_service import CheckInService
from .migration_service import MigrationCodeService
from .research_invite_service import ResearchInviteService
from .data_union_service import DataUnionService
from .auth_service import AuthService
from .user_service import UserService
from .gender_verification_service import GenderVerificationService
from .doc_service import DocService
from .feedback_service import FeedbackService

__all__ = [
    'CheckInService',
    'MigrationCodeService',
    'ResearchInviteService',
    'DataUnionService',
    'AuthService',
    'UserService',
    'GenderVerificationService',
    'DocService',
    'FeedbackService',
]
