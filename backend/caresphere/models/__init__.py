# Database models

from .user import User
from .organization import Organization, OrganizationUser, OrganizationType
from .member import Member
from .cache_entry import BibleCacheEntry
from .sender_setting import SenderSetting, SettingScope
from .verse_of_day import BibleVerseOfDay
from .bible_library import BibleBookmark, BibleNote, BibleHighlight
from .job_execution_log import JobExecutionLog

__all__ = [
    "User",
    "Organization",
    "OrganizationUser",
    "OrganizationType",
    "Member",
    "BibleCacheEntry",
    "SenderSetting",
    "SettingScope",
    "BibleVerseOfDay",
    "BibleBookmark",
    "BibleNote",
    "BibleHighlight",
    "JobExecutionLog"
]
