from enum import Enum


class UserRole(str, Enum):
    ADMIN = "ADMIN"
    USER = "USER"


class SalesPosition(str, Enum):
    JUNIOR_EC = "JUNIOR_EC"
    ENERGY_CONSULTANT = "ENERGY_CONSULTANT"
    ENERGY_SPECIALIST = "ENERGY_SPECIALIST"
    MANAGER = "MANAGER"


class LeaderboardType(str, Enum):
    APPOINTMENT_SETTERS = "APPOINTMENT_SETTERS"
    CLOSERS = "CLOSERS"
    REFERRALS = "REFERRALS"
    OVERALL = "OVERALL"


class LeaderboardPeriod(str, Enum):
    DAILY = "DAILY"
    WEEKLY = "WEEKLY"
    MONTHLY = "MONTHLY"
    QUARTERLY = "QUARTERLY"
    YEARLY = "YEARLY"
    ALL_TIME = "ALL_TIME"


class AnnouncementPriority(str, Enum):
    LOW = "LOW"
    MEDIUM = "MEDIUM"
    HIGH = "HIGH"
    URGENT = "URGENT"


class NotificationType(str, Enum):
    ANNOUNCEMENT = "ANNOUNCEMENT"
    LINK = "LINK"
    EVENT = "EVENT"
    TRAINING = "TRAINING"
    SYSTEM = "SYSTEM"


class EventType(str, Enum):
    TRAINING = "TRAINING"
    MEETING = "MEETING"
    APPOINTMENT = "APPOINTMENT"
    BLITZ = "BLITZ"
    CONTEST = "CONTEST"
    HOLIDAY = "HOLIDAY"
    OTHER = "OTHER"


class Recurrence(str, Enum):
    NONE = "NONE"
    DAILY = "DAILY"
    WEEKLY = "WEEKLY"
    MONTHLY = "MONTHLY"
    YEARLY = "YEARLY"


class TrainingCategory(str, Enum):
    ONBOARDING = "ONBOARDING"
    TECHNOLOGY = "TECHNOLOGY"
    APPOINTMENT_SETTING = "APPOINTMENT_SETTING"
    SALES_PROCESS = "SALES_PROCESS"
    PRODUCT_KNOWLEDGE = "PRODUCT_KNOWLEDGE"
    COMPLIANCE = "COMPLIANCE"
    SALES_SKILLS = "SALES_SKILLS"
    LEADERSHIP = "LEADERSHIP"
    CUSTOMER_SERVICE = "CUSTOMER_SERVICE"


class ContentFormat(str, Enum):
    HTML = "HTML"
    MARKDOWN = "MARKDOWN"
    VIDEO = "VIDEO"
    PDF = "PDF"
    QUIZ = "QUIZ"


class QuestionType(str, Enum):
    MULTIPLE_CHOICE = "MULTIPLE_CHOICE"
    TRUE_FALSE = "TRUE_FALSE"
    OPEN_ENDED = "OPEN_ENDED"


class ProgressStatus(str, Enum):
    NOT_STARTED = "NOT_STARTED"
    IN_PROGRESS = "IN_PROGRESS"
    COMPLETED = "COMPLETED"


class ResourceType(str, Enum):
    LINK = "LINK"
    VIDEO = "VIDEO"
    PDF = "PDF"
    DOCUMENT = "DOCUMENT"
    PRESENTATION = "PRESENTATION"
    SPREADSHEET = "SPREADSHEET"
    IMAGE = "IMAGE"
    AUDIO = "AUDIO"
