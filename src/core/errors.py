"""Error taxonomy for business-rule rejections and quest generation failures."""

from enum import Enum, StrEnum
from typing import Literal

from pydantic import BaseModel


class Rejection(StrEnum):
    """Business-rule rejections returned as values, never raised."""

    INSUFFICIENT_FUNDS = "insufficient_funds"
    REDEMPTION_LIMIT_REACHED = "redemption_limit_reached"
    LEVEL_REQUIREMENT_NOT_MET = "level_requirement_not_met"
    CHALLENGES_REMAINING = "challenges_remaining"
    DUNGEON_NOT_STARTED = "dungeon_not_started"
    DUNGEON_ALREADY_STARTED = "dungeon_already_started"
    DUNGEON_ALREADY_COMPLETED = "dungeon_already_completed"
    COMPLETION_IRREVERSIBLE = "completion_irreversible"
    INSUFFICIENT_SKILL_POINTS = "insufficient_skill_points"
    SKILL_MAXED = "skill_maxed"
    ITEM_NOT_EQUIPPABLE = "item_not_equippable"
    NOT_FOUND = "not_found"


class ErrorCategory(Enum):
    """Categories of errors raised by the quest generation collaborator."""

    SERVICE_QUOTA_EXCEEDED = "service_quota_exceeded"
    RATE_LIMIT_EXCEEDED = "rate_limit_exceeded"
    AUTHENTICATION_FAILED = "authentication_failed"
    NETWORK_ERROR = "network_error"
    UNKNOWN = "unknown"


class ErrorSeverity(Enum):
    """Severity levels for errors."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


class ErrorCode:
    """Error codes for specific error conditions."""

    # Economy errors
    ERR_INSUFFICIENT_FUNDS = "ERR_INSUFFICIENT_FUNDS"
    ERR_REDEMPTION_LIMIT_REACHED = "ERR_REDEMPTION_LIMIT_REACHED"
    ERR_LEVEL_REQUIREMENT_NOT_MET = "ERR_LEVEL_REQUIREMENT_NOT_MET"
    ERR_INSUFFICIENT_SKILL_POINTS = "ERR_INSUFFICIENT_SKILL_POINTS"
    ERR_SKILL_MAXED = "ERR_SKILL_MAXED"
    ERR_ITEM_NOT_EQUIPPABLE = "ERR_ITEM_NOT_EQUIPPABLE"

    # Dungeon errors
    ERR_CHALLENGES_REMAINING = "ERR_CHALLENGES_REMAINING"
    ERR_DUNGEON_NOT_STARTED = "ERR_DUNGEON_NOT_STARTED"
    ERR_DUNGEON_ALREADY_STARTED = "ERR_DUNGEON_ALREADY_STARTED"
    ERR_DUNGEON_ALREADY_COMPLETED = "ERR_DUNGEON_ALREADY_COMPLETED"

    # Task errors
    ERR_COMPLETION_IRREVERSIBLE = "ERR_COMPLETION_IRREVERSIBLE"
    ERR_NOT_FOUND = "ERR_NOT_FOUND"

    # Generic errors
    ERR_UNKNOWN = "ERR_UNKNOWN"


class ErrorResponse(BaseModel):
    """Structured error response with user-friendly messaging."""

    code: str
    message: str
    suggestion: str
    severity: ErrorSeverity


_REJECTION_RESPONSES: dict[Rejection, ErrorResponse] = {
    Rejection.INSUFFICIENT_FUNDS: ErrorResponse(
        code=ErrorCode.ERR_INSUFFICIENT_FUNDS,
        message="You don't have enough currency for this action.",
        suggestion="Complete more quests to earn coins and gems.",
        severity=ErrorSeverity.LOW,
    ),
    Rejection.REDEMPTION_LIMIT_REACHED: ErrorResponse(
        code=ErrorCode.ERR_REDEMPTION_LIMIT_REACHED,
        message="This reward has been redeemed too many times this period.",
        suggestion="Try again once the current period resets.",
        severity=ErrorSeverity.LOW,
    ),
    Rejection.LEVEL_REQUIREMENT_NOT_MET: ErrorResponse(
        code=ErrorCode.ERR_LEVEL_REQUIREMENT_NOT_MET,
        message="Your level is too low for this reward.",
        suggestion="Keep leveling up to unlock it.",
        severity=ErrorSeverity.LOW,
    ),
    Rejection.INSUFFICIENT_SKILL_POINTS: ErrorResponse(
        code=ErrorCode.ERR_INSUFFICIENT_SKILL_POINTS,
        message="Not enough skill points to upgrade this stat.",
        suggestion="Skill points are earned on every level up.",
        severity=ErrorSeverity.LOW,
    ),
    Rejection.SKILL_MAXED: ErrorResponse(
        code=ErrorCode.ERR_SKILL_MAXED,
        message="This stat is already at its maximum level.",
        suggestion="Spend your points on another stat.",
        severity=ErrorSeverity.LOW,
    ),
    Rejection.CHALLENGES_REMAINING: ErrorResponse(
        code=ErrorCode.ERR_CHALLENGES_REMAINING,
        message="Challenges remain in this dungeon.",
        suggestion="Complete all challenges to conquer the quest.",
        severity=ErrorSeverity.LOW,
    ),
    Rejection.DUNGEON_NOT_STARTED: ErrorResponse(
        code=ErrorCode.ERR_DUNGEON_NOT_STARTED,
        message="This dungeon has not been started yet.",
        suggestion="Start the dungeon before trying to complete it.",
        severity=ErrorSeverity.LOW,
    ),
    Rejection.DUNGEON_ALREADY_STARTED: ErrorResponse(
        code=ErrorCode.ERR_DUNGEON_ALREADY_STARTED,
        message="This dungeon is already in progress.",
        suggestion="Finish the remaining challenges to complete it.",
        severity=ErrorSeverity.LOW,
    ),
    Rejection.DUNGEON_ALREADY_COMPLETED: ErrorResponse(
        code=ErrorCode.ERR_DUNGEON_ALREADY_COMPLETED,
        message="This dungeon has already been conquered.",
        suggestion="Create a new dungeon for your next project.",
        severity=ErrorSeverity.LOW,
    ),
    Rejection.COMPLETION_IRREVERSIBLE: ErrorResponse(
        code=ErrorCode.ERR_COMPLETION_IRREVERSIBLE,
        message="Completed quests cannot be marked incomplete.",
        suggestion="Recurring quests reset automatically at the start of the next period.",
        severity=ErrorSeverity.LOW,
    ),
    Rejection.ITEM_NOT_EQUIPPABLE: ErrorResponse(
        code=ErrorCode.ERR_ITEM_NOT_EQUIPPABLE,
        message="That item can't be equipped.",
        suggestion="Only weapons, armor, helmets and shields go into equipment slots.",
        severity=ErrorSeverity.LOW,
    ),
    Rejection.NOT_FOUND: ErrorResponse(
        code=ErrorCode.ERR_NOT_FOUND,
        message="I couldn't find that item.",
        suggestion="Refresh your session and try again.",
        severity=ErrorSeverity.LOW,
    ),
}


def rejection_response(rejection: Rejection) -> ErrorResponse:
    """Return the user-facing response for a business-rule rejection."""
    return _REJECTION_RESPONSES[rejection]


_ERROR_PATTERNS: dict[
    Literal["quota", "rate_limit", "auth", "network"],
    dict[str, list[str] | set[str]],
] = {
    "quota": {
        "phrases": [
            "quota exceeded",
            "insufficient credits",
            "credit limit",
            "credits exhausted",
            "out of credits",
        ],
        "exception_types": set(),
    },
    "rate_limit": {
        "phrases": [
            "rate limit",
            "too many requests",
            "rate_limit_exceeded",
            "throttled",
        ],
        "exception_types": set(),
    },
    "auth": {
        "phrases": [
            "authentication failed",
            "invalid api key",
            "unauthorized",
            "credential not configured",
            "401",
        ],
        "exception_types": {"AuthenticationError", "PermissionError"},
    },
    "network": {
        "phrases": [
            "connection",
            "timeout",
            "network",
            "503",
            "502",
            "504",
            "unreachable",
        ],
        "exception_types": {"ConnectionError", "TimeoutError"},
    },
}


def _match_error_pattern(
    *,
    error_str: str,
    exception_type: str,
    pattern_type: Literal["quota", "rate_limit", "auth", "network"],
) -> bool:
    """Return True if the error matches the configured pattern type."""
    patterns = _ERROR_PATTERNS[pattern_type]
    return any(phrase in error_str for phrase in patterns["phrases"]) or exception_type in patterns["exception_types"]


def classify_agent_error(exception: Exception) -> tuple[ErrorCategory, str]:
    """Classify a quest generation error and return a user-friendly message.

    Args:
        exception: The exception raised by the quest generator

    Returns:
        Tuple of (ErrorCategory, user_friendly_message)
    """
    error_str = str(exception).lower()
    exception_type = type(exception).__name__

    if _match_error_pattern(error_str=error_str, exception_type=exception_type, pattern_type="quota"):
        return (
            ErrorCategory.SERVICE_QUOTA_EXCEEDED,
            "The quest oracle's quota has been exceeded. Please try again later.",
        )

    if _match_error_pattern(error_str=error_str, exception_type=exception_type, pattern_type="rate_limit"):
        return (
            ErrorCategory.RATE_LIMIT_EXCEEDED,
            "Too many requests. Please wait a moment and try again.",
        )

    if _match_error_pattern(error_str=error_str, exception_type=exception_type, pattern_type="auth"):
        return (
            ErrorCategory.AUTHENTICATION_FAILED,
            "Quest generation is not configured. Please contact support.",
        )

    if _match_error_pattern(error_str=error_str, exception_type=exception_type, pattern_type="network"):
        return (
            ErrorCategory.NETWORK_ERROR,
            "Network error occurred. Please check your connection and try again.",
        )

    return (
        ErrorCategory.UNKNOWN,
        "An unexpected error occurred. Please try again later.",
    )
