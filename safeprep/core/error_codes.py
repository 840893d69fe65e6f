class ErrorCode:
    UNAUTHORIZED = "UNAUTHORIZED"
    INVALID_TOKEN = "INVALID_TOKEN"
    INVALID_USER = "INVALID_USER"
    SESSION_REVOKED = "SESSION_REVOKED"
    INVALID_CREDENTIALS = "INVALID_CREDENTIALS"
    EMAIL_ALREADY_REGISTERED = "EMAIL_ALREADY_REGISTERED"
    ADMIN_ACCESS_DENIED = "ADMIN_ACCESS_DENIED"
    VALIDATION_ERROR = "VALIDATION_ERROR"

    MODULE_NOT_FOUND = "MODULE_NOT_FOUND"
    GAME_NOT_FOUND = "GAME_NOT_FOUND"
    VIDEO_NOT_FOUND = "VIDEO_NOT_FOUND"
    SETTING_NOT_FOUND = "SETTING_NOT_FOUND"
    REGION_NOT_FOUND = "REGION_NOT_FOUND"

    PROGRESS_CONFLICT = "PROGRESS_CONFLICT"
