"""Application-wide constants."""

SESSION_COOKIE_NAME = "_previous_session"
SESSION_COOKIE_EXPIRY_DAYS = 100
SESSION_COOKIE_ENTROPY = 33

IDENTITY_COOKIE_NAME = "_previous_identity"
IDENTITY_COOKIE_EXPIRY_DAYS = 30
IDENTITY_TOKEN_EXPIRY_DAYS = 30
IDENTITY_COOKIE_ENTROPY = 33
IDENTITY_LOGIN_PATH = "/auth/login"
IDENTITY_LOGOUT_PATH = "/auth/logout"
IDENTITY_DEFAULT_PATH = "/app/dashboard"
IDENTITY_AUTH_REDIRECT = True

# Used only for quick, non-security file and string hashes.
DATA_HASH_KEY = "01234567890123456789012345678901"

PASSWORD_MIN_LENGTH = 8
PASSWORD_REQUIRED_UPPERCASE = 1
PASSWORD_REQUIRED_LOWERCASE = 1
PASSWORD_REQUIRED_NUMBERS = 1
PASSWORD_REQUIRED_SYMBOLS = 0

MAX_LOGIN_ATTEMPTS = 5