"""Fixed identifiers shared by the broker and its collaborators."""

ROLE_ID = "guardian-role-id"
ENDUSER_GROUP = "guardian-enduser"
DEFAULT_KEY_PREFIX = "secrets"
MAX_USERNAME_LENGTH = 256
DIGEST_SIZE = 32
