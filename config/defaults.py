"""Default configuration values."""

DEFAULT_HOST = "127.0.0.1"
DEFAULT_PORT = 8000
DEFAULT_CORS_ORIGINS = ["*"]

# Hub backpressure and storage policy
DEFAULT_OUTBOUND_QUEUE_SIZE = 256  # frames buffered per session before it is dropped
DEFAULT_SEND_TIMEOUT_SECONDS = 10.0  # max time a single socket send may take
DEFAULT_STORAGE_RETRY_ATTEMPTS = 3  # attempts to store a Connected event before a join fails

# Configuration files and environment
CONFIG_DIR_NAME = "configuration"
BASE_CONFIG_FILENAME = "base.yaml"
ENVIRONMENT_ENV = "CHAT_APP_ENVIRONMENT"
ENV_PREFIX = "CHAT_APP_"
ENV_NESTING_SEPARATOR = "__"
