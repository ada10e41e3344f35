"""All magic values live here — no inline literals anywhere else."""

# Upload constraints
MAX_UPLOAD_BYTES = 5 * 1024 * 1024
SUPPORTED_MIME_TYPES = ("image/jpeg", "image/png", "image/gif", "image/webp")
SANITIZED_NAME_MAX = 100
SANITIZED_EXT_MAX = 4

# Leading bytes per format. WebP also needs "WEBP" at offset 8.
MAGIC_BYTES = {
    "image/jpeg": b"\xff\xd8\xff",
    "image/png": b"\x89PNG",
    "image/gif": b"GIF8",
    "image/webp": b"RIFF",
}
WEBP_MARKER = b"WEBP"
WEBP_MARKER_OFFSET = 8

# Encoder
ENCODE_TIMEOUT_MS = 10_000
DATA_URI_PREFIX = "data:%s;base64,"
IMAGE_DATA_URI_PREFIX = "data:image/"
EXTENSION_MIME_TYPES = {
    ".jpg": "image/jpeg",
    ".jpeg": "image/jpeg",
    ".png": "image/png",
    ".gif": "image/gif",
    ".webp": "image/webp",
}
MIME_FORMATS = {
    "image/jpeg": "JPEG",
    "image/png": "PNG",
    "image/gif": "GIF",
    "image/webp": "WEBP",
}
UNKNOWN_FORMAT = "UNKNOWN"
# Encode-time guess: ~1ms per KiB, clamped.
ESTIMATE_MIN_MS = 100.0
ESTIMATE_MAX_MS = 8000.0

# Completion API
OPENAI_BASE_URL = "https://api.openai.com/v1"
OPENAI_MODEL = "gpt-4o"
COMPLETIONS_ENDPOINT = "chat/completions"
DEFAULT_MAX_TOKENS = 300
DEFAULT_TEMPERATURE = 0.9
# base64 inflates by ~4/3, so the ceiling is 10 MiB of raw image.
MAX_ENCODED_CHARS = int(10 * 1024 * 1024 * 1.33)
CONTENT_POLICY_CODE = "content_policy_violation"
COST_PER_TOKEN = 0.00001

# Retry / timing
MAX_RETRIES = 2
RETRY_BASE_DELAY_S = 1.0
REQUEST_SLA_MS = 10_000
HTTP_TIMEOUT_S = 30.0
RATE_LIMIT_RETRY_AFTER_S = 60
SERVICE_UNAVAILABLE_RETRY_AFTER_S = 30

# Transport strategies
STRATEGY_AUTO = "auto"
STRATEGY_DIRECT = "direct"
STRATEGY_RELAY = "relay"
STRATEGY_BACKEND = "backend"
STRATEGY_MOCK = "mock"
STRATEGY_MODES = (STRATEGY_AUTO, STRATEGY_DIRECT, STRATEGY_RELAY, STRATEGY_BACKEND, STRATEGY_MOCK)
DEFAULT_FALLBACKS = "direct"
RELAY_URL_TEMPLATE = "https://corsproxy.io/?{url}"
BACKEND_PROXY_URL = "http://localhost:8080/api/proxy"
BACKEND_HEALTH_PATH = "health"
PROBE_TIMEOUT_S = 2.0
MOCK_DELAY_S = 0.1
MOCK_MODEL = "gpt-4o-mock"
MOCK_ROAST = (
    "This is a mock roast response for testing purposes! Your photo is so generic, "
    "it could be the default wallpaper for disappointment."
)
MOCK_USAGE = {"prompt_tokens": 85, "completion_tokens": 32, "total_tokens": 117}

# Log messages
MSG_STRATEGY_ATTEMPT = "Attempting %s strategy"
MSG_STRATEGY_OK = "✓ %s strategy succeeded (%d)"
MSG_STRATEGY_STATUS = "%s strategy answered %d — trying next"
MSG_STRATEGY_FAILED = "%s strategy failed: %s"
MSG_STRATEGIES_SELECTED = "Transport strategies: %s"
MSG_PROBE_FAILED = "Backend proxy probe failed: %s"
MSG_RETRYING = "Transport failed (attempt %d/%d) — retrying in %.1fs"
MSG_GENERATE_DONE = "✓ Roast generated (%.0fms, %d tokens)"
MSG_GENERATE_FAIL = "✗ Roast failed: %s (%.0fms)"
MSG_ENCODE_DONE = "Encoded %s (%d bytes, %.0fms)"
MSG_ENCODE_READ_FAILED = "Reading %s failed: %s"
MSG_STARTING = "Roasting %s as %s…"

# User-facing error messages
MSG_ERR_FILE_EMPTY = "File is empty or corrupted."
MSG_ERR_FILE_SIZE = "File size exceeds %dMB limit. Please choose a smaller image."
MSG_ERR_FILE_FORMAT = "Please upload JPEG, PNG, GIF, or WebP images only."
MSG_ERR_FILE_HEADER = "File header does not match file type."
MSG_ERR_NO_FILE = "No file provided."
MSG_ERR_BAD_FILE_OBJECT = "Invalid file object — missing required properties (name, size, type)."
MSG_ERR_READ = "Failed to read file."
MSG_ERR_ENCODE_TIMEOUT = "File processing timed out."
MSG_ERR_NO_IMAGE = "No image provided."
MSG_ERR_BAD_IMAGE = "Invalid base64 image format."
MSG_ERR_IMAGE_TOO_LARGE = "Image too large for processing."
MSG_ERR_INVALID_RESPONSE = "Invalid API response format."
MSG_ERR_EMPTY_RESPONSE = "Empty roast content received."
MSG_ERR_RATE_LIMIT = "Rate limit exceeded. Please wait before trying again."
MSG_ERR_UNAUTHORIZED = "Invalid API key provided."
MSG_ERR_CONTENT_POLICY = "Content violates safety guidelines."
MSG_ERR_BAD_REQUEST = "Bad request to API."
MSG_ERR_UNAVAILABLE = "The roast service is temporarily unavailable."
MSG_ERR_API = "Unknown API error occurred."
MSG_ERR_TIMEOUT = "Request timed out after %d seconds."
MSG_ERR_NETWORK = "Network request failed."
MSG_ERR_ALL_STRATEGIES = "All transport strategies failed"

# CLI
MSG_USAGE = "Usage: photoroast <image-path> [persona]"
MSG_PERSONAS = "Personas: %s"
