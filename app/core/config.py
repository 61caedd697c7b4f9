import os

# --- General Settings ---
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

# --- Steam Store (upstream catalog) ---
STEAM_API_KEY = os.getenv("STEAM_API_KEY")
STEAM_STORE_HOST = os.getenv("STEAM_STORE_HOST", "store.steampowered.com")
STEAM_CDN_URL = "https://cdn.akamai.steamstatic.com/steam/apps"
UPSTREAM_TIMEOUT = int(os.getenv("UPSTREAM_TIMEOUT", "10"))
STEAM_HEADERS = {
    "User-Agent": "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36",
    "Accept": "application/json",
    "Accept-Language": "en-US,en;q=0.9",
}

# --- Endpoint limits ---
DEFAULT_LIST_LIMIT = 20
MAX_LIST_LIMIT = 50
DEFAULT_RELATED_LIMIT = 4
MAX_RELATED_LIMIT = 20
MAX_REVIEWS_LIMIT = 50
DEFAULT_BEST_REVIEWS_LIMIT = 20
MAX_BEST_REVIEWS_LIMIT = 50
DEFAULT_REVIEW_IDS_LIMIT = 50
MAX_REVIEW_IDS_LIMIT = 200
OVERFETCH_FACTOR = 2

# --- Review collections ---
BEST_REVIEWS_SOURCE_GAMES = 30
BEST_REVIEWS_GAMES_SCANNED = 15
MAX_BEST_REVIEWS_PER_GAME = 2
REVIEW_IDS_SOURCE_GAMES = 20

# --- Fallback synthesis ---
RELATED_FALLBACK_CAP = 8
LIST_FALLBACK_CAP = 20

# --- Client fetch controller ---
DEDUPING_INTERVAL = 300.0  # 5 minutes
SEARCH_DEDUPING_INTERVAL = 60.0
CATALOG_API_URL = os.getenv("CATALOG_API_URL", "http://localhost:8000")
CLIENT_REQUEST_TIMEOUT = 15.0
RETRY_BASE_DELAY = 1.0
RETRY_MAX_DELAY = 10.0
RETRY_JITTER_RATIO = 0.3
