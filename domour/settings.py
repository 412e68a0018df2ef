"""
This module contains the configuration settings for the Domour Copilot control plane.
It defines paths, update endpoints, helper process settings and logging configuration.
It is used throughout the application to ensure consistent settings and paths.
"""

import os
import pathlib
from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv(override=True)

#* --- Application Identity ---
APP_NAME = "Domour Copilot"
APP_VERSION = os.getenv("DOMOUR_APP_VERSION", "dev")
APP_PRODUCT = "domour-copilot"

#* --- Core Paths ---
HOME_DIR = pathlib.Path(os.getenv("DOMOUR_HOME", str(pathlib.Path.home())))
DATA_DIR = HOME_DIR / ".domour"
LOGS_DIR = DATA_DIR / "logs"
LOG_FILE_PATH = LOGS_DIR / "copilot.log"
USER_SETTINGS_PATH = DATA_DIR / "cosmos-assistant.json"
OVERRIDES_JSON_PATH = DATA_DIR / "overrides.json"

#* --- Helper Process (vlink) ---
HELPER_PRODUCT = "vlink"
HELPER_HOME_DIR = HOME_DIR / ".vlink"
HELPER_HOME_CONFIG_PATH = HELPER_HOME_DIR / "config.json"
HELPER_SYSTEM_CONFIG_PATH = pathlib.Path("/etc/vlink/config.json")
HELPER_SYSTEM_BINARY_PATH = pathlib.Path("/usr/local/bin/vlink")
HELPER_WINDOWS_BINARY_PATH = HELPER_HOME_DIR / "vlink.exe"
HELPER_DEFAULT_CONFIG = "{}\n"
HELPER_PROBE_HOST = "127.0.0.1"
HELPER_PROBE_PORT = int(os.getenv("VLINK_PROBE_PORT", "1080"))
HELPER_PROBE_TIMEOUT = 0.5      # seconds
HELPER_STOP_GRACE_PERIOD = 3    # seconds before force-killing

#* --- Self-Update Endpoints ---
UPDATE_BASE_URL = os.getenv("DOMOUR_UPDATE_BASE_URL", "https://qtopie.space/downloads/domour/")
HELPER_BASE_URL = os.getenv("DOMOUR_HELPER_BASE_URL", "https://qtopie.space/downloads/vlink/")
MANIFEST_FILE_NAME = "checksums.txt"
MANIFEST_TIMEOUT = 20   # seconds
DOWNLOAD_TIMEOUT = 60   # seconds
HTTP_USER_AGENT = f"DomourCopilot/{APP_VERSION}"

#* --- Chat Relay ---
RELAY_COMMAND = ["gemini", "chat", "--yolo"]
RELAY_PROXY_URL = os.getenv("DOMOUR_RELAY_PROXY", "http://127.0.0.1:8118")
RELAY_TIMEOUT = 90      # seconds

#* --- Logging ---
LOG_LEVEL = os.getenv("DOMOUR_LOG_LEVEL", "INFO").upper()
LOG_FILE_MAX_BYTES = 2 * 1024 * 1024
LOG_FILE_BACKUP_COUNT = 3

#* --- MODIFIABLE SETTINGS (Changeable at runtime via 'config set') ---
MODIFIABLE_SETTINGS = {
    "UPDATE_BASE_URL", "HELPER_BASE_URL",
    "HELPER_PROBE_PORT", "RELAY_PROXY_URL",
    "LOG_LEVEL",
}
