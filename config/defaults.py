"""
Default configuration values for federated-types-sync.

Centralized defaults that can be overridden by plugin options, environment
variables or the project federation file.
"""

from typing import Dict

# Owned by the models so they import standalone
from core.models.config import DEFAULT_DOWNLOAD_TYPES_INTERVAL_IN_SECONDS

# Build layout
DIR_DIST = "dist"
DIR_EMITTED_TYPES = "@types"
DIR_DOWNLOADED_TYPES = "src/@types/remotes"
EMITTED_TYPES_FILE = "index.d.ts"

# Deployment environment that turns remote downloads off (operational kill switch)
DEPLOYMENT_ENV_VAR = "DEPLOYMENT_ENV"
DOWNLOAD_DISABLED_DEPLOYMENT_ENV = "devbox"

# Manifest entry used for remotes that have no manifest of their own
REGISTRY_MANIFEST_KEY = "registry"

# Build modes reported by hosts
MODE_DEVELOPMENT = "development"
MODE_PRODUCTION = "production"

# Project files
FEDERATION_CONFIG_FILE = "federation.json"
TYPES_PLUGIN_KEY = "typesPlugin"

DEFAULT_SETTINGS: Dict[str, Dict[str, object]] = {
    "download": {
        "timeout": 30.0,
        "types_dir": DIR_DOWNLOADED_TYPES,
    },
    "compile": {
        "tsc_path": "tsc",
    },
    "watch": {
        "debounce_ms": 500,
    },
    "logging": {
        "level": "INFO",
        "format": "%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    },
}

# Extensions stripped when matching declaration specifiers to exposed modules
MODULE_EXTENSIONS = (".d.ts", ".tsx", ".ts", ".jsx", ".js", ".mjs", ".cjs")
