# projectionlab_mcp/config.py

import os

# --- Data File ---
# Export loaded at startup; leave unset to require the set_data_file tool first.
PROJECTIONLAB_DATA_FILE = os.getenv("PROJECTIONLAB_DATA_FILE") or None
PROJECTIONLAB_JSON_INDENT = int(os.getenv("PROJECTIONLAB_JSON_INDENT", 2))

# --- MCP Server Configuration ---
PROJECTIONLAB_SERVER_NAME = os.getenv("PROJECTIONLAB_SERVER_NAME", "ProjectionLabServer")
PROJECTIONLAB_ID_STRATEGY = os.getenv("PROJECTIONLAB_ID_STRATEGY", "uuid")  # 'uuid', 'timestamp' or 'sequential'

# --- Logging ---
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
