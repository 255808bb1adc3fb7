"""agentwatch configuration

Settings are grouped by concern:
- Velocity thresholds: output rate cut-offs for classification
- Classifier timing: stall and hysteresis windows
- History sizes: sample and transition buffers
- Polling: capture cadence and pane filtering
- Patterns: extra pattern definitions layered over the built-ins
- Logging
"""

import os

# === Velocity thresholds (chars/sec) ===
# Must satisfy HIGH > MEDIUM > IDLE
VELOCITY_HIGH_THRESHOLD = 10.0  # Above: actively generating
VELOCITY_MEDIUM_THRESHOLD = 2.0  # Above: some activity
VELOCITY_IDLE_THRESHOLD = 1.0  # Below: idle prompt is trusted

# === Classifier timing (seconds) ===
DEFAULT_STALL_THRESHOLD_SECONDS = 30.0  # GENERATING → STALLED after this much silence
DEFAULT_HYSTERESIS_SECONDS = 2.0  # Candidate state must persist this long

# === History sizes ===
DEFAULT_MAX_SAMPLES = 10  # Velocity samples kept per pane
MAX_STATE_HISTORY = 20  # State transitions kept per pane
RECENT_VELOCITY_WINDOW = 3  # Samples averaged for AgentActivity.recent_velocity

# === Polling ===
POLL_INTERVAL = 2.0  # Seconds between capture rounds
CAPTURE_LINES = 50  # Lines captured from the bottom of each pane
EXCLUDED_AGENT_TYPES = {"unknown", "user"}  # Panes not worth classifying

# === Patterns ===
DEFAULT_LIBRARY_VERSION = "1.0"

# Extra pattern definitions, validated by activity.pattern_specs.PatternSpec.
# Each entry: name, regex, category, agent (optional, "*" = all),
# priority (optional), state (optional), description (optional).
# Invalid entries are logged and skipped.
# Example:
#   {"name": "aider_prompt", "regex": r"(?i)aider>?\s*$",
#    "category": "idle", "agent": "aider", "priority": 100}
CUSTOM_PATTERNS: list[dict[str, object]] = []

# === Logging ===
LOG_LEVEL = os.environ.get("AGENTWATCH_LOG_LEVEL", "INFO")
LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"
