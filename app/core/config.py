import os

# Database Configuration
# Uses default credentials for local Docker Compose setup
DB_URL = os.getenv("DATABASE_URL", "postgres://user:password@db:5432/kitchen_db")

# Application Metadata
PROJECT_NAME = "Kitchen Order Engine"
VERSION = "1.0.0"

# Completion Scheduler Configuration
SWEEP_INTERVAL = int(os.getenv("SWEEP_INTERVAL", 30)) # Seconds between completion sweeps
OVERDUE_THRESHOLD_MINUTES = int(os.getenv("OVERDUE_THRESHOLD_MINUTES", 15))
ENABLE_SCHEDULER = os.getenv("ENABLE_SCHEDULER", "true").lower() in ("1", "true", "yes")

# Timeouts (seconds) for calls that leave the process
NOTIFY_TIMEOUT = float(os.getenv("NOTIFY_TIMEOUT", 2))
STORE_TIMEOUT = float(os.getenv("STORE_TIMEOUT", 5))

# New orders go straight to 'processing' unless disabled
AUTO_START_PROCESSING = os.getenv("AUTO_START_PROCESSING", "true").lower() in ("1", "true", "yes")

TABLE_CAPACITIES = (2, 4, 6, 8)
