# Core settings and constants for the crew rate calculator
import logging
import os

PROJECT_ROOT = os.path.dirname(os.path.dirname(__file__))

# Calendar
WEEKS_PER_MONTH = 4.33               # average weeks per month
OFFICE_HOURS_PER_WEEK = 40           # hourly office staff: full-time week
WORKING_DAYS_PER_MONTH = 21.67       # billable crew-days per month

# Form defaults
DEFAULT_WORKER_RATE = 25.0           # $/hr for a newly added worker
DEFAULT_WORKER_COMMISSION = 10.0     # % for a newly added worker
DEFAULT_WORKERS_PER_CREW = 2
DEFAULT_CREW_COMMISSION = 30.0       # % split evenly across a crew's workers
DEFAULT_MONTHLY_BILLABLE_HOURS = 160
DEFAULT_DAILY_WORK_HOURS = 8.0
DEFAULT_DAILY_BILLABLE_HOURS = 5.0
DEFAULT_WASTAGE_PERCENT = 30.0
DEFAULT_MARGIN_PERCENT = 35.0

# Estimates
DEFAULT_MATERIAL_MARKUP = 40.0       # % on top of material cost
DEFAULT_MATERIAL_WASTAGE = 10.0      # % extra material ordered
DEFAULT_HOURLY_RATE = float(os.environ.get("CREWRATE_DEFAULT_RATE", "75") or 75)

# Comparison grids ("what if" tables)
MARGIN_STEPS = (25, 30, 35, 40, 45)
OVERHEAD_STEPS = (5000, 10000, 15000, 20000, 30000)
COMMISSION_STEPS = (20, 25, 30, 35, 40)
WASTAGE_STEPS = (20, 30, 40, 50, 60)
CREW_COUNT_STEPS = (1, 2, 3, 4, 5)

# Storage
STORE_PATH_ENV = "CREWRATE_STORE_PATH"
DEFAULT_STORE_PATH = os.path.join(PROJECT_ROOT, "data", "crewrate.json")

# Logging
LOG_LEVEL = os.environ.get("CREWRATE_LOG_LEVEL", "INFO").upper()
LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def store_path() -> str | None:
    """
    Where the JSON store lives:
      1) CREWRATE_STORE_PATH (env) -> absolute or relative to the project root
         (empty string disables the file store; session only)
      2) data/crewrate.json under the project root
    """
    env_path = os.environ.get(STORE_PATH_ENV)
    if env_path is None:
        return DEFAULT_STORE_PATH
    env_path = env_path.strip()
    if not env_path:
        return None
    return env_path if os.path.isabs(env_path) else os.path.join(PROJECT_ROOT, env_path)


def configure_logging(level: str | None = None) -> None:
    level_name = (level or LOG_LEVEL).upper()
    logging.basicConfig(level=getattr(logging, level_name, logging.INFO), format=LOG_FORMAT)
