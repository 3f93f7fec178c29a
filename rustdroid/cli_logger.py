import datetime
import sys
import traceback
import os
from colorama import Fore, Style, init

# Initialize Colorama
init(autoreset=True)

LOG_DIR = os.path.join(os.path.expanduser("~"), ".rustdroid", "logs")
os.makedirs(LOG_DIR, exist_ok=True)

DEBUG = 10
INFO = 20
LIFECYCLE = 25
WARNING = 30
ERROR = 40

LEVEL_NAMES = {
    "debug": DEBUG,
    "info": INFO,
    "lifecycle": LIFECYCLE,
    "warning": WARNING,
    "error": ERROR,
}


class Logger:
    def __init__(self, level=LIFECYCLE):
        self.level = level
        self.log_file = os.path.join(
            LOG_DIR,
            f"rustdroid_{datetime.datetime.now().strftime('%Y%m%d_%H%M%S')}.log"
        )

    def set_level(self, level):
        """Set the console threshold, by number or by name ("info", "debug", ...)."""
        if isinstance(level, str):
            level = LEVEL_NAMES[level.lower()]
        self.level = level

    def is_enabled(self, level):
        return level >= self.level

    def is_info_enabled(self):
        return self.is_enabled(INFO)

    def _get_timestamp(self):
        return datetime.datetime.now().strftime("%H:%M:%S")

    def _log(self, level, label, message, color, stream=None, prefix="", show_timestamp=True):
        if show_timestamp:
            timestamp = self._get_timestamp()
            log_message = f"[{timestamp}] [{label}] {prefix}{message}\n"
            console_message = f"{color}{Style.BRIGHT}[{timestamp}]{Style.RESET_ALL} {prefix}{message}{Style.RESET_ALL}"
        else:
            log_message = f"[{label}] {prefix}{message}\n"
            console_message = f"{color}{prefix}{message}{Style.RESET_ALL}"

        # The log file always gets everything, the console only what passes the threshold.
        stream = sys.stderr if stream == "stderr" else sys.stdout
        if self.is_enabled(level):
            print(console_message, file=stream)

        with open(self.log_file, "a") as f:
            f.write(log_message)

    def info(self, message):
        self._log(INFO, "INFO", message, Fore.CYAN)

    def step_info(self, message, indent=0):
        prefix = " " * indent
        self._log(LIFECYCLE, "", message, Fore.CYAN, prefix=prefix, show_timestamp=False)

    def success(self, message):
        self._log(LIFECYCLE, "SUCCESS", message, Fore.GREEN, prefix=f"{Style.BRIGHT}✓ {Style.RESET_ALL}{Fore.GREEN}")

    def warning(self, message):
        self._log(WARNING, "WARNING", message, Fore.YELLOW, stream="stderr",
                  prefix=f"{Style.BRIGHT}⚠ {Style.RESET_ALL}{Fore.YELLOW}")

    def error(self, message):
        self._log(ERROR, "ERROR", message, Fore.RED, stream="stderr",
                  prefix=f"{Style.BRIGHT}✖ {Style.RESET_ALL}{Fore.RED}")

    def debug(self, message):
        self._log(DEBUG, "DEBUG", message, Fore.WHITE + Style.DIM)

    # -------- Exception logging --------
    def exception(self, exc_type, exc_value, exc_traceback):
        formatted_lines = traceback.format_exception(exc_type, exc_value, exc_traceback)
        for line in formatted_lines:
            for sub_line in line.splitlines():
                if sub_line.strip():
                    # Tracebacks are for the log file unless --debug was given.
                    self._log(DEBUG, "TRACEBACK", f">> {sub_line}", Fore.RED, stream="stderr")


# ---------------- Helper ----------------
logger = Logger()

def get_latest_log_file():
    """Return the path to the latest log file."""
    log_files = [os.path.join(LOG_DIR, f) for f in os.listdir(LOG_DIR) if f.endswith(".log")]
    if not log_files:
        return None
    return max(log_files, key=os.path.getctime)
