import json
import os
from datetime import datetime

from . import config


# --- TERMINAL STYLING ---
class Style:
    RESET = "\033[0m"
    BOLD = "\033[1m"
    DIM = "\033[2m"

    # Foreground
    RED = "\033[91m"
    GREEN = "\033[92m"
    YELLOW = "\033[93m"
    BLUE = "\033[94m"
    MAGENTA = "\033[95m"
    CYAN = "\033[96m"
    WHITE = "\033[97m"


# --- LOGGING SYSTEM ---
LOG_FILE_PATH = config.LOG_FILE or None
LOG_FILE_LIMIT = 500


def init_log_file():
    """Ensure the log feed directory exists and init an empty JSON list if needed"""
    if not LOG_FILE_PATH:
        return
    directory = os.path.dirname(LOG_FILE_PATH)
    if directory:
        os.makedirs(directory, exist_ok=True)
    if not os.path.exists(LOG_FILE_PATH):
        with open(LOG_FILE_PATH, "w") as f:
            json.dump([], f)


def _append_entry(entry: dict):
    if not os.path.exists(LOG_FILE_PATH):
        init_log_file()

    with open(LOG_FILE_PATH, "r") as f:
        try:
            data = json.load(f)
        except json.JSONDecodeError:
            data = []

    data.append(entry)
    if len(data) > LOG_FILE_LIMIT:
        data = data[-LOG_FILE_LIMIT:]

    with open(LOG_FILE_PATH, "w") as f:
        json.dump(data, f)


def log(tag: str, msg: str, color: str = Style.WHITE):
    if tag == "DEBUG" and config.LOG_LEVEL != "DEBUG":
        return

    timestamp = datetime.now().strftime("%H:%M:%S")

    # 1. Console Output
    print(f"{Style.DIM}[{timestamp}]{Style.RESET} {color}{Style.BOLD}[{tag:^10}]{Style.RESET} {msg}")

    # 2. JSON feed
    if not LOG_FILE_PATH:
        return
    entry = {
        "timestamp": timestamp,
        "tag": tag,
        "msg": msg,
        "color": color.replace("\033", ""),
    }
    try:
        _append_entry(entry)
    except OSError as e:
        print(f"Log Error: {e}")


def short(address) -> str:
    """First 8 chars of an address, the way every log line shows wallets."""
    return f"{str(address)[:8]}..."


def print_banner():
    banner = f"""{Style.BOLD}{Style.CYAN}
    ╔════════════════════════════════════════╗
    ║      LUCKY LEDGERS RAFFLE BOT          ║
    ╚════════════════════════════════════════╝{Style.RESET}
    """
    print(banner)
    mode = "DRY RUN" if config.DRY_RUN else "LIVE"
    print(f"{Style.DIM}    v1.0.0 | RPC: {config.RPC_URL} | MODE: {mode}{Style.RESET}\n")
