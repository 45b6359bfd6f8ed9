import os

from dotenv import load_dotenv


# --- CONFIGURATION ---
load_dotenv()

RPC_URL = os.getenv("RPC_URL", "https://api.devnet.solana.com")
RAFFLE_PROGRAM_ID = os.getenv("RAFFLE_PROGRAM_ID")
VRF_PROGRAM_ID = os.getenv("VRF_PROGRAM_ID")
ORACLE_PRIVATE_KEY = os.getenv("ORACLE_PRIVATE_KEY")

WALLET_FILE = os.getenv("WALLET_FILE", ".wallets.json")
NUM_WALLETS = int(os.getenv("NUM_WALLETS", "25"))
AIRDROP_SOL = float(os.getenv("AIRDROP_SOL", "1.0"))

# Unset means "use the raffle's on-chain config"
TARGET_TICKETS = os.getenv("TARGET_TICKETS")
MAX_TICKETS_PER_WALLET = os.getenv("MAX_TICKETS_PER_WALLET")
DEFAULT_TARGET_TICKETS = 250
DEFAULT_MAX_TICKETS_PER_WALLET = 10

DRY_RUN = os.getenv("DRY_RUN", "false").lower() == "true"

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
LOG_FILE = os.getenv("LOG_FILE", "logs/raffle_bot.json")

LAMPORTS_PER_SOL = 1_000_000_000

# LOOP SETTINGS
LOOP_INTERVAL = 30  # seconds between ticks

# ORGANIC PURCHASE SETTINGS (ms)
TICKET_BUY_MIN_DELAY = 60_000
TICKET_BUY_MAX_DELAY = 300_000
MAX_WALLETS_PER_BATCH = 5
PURCHASE_PAUSE = 2.0  # seconds between wallets in one batch

# DRAW SETTINGS (ms)
DRAW_DELAY_MIN = 60_000
DRAW_DELAY_MAX = 120_000

# CONFIRMATION SETTINGS
CONFIRM_POLL_INTERVAL = 2.0
CONFIRM_MAX_POLLS = 30


def optional_int(value: str | None) -> int | None:
    if value is None or not value.strip():
        return None
    return int(value)
