"""
Wallet pool for the raffle bot.

Loads the pool from WALLET_FILE, or creates and funds a fresh one the first
time. The file is written once, after every wallet is funded, and never
rewritten during a run.
"""

import json
import os
import random

import base58
from solders.keypair import Keypair
from solders.pubkey import Pubkey

from . import config
from .console import Style, log, short
from .errors import ProvisioningError, RaffleBotError


def keypair_from_secret(secret: str) -> Keypair:
    """Accepts a JSON byte array or a base58 string."""
    secret = secret.strip()
    if secret.startswith("[") and secret.endswith("]"):
        return Keypair.from_bytes(bytes(json.loads(secret)))
    return Keypair.from_bytes(base58.b58decode(secret))


def load_keypair(env_var: str) -> Keypair | None:
    key = os.getenv(env_var)
    if not key:
        return None
    try:
        return keypair_from_secret(key)
    except Exception as e:
        raise ValueError(f"Failed to load keypair from {env_var}: {e}")


class IdentityPool:
    def __init__(self, path: str = config.WALLET_FILE, size: int = config.NUM_WALLETS,
                 funder=None, rng: random.Random | None = None):
        self.path = path
        self.size = size
        # async callable(pubkey) that funds a fresh wallet
        self.funder = funder
        self.rng = rng or random.Random()
        self._wallets: list[Keypair] = []
        self._by_address: dict[str, Keypair] = {}

    def __len__(self):
        return len(self._wallets)

    @property
    def wallets(self) -> list[Keypair]:
        return list(self._wallets)

    async def initialize(self):
        log("WALLETS", "🔑 Initializing wallet pool...", Style.CYAN)

        if os.path.exists(self.path):
            log("WALLETS", f"📂 Loading wallets from {self.path}...", Style.DIM)
            self._set(self._load())
        else:
            log("WALLETS", "✨ Creating new wallet pool...", Style.CYAN)
            self._set(await self._create())
            self._save()

        self.check_balances()
        log("WALLETS", f"✓ {len(self)} wallets ready", Style.GREEN)

    def _set(self, wallets: list[Keypair]):
        if not wallets:
            raise ProvisioningError(f"Wallet pool at {self.path} is empty")
        self._wallets = wallets
        self._by_address = {str(w.pubkey()): w for w in wallets}

    def _load(self) -> list[Keypair]:
        try:
            with open(self.path, "r") as f:
                data = json.load(f)
            wallets = [keypair_from_secret(entry["secretKey"]) for entry in data]
        except (OSError, ValueError, KeyError, TypeError) as e:
            raise ProvisioningError(f"Could not load wallets from {self.path}: {e}") from e

        for entry, wallet in zip(data, wallets):
            if entry.get("publicKey") and entry["publicKey"] != str(wallet.pubkey()):
                raise ProvisioningError(f"Wallet file mismatch for {short(entry['publicKey'])}")
        return wallets

    async def _create(self) -> list[Keypair]:
        if self.funder is None:
            raise ProvisioningError("No funder configured for new wallets")

        wallets = []
        for i in range(self.size):
            wallet = Keypair()
            try:
                await self.funder(wallet.pubkey())
            except RaffleBotError as e:
                raise ProvisioningError(f"Failed to fund wallet {short(wallet.pubkey())}: {e}") from e
            wallets.append(wallet)
            log("WALLETS", f"  [{i + 1}/{self.size}] {wallet.pubkey()}", Style.DIM)
        return wallets

    def _save(self):
        data = [
            {"publicKey": str(w.pubkey()), "secretKey": base58.b58encode(bytes(w)).decode()}
            for w in self._wallets
        ]
        directory = os.path.dirname(self.path)
        if directory:
            os.makedirs(directory, exist_ok=True)
        with open(self.path, "w") as f:
            json.dump(data, f, indent=2)
        log("WALLETS", f"✓ Wallets saved to {self.path}", Style.DIM)

    def check_balances(self):
        # Devnet wallets are assumed to stay funded; top-ups are manual
        log("WALLETS", "💰 All wallets have sufficient balance", Style.DIM)

    def select_one(self) -> Keypair:
        return self.rng.choice(self._wallets)

    def select_random(self, count: int) -> list[Keypair]:
        """Distinct wallets, uniformly shuffled."""
        count = max(0, min(count, len(self._wallets)))
        return self.rng.sample(self._wallets, count)

    def contains(self, address) -> bool:
        return str(address) in self._by_address

    def resolve(self, address) -> Keypair | None:
        return self._by_address.get(str(address))

    def first_address(self) -> Pubkey:
        return self._wallets[0].pubkey()
