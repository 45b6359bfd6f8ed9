"""
Lucky Ledgers Raffle Bot

Keeps raffle rounds moving with a pool of wallets:
- Buys random tickets (1-10 per wallet) every 1-5 minutes
- Triggers the draw once the target is met, then answers the VRF request
- Claims prizes when a pool wallet wins

Run with: python main.py
"""

import asyncio
import signal
import sys

from solana.rpc.async_api import AsyncClient
from solana.rpc.commitment import Confirmed
from solders.pubkey import Pubkey

from raffle_bot import config
from raffle_bot.chain import SolanaGateway
from raffle_bot.claims import PrizeClaimer
from raffle_bot.console import Style, init_log_file, log, print_banner, short
from raffle_bot.contracts import RaffleProgram, VrfProgram
from raffle_bot.draw import DrawCoordinator
from raffle_bot.errors import ProvisioningError, ReadError
from raffle_bot.loop import ControlLoop
from raffle_bot.participation import ParticipationScheduler
from raffle_bot.rounds import RaffleSettings, RoundObserver
from raffle_bot.wallets import IdentityPool, load_keypair


def load_program_id(env_name: str, value: str | None) -> Pubkey:
    if not value:
        raise ValueError(f"Missing {env_name}")
    try:
        return Pubkey.from_string(value.strip())
    except ValueError as e:
        raise ValueError(f"Invalid {env_name}: {e}")


async def resolve_settings(observer: RoundObserver) -> RaffleSettings:
    """On-chain raffle config, with TARGET_TICKETS / MAX_TICKETS_PER_WALLET overriding it."""
    try:
        onchain = await observer.settings()
    except ReadError as e:
        log("WARN", f"⚠️ Could not read raffle config ({e}), using defaults", Style.YELLOW)
        onchain = RaffleSettings(config.DEFAULT_TARGET_TICKETS, config.DEFAULT_MAX_TICKETS_PER_WALLET)

    target = config.optional_int(config.TARGET_TICKETS)
    cap = config.optional_int(config.MAX_TICKETS_PER_WALLET)
    return RaffleSettings(
        target_tickets=target if target is not None else onchain.target_tickets,
        max_tickets_per_wallet=cap if cap is not None else onchain.max_tickets_per_wallet,
        ticket_price=onchain.ticket_price,
    )


async def build_loop(client: AsyncClient) -> ControlLoop:
    raffle_id = load_program_id("RAFFLE_PROGRAM_ID", config.RAFFLE_PROGRAM_ID)
    vrf_id = load_program_id("VRF_PROGRAM_ID", config.VRF_PROGRAM_ID)
    oracle = load_keypair("ORACLE_PRIVATE_KEY")

    gateway = SolanaGateway(client)
    lamports = int(config.AIRDROP_SOL * config.LAMPORTS_PER_SOL)

    async def fund(pubkey):
        await gateway.airdrop(pubkey, lamports)
        log("WALLETS", f"✓ Funded {short(pubkey)} with {config.AIRDROP_SOL} SOL", Style.DIM)

    pool = IdentityPool(funder=fund)
    await pool.initialize()

    viewer = pool.first_address()
    raffle = RaffleProgram(gateway, raffle_id, vrf_id, viewer=viewer)
    vrf = VrfProgram(gateway, vrf_id, viewer=viewer)
    observer = RoundObserver(raffle)

    settings = await resolve_settings(observer)

    scheduler = ParticipationScheduler(
        pool, raffle, settings.target_tickets, max_tickets_per_wallet=settings.max_tickets_per_wallet
    )
    coordinator = DrawCoordinator(pool, raffle, vrf, oracle=oracle)
    claimer = PrizeClaimer(pool, observer, raffle)

    log("INIT", "✓ Bot initialized successfully!", Style.GREEN)
    log("INIT", f"👛 Wallets: {len(pool)}", Style.DIM)
    log("INIT", f"🎯 Target: {settings.target_tickets} tickets (max {settings.max_tickets_per_wallet}/wallet)", Style.DIM)
    log("INIT", f"🔁 Loop interval: {config.LOOP_INTERVAL}s", Style.DIM)
    log("INIT", f"🎫 Ticket purchase interval: {config.TICKET_BUY_MIN_DELAY // 1000}-{config.TICKET_BUY_MAX_DELAY // 1000}s", Style.DIM)
    log("INIT", f"⏱️  Draw delay: {config.DRAW_DELAY_MIN // 1000}-{config.DRAW_DELAY_MAX // 1000}s", Style.DIM)

    return ControlLoop(observer, scheduler, coordinator, claimer)


def install_signal_handlers(loop: ControlLoop):
    running = asyncio.get_running_loop()

    def on_signal(name):
        log("SYSTEM", f"🛑 Received {name}, shutting down gracefully...", Style.RED)
        loop.stop()

    for sig in (signal.SIGINT, signal.SIGTERM):
        try:
            running.add_signal_handler(sig, on_signal, sig.name)
        except NotImplementedError:
            # Windows: Ctrl+C still arrives as KeyboardInterrupt
            pass


async def run() -> int:
    print_banner()
    init_log_file()
    log("SYSTEM", "🚀 Starting bot...", Style.CYAN)

    async with AsyncClient(config.RPC_URL, commitment=Confirmed) as client:
        try:
            control = await build_loop(client)
        except (ProvisioningError, ValueError) as e:
            log("FATAL", f"💥 Startup failed: {e}", Style.RED)
            return 1

        install_signal_handlers(control)
        try:
            await control.run_forever()
        finally:
            log("STATS", f"📊 Final Stats: {control.stats.summary()}", Style.CYAN)
    return 0


def main() -> int:
    try:
        return asyncio.run(run())
    except KeyboardInterrupt:
        print(f"\n{Style.RED}🛑 Bot Stopped{Style.RESET}")
        return 0
    except Exception as e:
        print(f"{Style.RED}💥 Fatal error: {e}{Style.RESET}")
        return 1


if __name__ == "__main__":
    sys.exit(main())
