"""
SRS Rewrite Benchmark CLI.

Usage:
    srs-benchmark

Or run directly:
    python -m srs_rewrite.benchmark

Compact mode runs against PostgreSQL when DATABASE_URL is set (environment
or .env file) and against the in-memory alias store otherwise.
"""

from __future__ import annotations

import asyncio
import os
import secrets
import time

import asyncpg
from dotenv import load_dotenv

from srs_rewrite.config import EngineConfig
from srs_rewrite.engine import RewriteEngine
from srs_rewrite.errors import BadHashError
from srs_rewrite.postgres_storage import PostgresAliasStore
from srs_rewrite.storage import AliasStore, InMemoryAliasStore, StoreDirection

FORWARDING_DOMAIN = "relay.example.net"


def _banner(title: str) -> None:
    print("+" + "-" * 68 + "+")
    print(f"|  {title}".ljust(69) + "|")
    print("+" + "-" * 68 + "+")


async def run_benchmark() -> None:
    """Run the rewriting benchmark."""
    print("=== SRS Rewrite Benchmark ===\n")

    load_dotenv()

    try:
        user_input = input("Enter number of senders to test (default: 1000): ").strip()
        test_quantity = int(user_input) if user_input else 1000
    except ValueError:
        test_quantity = 1000
    print(f"Testing with {test_quantity} senders\n")

    senders = [f"user{i}@sender{i % 17}.example.com" for i in range(test_quantity)]
    old_secret = secrets.token_hex(16)
    new_secret = secrets.token_hex(16)

    print("=" * 70)
    print("                    BENCHMARK START")
    print("=" * 70 + "\n")

    # ========================================================================
    # Demo 1: Guarded forward
    # ========================================================================
    _banner(f"Demo 1: Forward {test_quantity} Senders (guarded)")

    engine = RewriteEngine.open(EngineConfig(secrets=(old_secret,)))
    demo1_start = time.perf_counter()
    rewritten = [str(await engine.forward(s, FORWARDING_DOMAIN)) for s in senders]
    demo1_duration = time.perf_counter() - demo1_start

    print(f"[OK] Example: {rewritten[0]}")
    print(f"[PERF] Time: {demo1_duration * 1000:.3f}ms | Rate: {test_quantity / demo1_duration:.2f} ops/sec\n")

    # ========================================================================
    # Demo 2: Guarded reverse
    # ========================================================================
    _banner(f"Demo 2: Reverse {test_quantity} Addresses (guarded)")

    demo2_start = time.perf_counter()
    for sender, address in zip(senders, rewritten):
        if str(await engine.reverse(address)) != sender:
            print(f"[ERROR] Round trip mismatch for {sender}")
    demo2_duration = time.perf_counter() - demo2_start
    engine.close()

    print(f"[OK] All {test_quantity} addresses reversed")
    print(f"[PERF] Time: {demo2_duration * 1000:.3f}ms | Rate: {test_quantity / demo2_duration:.2f} ops/sec\n")

    # ========================================================================
    # Demo 3: Secret rotation
    # ========================================================================
    _banner("Demo 3: Secret Rotation")

    rotated = RewriteEngine.open(EngineConfig(secrets=(new_secret, old_secret)))
    demo3_start = time.perf_counter()
    for address in rewritten:
        await rotated.reverse(address)
    demo3_duration = time.perf_counter() - demo3_start
    rotated.close()
    print("[OK] Addresses signed by the demoted secret still verify")
    print(f"[PERF] Time: {demo3_duration * 1000:.3f}ms | Rate: {test_quantity / demo3_duration:.2f} ops/sec")

    retired = RewriteEngine.open(EngineConfig(secrets=(new_secret,)))
    try:
        await retired.reverse(rewritten[0])
        print("[ERROR] Address signed by a removed secret was accepted\n")
    except BadHashError:
        print("[OK] Addresses signed by a removed secret are rejected\n")
    retired.close()

    # ========================================================================
    # Demo 4: Compact mode
    # ========================================================================
    database_url = os.environ.get("DATABASE_URL")
    pool = None
    store: AliasStore
    if database_url:
        pool = await asyncpg.create_pool(database_url)
        pg_store = PostgresAliasStore(pool)
        await pg_store.ensure_schema()
        store = pg_store
        backend = "PostgreSQL"
    else:
        store = InMemoryAliasStore()
        backend = "in-memory"

    _banner(f"Demo 4: Compact Mode ({backend} alias store)")

    compact = RewriteEngine.open(EngineConfig(secrets=(new_secret,)))
    compact.configure_store(StoreDirection.FORWARD, store)
    compact.configure_store(StoreDirection.REVERSE, store)

    demo4_start = time.perf_counter()
    tokens = [str(await compact.forward(s, FORWARDING_DOMAIN)) for s in senders]
    demo4_forward = time.perf_counter() - demo4_start

    demo4_start = time.perf_counter()
    for sender, address in zip(senders, tokens):
        if str(await compact.reverse(address)) != sender:
            print(f"[ERROR] Compact round trip mismatch for {sender}")
    demo4_reverse = time.perf_counter() - demo4_start
    compact.close()

    print(f"[OK] Example: {tokens[0]}")
    print(f"[PERF] Forward: {demo4_forward * 1000:.3f}ms ({test_quantity / demo4_forward:.2f} ops/sec)")
    print(f"[PERF] Reverse: {demo4_reverse * 1000:.3f}ms ({test_quantity / demo4_reverse:.2f} ops/sec)\n")

    # ========================================================================
    # Summary
    # ========================================================================
    print("=" * 70)
    print("                    BENCHMARK SUMMARY")
    print("=" * 70 + "\n")

    print("+- Performance Summary --------------------------------------------+")
    for label, count, duration in (
        ("Guarded forward:", test_quantity, demo1_duration),
        ("Guarded reverse:", test_quantity, demo2_duration),
        ("Rotated reverse:", test_quantity, demo3_duration),
        ("Compact forward:", test_quantity, demo4_forward),
        ("Compact reverse:", test_quantity, demo4_reverse),
    ):
        rate = f"{count / duration:.2f}"
        print(f"|  {label:<19}{rate} ops/sec".ljust(67) + "|")
    print("+------------------------------------------------------------------+")

    print("\nTest Configuration:")
    print(f"  - Total senders tested: {test_quantity}")
    print("  - Hash: HMAC-SHA256, base32, 6 characters")
    print(f"  - Alias store: {backend}")

    print("\n" + "=" * 70)
    print("                    BENCHMARK COMPLETE")
    print("=" * 70 + "\n")

    if pool is not None:
        await pool.close()


def main() -> None:
    """CLI entry point for srs-benchmark command."""
    asyncio.run(run_benchmark())


if __name__ == "__main__":
    main()
