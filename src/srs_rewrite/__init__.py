"""
SRS Rewrite Library

A Python implementation of the Sender Rewriting Scheme for mail relays:
forwarded envelope senders are rewritten into signed addresses under the
relay's own domain, so bounces can be routed back to the true originator
without exposing or allowing spoofing of that address.

Quick Start
-----------
```python
import asyncio
from srs_rewrite import EngineConfig, RewriteEngine

async def main():
    config = EngineConfig(secrets=("primary-secret", "previous-secret"))
    with RewriteEngine.open(config) as engine:
        rewritten = await engine.forward("alice@example.com", "relay.example.net")
        # SRS0=HHHHHH=TTTT=example.com=alice@relay.example.net

        original = await engine.reverse(str(rewritten))
        # alice@example.com

asyncio.run(main())
```

Key Features
------------
- **HMAC-SHA256**: Truncated keyed hashes in a local-part safe alphabet
- **Secret Rotation**: Sign with the primary secret, verify with every secret
- **Expiry**: Day-granular timestamps with a configurable maximum age
- **Compact Mode**: Short token addresses backed by an alias store
- **PostgreSQL Storage**: Production-ready alias store on asyncpg
- **Typed Failures**: Every failure maps to decline, fail or defer

Modules
-------
- `engine`: RewriteEngine lifecycle and forward/reverse operations
- `codec`: Wire format for guarded and compact addresses
- `crypto`: Keyed hash signing and verification
- `timestamp`: Day-count timestamp tokens
- `secret_ring`: Ordered secret storage
- `storage`: Alias store protocol and in-memory backend
- `bridge`: Alias token derivation and store calls
- `postgres_storage`: PostgreSQL alias store
- `config`: Engine settings and environment loading
- `errors`: Error types and result codes
"""

__version__ = "0.1.0"

# ============================================================================
# Error Exports
# ============================================================================

from .errors import (
    AddressTooLongError,
    BadHashError,
    BadSRSError,
    BadTimestampError,
    ConfigError,
    DBError,
    Disposition,
    NotReadyError,
    NotSRSError,
    SRSError,
    SRSResult,
    TimestampExpiredError,
)

# ============================================================================
# Primitive Exports
# ============================================================================

from .secret_ring import MAX_SECRET_LENGTH, Secret, SecretRing
from .timestamp import TIMESTAMP_WIDTH, TimestampCodec, days_since_epoch
from .crypto import MAX_HASH_LENGTH, MIN_HASH_LENGTH, HashAuthenticator

# ============================================================================
# Codec Exports
# ============================================================================

from .codec import (
    TAG_COMPACT,
    TAG_GUARDED,
    AddressCodec,
    BadSRS,
    CompactAddress,
    GuardedAddress,
    NotSRS,
    OriginalAddress,
    RewrittenAddress,
)

# ============================================================================
# Storage Exports
# ============================================================================

from .storage import AliasStore, InMemoryAliasStore, StoreDirection
from .bridge import AliasBridge
from .postgres_storage import PostgresAliasStore, StoredAlias

# ============================================================================
# Engine Exports (Primary API)
# ============================================================================

from .config import EngineConfig
from .engine import EngineState, ReverseOutcome, RewriteEngine

# ============================================================================
# Public API
# ============================================================================

__all__ = [
    # Version
    "__version__",
    # Errors
    "SRSError",
    "SRSResult",
    "Disposition",
    "ConfigError",
    "NotReadyError",
    "NotSRSError",
    "BadSRSError",
    "BadHashError",
    "BadTimestampError",
    "TimestampExpiredError",
    "DBError",
    "AddressTooLongError",
    # Primitives
    "MAX_SECRET_LENGTH",
    "Secret",
    "SecretRing",
    "TIMESTAMP_WIDTH",
    "TimestampCodec",
    "days_since_epoch",
    "MIN_HASH_LENGTH",
    "MAX_HASH_LENGTH",
    "HashAuthenticator",
    # Codec
    "TAG_GUARDED",
    "TAG_COMPACT",
    "AddressCodec",
    "OriginalAddress",
    "GuardedAddress",
    "CompactAddress",
    "RewrittenAddress",
    "NotSRS",
    "BadSRS",
    # Storage
    "AliasStore",
    "InMemoryAliasStore",
    "StoreDirection",
    "AliasBridge",
    "PostgresAliasStore",
    "StoredAlias",
    # Engine (Primary API)
    "EngineConfig",
    "EngineState",
    "ReverseOutcome",
    "RewriteEngine",
]
