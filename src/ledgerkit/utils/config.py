# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Tsar Studio
# Part of LedgerKit - see LICENSE and TRADEMARKS.md
# Refs: BIP32-Ed25519; BIP173; RFC8032-Ed25519; RFC7693-BLAKE2

'''
=============================================================================
 -------- !!! CONSENSUS-CRITICAL REMINDER - READ BEFORE EDITING !!! --------
=============================================================================

The values below **MUST BE IDENTICAL** to what the ledger expects.
Changing them produces bytes the chain rejects, or signatures that no
longer verify.

  1) ADDRESS LAYOUT
   - ADDR_TAG_TEST_BIT, ADDR_KIND_*
   - ADDR_SIZE_*

  2) TRANSACTION LAYOUT
   - INPUT_ACCOUNT_MARKER, MAX_TX_INPUTS, MAX_TX_OUTPUTS
   - WITNESS_TAG_*, SIGNATURE_SIZE

  3) FRAGMENT & BLOCK LAYOUT
   - FRAGMENT_TAG_*
   - BLOCK_VERSION_*, BLOCK_PROOF_SIZE_*

  4) KEY DERIVATION
   - HARD_DERIVATION_START, BIP39_PBKDF2_ITERATIONS, BIP39_SEED_SIZE

NOT CONSENSUS (safe to tweak per install):
   bech32 HRPs shown to users, logging/path, CLI defaults.

=============================================================================
'''

import os
import appdirs


# =============================================================================
# 1. MODE & APPLICATION
# =============================================================================
# ---- RUNTIME PROFILE ----
MODE   = os.environ.get("LEDGERKIT_MODE", "dev").strip().lower() or "dev"  # "dev" or "prod"
IS_DEV = (MODE == "dev")  # cached boolean to simplify dev/prod toggles

# ---- APP METADATA ----
APP_NAME      = "LedgerKit"  # display name used for user data directories
APP_AUTHOR    = "TsarStudio"  # vendor string passed into platform dir helpers
USER_LOG_DIR  = appdirs.user_log_dir(APP_NAME, APP_AUTHOR)  # OS-specific log folder


# =============================================================================
# 2. HASHING & KEY SIZES
# =============================================================================
# ---- DIGESTS ----
HASH_SIZE = 32  # Blake2b-256 digest length shared by every id type

# ---- ED25519 ----
PUBLIC_KEY_SIZE      = 32  # compressed Edwards point
SECRET_KEY_SIZE      = 32  # RFC8032 seed
SECRET_KEYPAIR_SIZE  = 64  # seed || public key, as libsodium stores it
EXTENDED_SECRET_SIZE = 64  # kL || kR
CHAIN_CODE_SIZE      = 32  # BIP32 chain code
XPRV_SIZE            = EXTENDED_SECRET_SIZE + CHAIN_CODE_SIZE  # 96
XPUB_SIZE            = PUBLIC_KEY_SIZE + CHAIN_CODE_SIZE  # 64
SIGNATURE_SIZE       = 64  # every supported signature scheme
KES_PUBLIC_KEY_SIZE  = 32  # SumEd25519-12 root key
VRF_PUBLIC_KEY_SIZE  = 32  # Curve25519-2HashDH public key


# =============================================================================
# 3. KEY DERIVATION
# =============================================================================
HARD_DERIVATION_START    = 0x80000000  # indices >= this are private-only
MAX_DERIVATION_INDEX     = 0xFFFFFFFF  # indices are u32
BIP39_PBKDF2_ITERATIONS  = 4096  # root key stretching rounds
BIP39_SEED_SIZE          = XPRV_SIZE  # PBKDF2 output length
BIP39_LANGUAGE           = "english"  # wordlist for mnemonic import


# =============================================================================
# 4. BECH32 HUMAN READABLE PARTS
# =============================================================================
HRP_ED25519_SK        = "ed25519_sk"  # normal secret key
HRP_ED25519_PK        = "ed25519_pk"  # public key
HRP_ED25519E_SK       = "ed25519e_sk"  # extended secret key
HRP_ED25519_SIG       = "ed25519_sig"  # Ed25519 signature
HRP_ED25519BIP32_SIG  = "ed25519bip32_sig"  # Ed25519-Bip32 signature
HRP_XPRV              = "xprv"  # Bip32 private key
HRP_XPUB              = "xpub"  # Bip32 public key
HRP_KES_PK            = "kes25519-12-pk"  # KES public key
HRP_VRF_PK            = "vrf_pk"  # VRF public key
HRP_WITNESS           = "witness"  # serialized witness
ADDRESS_PREFIX_PROD   = "ca"  # default prefix for production addresses
ADDRESS_PREFIX_TEST   = "ta"  # default prefix for test addresses


# =============================================================================
# 5. ADDRESS LAYOUT
# =============================================================================
ADDR_TAG_TEST_BIT  = 0x80  # discrimination bit in the tag byte
ADDR_KIND_MASK     = 0x7F  # remaining bits carry the kind
ADDR_KIND_SINGLE   = 0x03
ADDR_KIND_GROUP    = 0x04
ADDR_KIND_ACCOUNT  = 0x05
ADDR_KIND_MULTISIG = 0x06
ADDR_SIZE_SINGLE   = 1 + PUBLIC_KEY_SIZE
ADDR_SIZE_GROUP    = 1 + 2 * PUBLIC_KEY_SIZE
ADDR_SIZE_ACCOUNT  = 1 + PUBLIC_KEY_SIZE
ADDR_SIZE_MULTISIG = 1 + HASH_SIZE


# =============================================================================
# 6. TRANSACTION LAYOUT
# =============================================================================
# ---- INPUTS & OUTPUTS ----
INPUT_ACCOUNT_MARKER = 0xFF  # index_or_account byte for account inputs
MAX_TX_INPUTS        = 255  # counts are serialized as u8
MAX_TX_OUTPUTS       = 255

# ---- WITNESSES ----
WITNESS_TAG_OLD_UTXO = 0
WITNESS_TAG_UTXO     = 1
WITNESS_TAG_ACCOUNT  = 2

# ---- NUMERIC LIMITS ----
MAX_VALUE            = 0xFFFFFFFFFFFFFFFF  # u64
MAX_U32              = 0xFFFFFFFF
MAX_U128             = (1 << 128) - 1


# =============================================================================
# 7. CERTIFICATES
# =============================================================================
DELEGATION_TAG_NON_DELEGATED = 0
DELEGATION_TAG_FULL          = 1
DELEGATION_RATIO_MIN_POOLS   = 2  # a ratio must split between at least 2 pools
REWARD_ACCOUNT_NONE          = 0
REWARD_ACCOUNT_SINGLE        = 1
REWARD_ACCOUNT_MULTI         = 2


# =============================================================================
# 8. FRAGMENTS & BLOCKS
# =============================================================================
# ---- FRAGMENT TAGS ----
FRAGMENT_TAG_INITIAL                = 0
FRAGMENT_TAG_OLD_UTXO_DECLARATION   = 1
FRAGMENT_TAG_TRANSACTION            = 2
FRAGMENT_TAG_OWNER_STAKE_DELEGATION = 3
FRAGMENT_TAG_STAKE_DELEGATION       = 4
FRAGMENT_TAG_POOL_REGISTRATION      = 5
FRAGMENT_TAG_POOL_RETIREMENT        = 6
FRAGMENT_TAG_POOL_UPDATE            = 7
FRAGMENT_TAG_UPDATE_PROPOSAL        = 8
FRAGMENT_TAG_UPDATE_VOTE            = 9
MAX_FRAGMENT_SIZE                   = 0xFFFF  # fragments are u16 length-delimited in blocks

# ---- BLOCK HEADER ----
BLOCK_VERSION_UNSIGNED     = 0  # genesis-style header, no proof
BLOCK_VERSION_BFT          = 1  # leader public key + signature
BLOCK_VERSION_GENESIS_PRAOS = 2  # pool id + VRF proof + KES signature
BLOCK_HEADER_COMMON_SIZE   = 2 + 2 + 4 + 4 + 4 + 4 + HASH_SIZE + HASH_SIZE
BLOCK_PROOF_SIZE_BFT       = PUBLIC_KEY_SIZE + SIGNATURE_SIZE
BLOCK_VRF_PROOF_SIZE       = 96
BLOCK_KES_SIGNATURE_SIZE   = 484
BLOCK_PROOF_SIZE_GENESIS_PRAOS = HASH_SIZE + BLOCK_VRF_PROOF_SIZE + BLOCK_KES_SIGNATURE_SIZE


# =============================================================================
# 9. FEES
# =============================================================================
# Defaults used by tooling only, the ledger settings are authoritative.
DEFAULT_FEE_CONSTANT    = 200_000
DEFAULT_FEE_COEFFICIENT = 50_000
DEFAULT_FEE_CERTIFICATE = 100_000


# =============================================================================
# 10. LOGGING
# =============================================================================
# ---- BASE OUTPUT ----
LOG_PATH             = os.path.join(USER_LOG_DIR, "ledgerkit.log")  # canonical log file path before format-specific override
LOG_SHOW_PROCESS     = False  # include process metadata in log context when True
LOG_PROC_PLACEHOLDER = "-"  # value used when process info is hidden

# ---- MODE PROFILES ----
if IS_DEV:
    # ---- DEV PROFILE ----
    LOG_LEVEL                   = "DEBUG"  # verbose logging for development
    LOG_FORMAT                  = "plain"  # plain text logs ease local debugging
    LOG_TO_CONSOLE              = True  # mirror logs to stderr for dev loops
    LOG_RATE_LIMIT_SECONDS      = 0.0  # disable console throttling in dev
    LOG_FILE_RATE_LIMIT_SECONDS = 0.0  # disable file throttling in dev
    LOG_ROTATE_MAX_BYTES        = 5_000_000  # rollover log files after ~5MB in dev
    LOG_BACKUP_COUNT            = 3  # retain a few rotated dev log files
else:
    # ---- PROD PROFILE ----
    LOG_LEVEL                   = "INFO"  # balanced verbosity for production
    LOG_FORMAT                  = "json"  # JSON logs simplify ingestion in prod
    LOG_TO_CONSOLE              = False  # suppress console spam for daemons
    LOG_RATE_LIMIT_SECONDS      = 2.0  # throttle console spam in prod
    LOG_FILE_RATE_LIMIT_SECONDS = 1.0  # throttle file spam in prod
    LOG_ROTATE_MAX_BYTES        = 10_000_000  # rollover log files after ~10MB in prod
    LOG_BACKUP_COUNT            = 7  # keep more history on production installs

# ---- LOG PATH NORMALIZATION ----
_LOG_BASE = os.path.join(USER_LOG_DIR, "ledgerkit")  # base path used to pick extension
if str(LOG_FORMAT).lower().strip() == "json":
    LOG_PATH = _LOG_BASE + ".jsonl"  # JSON lines extension to aid parsing
else:
    LOG_PATH = _LOG_BASE + ".log"  # plain-text log extension fallback
