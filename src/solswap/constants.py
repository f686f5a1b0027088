"""Program ids, well-known accounts and numeric constants."""

from solders.pubkey import Pubkey
from spl.token.constants import ASSOCIATED_TOKEN_PROGRAM_ID, TOKEN_PROGRAM_ID, WRAPPED_SOL_MINT

# Native asset
NATIVE_MINT: Pubkey = WRAPPED_SOL_MINT
NATIVE_MINT_STR = str(NATIVE_MINT)
NATIVE_DECIMALS = 9

# Core programs
SYSTEM_PROGRAM = Pubkey.from_string("11111111111111111111111111111111")
TOKEN_PROGRAM = TOKEN_PROGRAM_ID
ASSOCIATED_TOKEN_PROGRAM = ASSOCIATED_TOKEN_PROGRAM_ID
RENT_SYSVAR = Pubkey.from_string("SysvarRent111111111111111111111111111111111")

# SPL token account size, used for rent exemption
TOKEN_ACCOUNT_SIZE = 165
# Rent-exempt minimum for a 165 byte account, used when RPC is unavailable
TOKEN_ACCOUNT_RENT_LAMPORTS = 2_039_280

# Mint layout: decimals byte after mint authority option (36) and supply (8)
MINT_DECIMALS_OFFSET = 44

BPS_DENOMINATOR = 10_000
# Sell-all tolerance, 0.1% expressed per mille
SELL_ALL_TOLERANCE_PER_MILLE = 1

# Pump.fun bonding curve
PUMPFUN_PROGRAM = Pubkey.from_string("6EF8rrecthR5Dkzon8Nwu78hRvfCKubJ14M5uBEwF6P")
PUMPFUN_GLOBAL = Pubkey.from_string("4wTV1YmiEkRvAtNtsSGPtUrqRYQMe5SKy2uB4Jjaxnjf")
PUMPFUN_FEE_RECIPIENT = Pubkey.from_string("CebN5WGQ4jvEPvsVU4EoHEpgzq1VV7AbicfhtW4xC9iM")
PUMPFUN_EVENT_AUTHORITY = Pubkey.from_string("Ce6TQqeHC9p8KetsN6JsjHK7UTZk7nasjjnr7XxXp9F1")

# PumpSwap constant-product pools
PUMPSWAP_PROGRAM = Pubkey.from_string("pAMMBay6oceH9fJKBRHGP5D4bD4sWpmSwMn52FMfXEA")
PUMPSWAP_GLOBAL_CONFIG = Pubkey.from_string("ADyA8hdefvWN2dbGGWFotbzWxrAvLW83WG6QCVXvJKqw")
PUMPSWAP_PROTOCOL_FEE_RECIPIENT = Pubkey.from_string("62qc2CNXwrYqQScmEdiZFFAnJR262PxWEuNQtxfafNgV")
PUMPSWAP_PROTOCOL_FEE_RECIPIENT_ATA = Pubkey.from_string(
    "94qWNrtmfn42h3ZjUZwWvK1MEo9uVmmrBPd2hpNjYDjb"
)
PUMPSWAP_EVENT_AUTHORITY = Pubkey.from_string("GS4CU59F31iL7aR2Q8zVS8DRrcRnXX1yjQ66TqNVQnaR")
PUMPSWAP_BUY_DISCRIMINATOR = bytes([102, 6, 61, 18, 1, 218, 235, 234])
PUMPSWAP_SELL_DISCRIMINATOR = bytes([51, 230, 133, 164, 1, 127, 131, 173])

# Moonshot bonding curve
MOONSHOT_PROGRAM = Pubkey.from_string("MoonCVVNZFSYkqNXP6bxHLPL6QQJiMagDL3qcqUQTrG")
MOONSHOT_DEX_FEE = Pubkey.from_string("3udvfL24waJcLhskRAsStNMoNUvtyXdxrWQz4hgi953N")
MOONSHOT_HELIO_FEE = Pubkey.from_string("5K5RtTWzzLp4P8Npi84ocf7F1vBsAu29N1irG4iiUnzt")
MOONSHOT_CONFIG = Pubkey.from_string("36Eru7v11oU5Pfrojyn5oY3nETA1a1iqsw2WUu6afkM9")

# Raydium LaunchLab
LAUNCHLAB_PROGRAM = Pubkey.from_string("LanMkFSVSncjWqWAM8MUHenZzt9xTcT3DcAp949ZwbF")
LAUNCHLAB_BUY_EXACT_IN_DISCRIMINATOR = bytes([250, 234, 13, 123, 213, 156, 19, 236])
LAUNCHLAB_SELL_EXACT_IN_DISCRIMINATOR = bytes([149, 39, 222, 155, 211, 124, 152, 26])
LAUNCHLAB_FEE_DENOMINATOR = 1_000_000

# Venue HTTP APIs
PUMPFUN_API = "https://frontend-api-v3.pump.fun"
PUMPSWAP_API = "https://swap-api.pump.fun/v1"
MOONSHOT_API = "https://api.moonshot.cc/token/v1/solana"
LAUNCHLAB_API = "https://launch-mint-v1.raydium.io"
RAYDIUM_API = "https://api-v3.raydium.io"
RAYDIUM_TRADE_API = "https://transaction-v1.raydium.io"

# Transaction limits
MAX_TRANSACTION_SIZE = 1232
U64_MAX = 2**64 - 1
