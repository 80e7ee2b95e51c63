"""
Ravencoin node and exchange constants.
"""

# Default mainnet RPC port
MAINNET_RPC_PORT = 8766

# Timeout for RPC calls (seconds)
DEFAULT_RPC_TIMEOUT = 30.0

# Wallet transaction categories reported by gettransaction
CATEGORY_SEND = "send"
CATEGORY_RECEIVE = "receive"

# Accept any incoming asset
ASSET_WILDCARD = "*"

# Node error codes
RPC_INVALID_ADDRESS_OR_KEY = -5  # unknown txid / address
