"""
Project-wide immutable parameters for the pass claim.

These values define the public rules of the claim and the reveal.
The leaf encoding is part of the published commitment: any off-chain
tree builder MUST reproduce it byte for byte.
"""

# Total units that can ever be issued
CAPACITY = 400

# Leaf = sha256(address || LEAF_SEPARATOR || allowance as ALLOWANCE_BYTES big-endian)
LEAF_SEPARATOR = b"_"
ALLOWANCE_BYTES = 32

# 0x-prefixed addresses are left-padded to this width
HEX_ADDRESS_BYTES = 20

# Delegation lookup parameters passed through to the directory
PASS_ID = "0x0000000000000000000000000000000000000000"
DELEGATION_MIN_COUNT = 1
DELEGATION_INCLUDE_CALLER = True
DELEGATION_INCLUDE_EXPIRED = False

# Randomness request (key hash is the seed handed to the oracle)
ORACLE_KEY_HASH = "0x" + "00" * 32
ORACLE_FEE = 2 * (10**18)  # 2 fee-token units, 18 decimals

# Metadata
BASE_EXTENSION = ".json"
