"""Program-derived address lookup for Token Metadata accounts."""

from __future__ import annotations

from solders.pubkey import Pubkey


TOKEN_METADATA_PROGRAM_ID = Pubkey.from_string("metaqbxxUerdq28cj1RbAWkYQm3ybzjb6a8bt518x1s")
METADATA_PREFIX = b"metadata"


def find_metadata_address(mint: Pubkey, program_id: Pubkey = TOKEN_METADATA_PROGRAM_ID) -> Pubkey:
    """PDA of ("metadata", program_id, mint); solders searches bumps from 255 down."""

    seeds = [METADATA_PREFIX, bytes(program_id), bytes(mint)]
    address, _bump = Pubkey.find_program_address(seeds, program_id)
    return address
