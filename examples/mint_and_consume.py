#!/usr/bin/env python3
"""
Example: mint tokens from a network faucet into an account.

Runs against the in-memory ledger by default. Set NETWORK (and optionally
NOTELAYER_RPC_URL) to talk to a real node instead.
"""
import os
import logging

from notelayer_sdk import AccountId, InMemoryLedger, NoteClient, NoteLayerError

# Configure logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


def main():
    """
    Demonstrate the issuance flow.

    This example shows how to:
    1. Build a P2ID note for the recipient
    2. Build a MINT note coupled to it by recipient digest
    3. Submit both transactions and wait for each to be committed
    """
    NETWORK = os.environ.get("NETWORK")
    FAUCET_ID = AccountId.from_hex(os.environ.get("FAUCET_ID", "0xd8e3fa793ea82360734ec91a98e798"))
    OWNER_ID = AccountId.from_hex(os.environ.get("OWNER_ID", "0x3c4d5e6f7081921000000000000200"))
    TARGET_ID = AccountId.from_hex(os.environ.get("TARGET_ID", "0x1a2b3c4d5e6f701000000000000000"))
    AMOUNT = int(os.environ.get("AMOUNT", "50"))

    print("\n=== NoteLayer SDK Mint Example ===\n")

    if NETWORK:
        client = NoteClient.from_network(NETWORK)
    else:
        ledger = InMemoryLedger()
        ledger.register_faucet(FAUCET_ID, OWNER_ID, max_supply=1_000_000)
        client = NoteClient(ledger, poll_interval=0.1, max_wait=10)

    with client:
        print(f"Latest block: {client.sync().block_num}")

        try:
            result = client.mint_and_consume(FAUCET_ID, OWNER_ID, TARGET_ID, AMOUNT, aux=27)
        except NoteLayerError as e:
            print(f"Mint failed: {e}")
            return

        print(f"MINT transaction:    {result.mint_transaction_id} (block {result.mint_block_num})")
        print(f"Consume transaction: {result.consume_transaction_id} (block {result.consume_block_num})")
        explorer = client.explorer_url(result.consume_transaction_id)
        if explorer:
            print(f"Explorer: {explorer}")
        if isinstance(client.ledger, InMemoryLedger):
            print(f"Balance: {client.ledger.balance(TARGET_ID, FAUCET_ID)}")


if __name__ == "__main__":
    main()
