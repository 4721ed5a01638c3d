#!/usr/bin/env python3
"""
Example: deploy an account with a custom transaction script, then fund a
second account from it with a P2ID note.
"""
import sys
import logging

from notelayer_sdk import (
    AccountId, FungibleAsset, InMemoryLedger, NoteClient, TransactionRequestBuilder,
    TransactionScript,
)

logging.basicConfig(level=logging.INFO)

DEPLOY_SCRIPT = """
begin
    call.::increment_nonce
end
"""


def main():
    faucet_id = AccountId.from_hex("0xd8e3fa793ea82360734ec91a98e798")
    alice = AccountId.from_hex("0x1a2b3c4d5e6f701000000000000000")
    bob = AccountId.from_hex("0x2b3c4d5e6f70819000000000000100")

    ledger = InMemoryLedger()
    client = NoteClient(ledger, poll_interval=0.1, max_wait=10)

    # a path on the command line replaces the inline deploy script
    if len(sys.argv) > 1:
        script = TransactionScript.from_file(sys.argv[1])
    else:
        script = TransactionScript.from_source(DEPLOY_SCRIPT)

    tx, block = client.deploy(alice, script)
    print(f"Deployed {alice} in block {block} ({tx})")

    ledger.fund(alice, FungibleAsset.new(faucet_id, 100))
    note = client.build_p2id_note(alice, bob, [FungibleAsset.new(faucet_id, 40)])
    tx, block = client.submit_and_wait(alice, TransactionRequestBuilder().own_output_notes([note]).build())
    print(f"P2ID note {note.id} created in block {block}")

    tx, block = client.submit_and_wait(
        bob, TransactionRequestBuilder().unauthenticated_input_notes([(note, None)]).build()
    )
    print(f"Bob consumed the note in block {block}")
    print(f"Alice: {ledger.balance(alice, faucet_id)}, Bob: {ledger.balance(bob, faucet_id)}")


if __name__ == "__main__":
    main()
