#!/usr/bin/env python3
"""
cryptocond Example - Escrow Create and Finish

This example walks a conditional escrow from creation to finish: a
password-derived condition is attached to EscrowCreate, and the same
password (plus the escrow owner's account as pepper) later regenerates
the fulfillment for EscrowFinish.

Run with: python examples/escrow_condition_example.py
"""

import json
from typing import Any, Dict

from cryptocond import (
    build_condition,
    fulfillment_from_preimage_hex,
    verify_fulfillment,
    verify_preimage,
)


OWNER = "rHb9CJAWyB4rj91VRWn96DkukG4bwdtyTh"
DESTINATION = "rPT1Sjq2YGrBMTttX4GZHjKu9dyfzbpAYe"


def escrow_create(condition_hex: str, amount_drops: int) -> Dict[str, Any]:
    """
    Assemble an EscrowCreate transaction.

    In production this would be signed and submitted to a ledger node.
    """
    return {
        "TransactionType": "EscrowCreate",
        "Account": OWNER,
        "Destination": DESTINATION,
        "Amount": str(amount_drops),
        "Condition": condition_hex,
    }


def escrow_finish(condition_hex: str, fulfillment_hex: str, fee_drops: int) -> Dict[str, Any]:
    """Assemble the EscrowFinish that releases the funds."""
    return {
        "TransactionType": "EscrowFinish",
        "Account": DESTINATION,
        "Owner": OWNER,
        "OfferSequence": 7,
        "Condition": condition_hex,
        "Fulfillment": fulfillment_hex,
        "Fee": str(fee_drops),
    }


def main():
    print("=" * 70)
    print("cryptocond - Conditional Escrow Example")
    print("=" * 70)

    # =========================================================
    # STEP 1: Derive the condition from a password
    # =========================================================
    print("\n[1] Deriving condition from password...")

    password = "correct horse battery staple"
    created = build_condition(password=password, pepper=OWNER)

    print(f"    Condition:  {created.condition_hex}")
    print(f"    Salt:       {created.salt_metadata.value} (permanent, rounds={created.salt_metadata.rounds})")
    print(f"    Finish fee: {created.fee_drops} drops")

    create_tx = escrow_create(created.condition_hex, 25_000_000)
    print(json.dumps(create_tx, indent=2))

    # =========================================================
    # STEP 2: Later, regenerate the secret from the password alone
    # =========================================================
    print("\n[2] Regenerating the secret from the password...")

    again = build_condition(password=password, pepper=OWNER)
    if not verify_preimage(again.preimage_hex, create_tx["Condition"]):
        print("    ✗ Regenerated secret does not open this escrow")
        return

    print("    ✓ Regenerated secret matches the published condition")

    # =========================================================
    # STEP 3: Finish the escrow
    # =========================================================
    print("\n[3] Building EscrowFinish...")

    fulfillment = fulfillment_from_preimage_hex(again.preimage_hex)
    finish_tx = escrow_finish(create_tx["Condition"], fulfillment.fulfillment_hex, fulfillment.fee_drops)
    print(json.dumps(finish_tx, indent=2))

    # =========================================================
    # STEP 4: A wrong password does not open the escrow
    # =========================================================
    print("\n[4] Trying a wrong password...")

    wrong = build_condition(password="correct horse battery stapler", pepper=OWNER)
    opened = verify_fulfillment(wrong.fulfillment_hex, create_tx["Condition"])
    print(f"    {'✗ opened (unexpected)' if opened else '✓ rejected'}")

    # =========================================================
    # STEP 5: A random secret key
    # =========================================================
    print("\n[5] Random secret key (no password)...")

    random_key = build_condition()
    print(f"    Condition:  {random_key.condition_hex}")
    print(f"    Secret key: {random_key.preimage_hex}")
    print("    Keep the secret key: it cannot be regenerated.")

    print("\n" + "=" * 70)


if __name__ == "__main__":
    main()
