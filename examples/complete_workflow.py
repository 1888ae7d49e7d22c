"""
examples/complete_workflow.py
End-to-end example: Issue → Sign → Disclose → Verify
"""
import json
import logging
import sys
import os

# Add src to path for development
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', 'src'))

from zero_reveal_sd import (
    EcdsaMultikey,
    SignCryptosuite,
    DiscloseCryptosuite,
    VerifyCryptosuite,
    ConfirmCryptosuite,
    parse_base_proof_value,
    parse_derived_proof_value,
    proofs
)

logging.basicConfig(level=logging.INFO)

# ============================================================
# STEP 1: MANUFACTURER - Create Battery Passport Credential
# ============================================================

battery_passport = {
    "@context": ["https://www.w3.org/ns/credentials/v2"],
    "type": ["VerifiableCredential", "BatteryPassportCredential"],
    "issuer": "did:web:eurocell.example",
    "validFrom": "2025-03-15T00:00:00Z",
    "credentialSubject": {
        "id": "urn:battery:BATT-2025-EU-001234",
        "manufacturerName": "EuroCell GmbH",
        "manufacturingPlace": "Berlin, Germany",
        "batteryCategory": "EV",
        "batteryChemistry": "NMC811",
        "carbonFootprint": {
            "batteryCarbonFootprint": 61.5,
            "carbonFootprintPerformanceClass": "B"
        },
        "materialComposition": {
            "criticalRawMaterials": ["lithium", "cobalt", "nickel"],
            "recycledContentCobalt": 16.0,
            "hazardousSubstances": {
                "containsCadmium": False,
                "containsLead": False
            }
        },
        "performanceAndDurability": {
            "ratedCapacity": 75.0,
            "stateOfHealth": 98.5
        }
    }
}

print("=" * 60)
print("ZERO-REVEAL-SD: Selective Disclosure for Product Passports")
print("=" * 60)
print()

# ============================================================
# STEP 2: Sign with a base proof (issuer and product id mandatory)
# ============================================================

issuer_key = EcdsaMultikey.generate(
    id="did:web:eurocell.example#key-1",
    controller="did:web:eurocell.example"
)

signed = proofs.sign(
    battery_passport,
    SignCryptosuite(mandatory_pointers=["/issuer", "/credentialSubject/id"]),
    issuer_key
)
base = parse_base_proof_value(signed["proof"])

print(f"✓ Issuer key: {issuer_key.public_key_multibase}")
print(f"✓ Base proof: {len(base.signatures)} statement signatures")
print(f"✓ Mandatory pointers: {base.mandatory_pointers}")

# Key storage is up to the application; a dict stands in for a DID resolver
verification_methods = {issuer_key.id: issuer_key.to_verification_method()}
resolve = verification_methods.__getitem__

confirmed = proofs.verify(signed, ConfirmCryptosuite(), resolve)
print(f"✓ Issuer confirmed base proof: {confirmed}")

# ============================================================
# STEP 3: HOLDER - Disclose carbon footprint to a regulator
# ============================================================

print()
print("-" * 60)
print("REGULATOR DISCLOSURE")
print("-" * 60)

revealed = proofs.derive(
    signed,
    DiscloseCryptosuite(selective_pointers=[
        "/credentialSubject/carbonFootprint",
        "/credentialSubject/batteryChemistry"
    ])
)
derived = parse_derived_proof_value(revealed["proof"])

print(f"\n✓ Derived proof generated:")
print(f"  - Statements signed: {len(derived.signatures)}")
print(f"  - Mandatory indexes: {derived.mandatory_indexes}")
print(f"  - Blank node labels: {len(derived.label_map)}")
print("\nRevealed document:")
print(json.dumps({k: v for k, v in revealed.items() if k != "proof"}, indent=2))

# ============================================================
# STEP 4: VERIFIER - Verify the disclosure offline
# ============================================================

print()
print("-" * 60)
print("OFFLINE VERIFICATION")
print("-" * 60)

is_valid = proofs.verify(revealed, VerifyCryptosuite(), resolve)
print(f"\n✓ Derived proof valid: {is_valid}")

revealed["credentialSubject"]["carbonFootprint"]["batteryCarbonFootprint"] = 42.0
is_tampered_valid = proofs.verify(revealed, VerifyCryptosuite(), resolve)
print(f"✓ Tampered footprint valid: {is_tampered_valid}")

print()
print("=" * 60)
print("COMPLETE WORKFLOW SUCCESSFUL")
print("=" * 60)
