"""RSA signing of compiled program hashes for the Cascade logbook.

A logbook entry records the canonical SHA-256 of a ``.cascade.json`` bitcode
file. The signature covers that digest together with the bitcode format
version, so a signature made for one format cannot vouch for another.
"""
from __future__ import annotations

from pathlib import Path

from ..constants import CASCADE_VERSION, KEY_FILE, PUB_FILE

try:  # pragma: no cover - optional dependency
    from cryptography.exceptions import InvalidSignature
    from cryptography.hazmat.primitives import hashes, serialization
    from cryptography.hazmat.primitives.asymmetric import padding, rsa
except ImportError:  # pragma: no cover
    rsa = padding = hashes = serialization = InvalidSignature = None


def _require_cryptography():
    if rsa is None:
        raise RuntimeError(
            "Cryptography support is unavailable; install the 'cryptography' package"
        )


def _pss():
    return padding.PSS(mgf=padding.MGF1(hashes.SHA256()), salt_length=padding.PSS.MAX_LENGTH)


def signing_payload(sha256_hex):
    """Bytes actually signed for a bitcode hash."""
    return f"cascade-bitcode/{CASCADE_VERSION}:{sha256_hex}".encode()


def _write_keypair(private_key, key_path, pub_path):
    key_path.write_bytes(
        private_key.private_bytes(
            encoding=serialization.Encoding.PEM,
            format=serialization.PrivateFormat.PKCS8,
            encryption_algorithm=serialization.NoEncryption(),
        )
    )
    pub_path.write_bytes(
        private_key.public_key().public_bytes(
            encoding=serialization.Encoding.PEM,
            format=serialization.PublicFormat.SubjectPublicKeyInfo,
        )
    )


def ensure_keypair(key_file=KEY_FILE, pub_file=PUB_FILE):
    """Load the logbook signing key, creating the pair on first use."""
    _require_cryptography()

    key_path = Path(key_file)
    if key_path.exists():
        return serialization.load_pem_private_key(key_path.read_bytes(), password=None)

    print("🔐 Generating new Cascade RSA keypair ...")
    private_key = rsa.generate_private_key(public_exponent=65537, key_size=2048)
    _write_keypair(private_key, key_path, Path(pub_file))
    print(f"  ✓ Keys written to {key_file}, {pub_file}")
    return private_key


def sign_hash(sha256_hex, key_file=KEY_FILE, pub_file=PUB_FILE):
    """Sign a bitcode hash for the logbook; returns the signature as hex."""
    private_key = ensure_keypair(key_file, pub_file)
    signature = private_key.sign(signing_payload(sha256_hex), _pss(), hashes.SHA256())
    return signature.hex()


def verify_signature(sha256_hex, signature_hex, pub_file=PUB_FILE):
    """Check a logbook signature against the Cascade public key.

    ``sha256_hex`` is the canonical bitcode hash stored in the logbook entry.
    Returns False for a wrong key, a hash signed under another bitcode version
    or a signature that is not valid hex.
    """
    _require_cryptography()

    public_key = serialization.load_pem_public_key(Path(pub_file).read_bytes())
    try:
        public_key.verify(
            bytes.fromhex(signature_hex), signing_payload(sha256_hex), _pss(), hashes.SHA256()
        )
    except (InvalidSignature, ValueError):
        return False
    return True


__all__ = [
    "ensure_keypair",
    "sign_hash",
    "signing_payload",
    "verify_signature",
]
