"""
RSA-PSS signing of translator responses.
"""
import base64
import json
import logging
from datetime import date, datetime, time, timezone
from decimal import Decimal
from typing import Any, Dict, Optional

from cryptography.exceptions import InvalidSignature
from cryptography.hazmat.primitives import hashes, serialization
from cryptography.hazmat.primitives.asymmetric import padding, rsa

from .config import TranslatorSettings
from .utils.timestamp_utils import to_iso

logger = logging.getLogger(__name__)

SIGNATURE_TYPE = "RsaSignature2018"
DEFAULT_KEY_SIZE = 4096

_PSS = padding.PSS(mgf=padding.MGF1(hashes.SHA256()), salt_length=padding.PSS.MAX_LENGTH)


def _json_default(value: Any) -> Any:
    # zeep hands back xsd:decimal, xsd:date and xsd:time values as Python types
    if isinstance(value, datetime):
        return to_iso(value)
    if isinstance(value, Decimal):
        return int(value) if value.is_finite() and value == value.to_integral_value() else float(value)
    if isinstance(value, (date, time)):
        return value.isoformat()
    raise TypeError(f"Object of type {type(value).__name__} is not JSON serializable")


def to_jsonable(payload: Any) -> Any:
    """Plain JSON types only, with datetimes rendered the way they are signed."""
    return json.loads(json.dumps(payload, default=_json_default))


def canonical_json(payload: Any) -> str:
    """Sorted keys, non-ASCII escaped as \\uXXXX, ``": "`` after keys."""
    return json.dumps(payload, sort_keys=True, ensure_ascii=True, separators=(",", ": "),
                      default=_json_default)


def created_now() -> str:
    return datetime.now(timezone.utc).replace(microsecond=0).isoformat()


class Signer:
    """Signs payloads with a private RSA key."""

    def __init__(self, private_key: rsa.RSAPrivateKey, domain: str):
        self.private_key = private_key
        self.domain = domain

    @classmethod
    def from_pem(cls, pem: bytes, domain: str) -> "Signer":
        key = serialization.load_pem_private_key(pem, password=None)
        if not isinstance(key, rsa.RSAPrivateKey):
            raise ValueError("Signing key is not an RSA private key")
        return cls(key, domain)

    @classmethod
    def generate(cls, domain: str, key_size: int = DEFAULT_KEY_SIZE) -> "Signer":
        return cls(rsa.generate_private_key(public_exponent=65537, key_size=key_size), domain)

    @property
    def creator(self) -> str:
        return f"https://{self.domain}/translator/v1/public.key"

    def public_key_pem(self) -> str:
        return self.private_key.public_key().public_bytes(
            encoding=serialization.Encoding.PEM,
            format=serialization.PublicFormat.SubjectPublicKeyInfo,
        ).decode("ascii")

    def sign(self, payload: Dict[str, Any], created: Optional[str] = None) -> Dict[str, str]:
        """Sign payload plus its creation time under ``__signed__``.

        Returns:
            Signature object with type, created, creator and signatureValue
        """
        created = created or created_now()
        message = canonical_json({**payload, "__signed__": created}).encode("utf-8")
        value = self.private_key.sign(message, _PSS, hashes.SHA256())
        return {
            "type": SIGNATURE_TYPE,
            "created": created,
            "creator": self.creator,
            "signatureValue": base64.b64encode(value).decode("utf-8"),
        }


def verify(payload: Dict[str, Any], signature_value: str, public_key_pem: str) -> bool:
    """Check a base64 signature over the canonical form of payload.

    The payload must already include ``__signed__``.
    """
    try:
        public_key = serialization.load_pem_public_key(public_key_pem.encode("utf-8"))
        public_key.verify(
            base64.b64decode(signature_value),
            canonical_json(payload).encode("utf-8"),
            _PSS,
            hashes.SHA256(),
        )
    except (InvalidSignature, ValueError, TypeError) as e:
        logger.debug(f"🔍 Signature verification failed: {e}")
        return False
    return True


def load_signer(settings: TranslatorSettings) -> Signer:
    """Signer from PRIVATE_KEY_PATH, or a freshly generated key pair."""
    if settings.private_key_path:
        with open(settings.private_key_path, "rb") as f:
            signer = Signer.from_pem(f.read(), settings.domain)
        logger.info(f"🔑 Loaded signing key from {settings.private_key_path}")
        return signer

    logger.warning("⚠️ PRIVATE_KEY_PATH not set, generating an RSA key pair")
    return Signer.generate(settings.domain)
