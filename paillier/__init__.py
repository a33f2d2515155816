# Pacote Paillier

from .constants import PaillierCryptographicParameters
from .errors import (
    ConfigurationError,
    DomainError,
    KeyMismatchError,
    PaillierError,
    ShapeMismatchError,
)
from .keys import PrivateKey, PublicKey
from .key_factory import (
    PaillierKeyFactory,
    create_key_factory,
    generate_keypair,
)
from .encrypted import Encrypted, decrypt, encrypt_raw, obfuscate
from .encoding import (
    Encoded,
    EncodedArray,
    Encoding,
    FloatDomain,
    IntegerDomain,
    NumericDomain,
    get_domain,
    register_domain,
)
from .encrypted_number import EncryptedNumber
from .encrypted_array import EncryptedArray
from .ciphertext_factory import (
    PaillierCiphertextFactory,
    create_ciphertext_factory,
    decrypt_and_decode,
    encode_and_encrypt,
)

__all__ = [
    "PaillierCryptographicParameters",
    "PaillierError",
    "DomainError",
    "KeyMismatchError",
    "ShapeMismatchError",
    "ConfigurationError",
    "PublicKey",
    "PrivateKey",
    "PaillierKeyFactory",
    "create_key_factory",
    "generate_keypair",
    "Encrypted",
    "encrypt_raw",
    "decrypt",
    "obfuscate",
    "Encoding",
    "Encoded",
    "EncodedArray",
    "NumericDomain",
    "IntegerDomain",
    "FloatDomain",
    "register_domain",
    "get_domain",
    "EncryptedNumber",
    "EncryptedArray",
    "PaillierCiphertextFactory",
    "create_ciphertext_factory",
    "encode_and_encrypt",
    "decrypt_and_decode",
]
