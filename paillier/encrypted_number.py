"""
EncryptedNumber: um Encrypted acompanhado de sua codificação e expoente.

Soma e subtração alinham automaticamente os expoentes: o operando de
expoente maior (escala mais grossa) é multiplicado homomorficamente por
base^Δ, de modo que o resultado fica com min(expoente1, expoente2).
"""

from numbers import Number

import numpy as np

from .encoding import Encoded, EncodedArray, Encoding
from .encrypted import Encrypted, raw_add, raw_mul
from .errors import DomainError, KeyMismatchError
from .keys import PrivateKey, PublicKey


class EncryptedNumber:
    """
    Número criptografado com codificação conhecida.

    Args:
        encrypted: Ciphertext de baixo nível
        encoding: Codificação usada para produzir o texto claro
        exponent: Expoente da escala (base^exponent)

    Exemplo:
        encoding = Encoding(float, public_key)
        enc = encode_and_encrypt(3.25, encoding)
        decrypt_and_decode(private_key, enc)  # 3.25
    """

    __array_ufunc__ = None

    def __init__(self, encrypted: Encrypted, encoding: Encoding, exponent: int):
        if not isinstance(encrypted, Encrypted):
            raise TypeError("encrypted deve ser um Encrypted")
        if encrypted.public_key != encoding.public_key:
            raise KeyMismatchError("Ciphertext e codificação usam chaves públicas diferentes")
        self.encrypted = encrypted
        self.encoding = encoding
        self.exponent = exponent

    @classmethod
    def from_encoded(cls, encoded: Encoded, rng=None) -> "EncryptedNumber":
        """Criptografa (com aleatoriedade nova) um número já codificado."""
        public_key = encoded.public_key
        ciphertext = public_key.raw_encrypt(encoded.value, rng=rng)
        return cls(Encrypted(ciphertext, public_key, is_obfuscated=True), encoded.encoding, encoded.exponent)

    @property
    def public_key(self) -> PublicKey:
        return self.encrypted.public_key

    @property
    def ciphertext(self) -> int:
        return self.encrypted.ciphertext

    @property
    def is_obfuscated(self) -> bool:
        return self.encrypted.is_obfuscated

    def _new(self, ciphertext: int, exponent: int) -> "EncryptedNumber":
        return EncryptedNumber(Encrypted(ciphertext, self.public_key), self.encoding, exponent)

    def decrease_exponent_to(self, new_exponent: int) -> "EncryptedNumber":
        """
        Retorna um EncryptedNumber de mesmo valor e expoente menor.

        Multiplica homomorficamente o texto claro por base^(exponent - new_exponent).
        Overflow do texto claro não é detectável aqui.

        Raises:
            DomainError: Se new_exponent > exponent
        """
        if new_exponent > self.exponent:
            raise DomainError(
                f"Novo expoente {new_exponent} deve ser menor que o atual {self.exponent}"
            )
        if new_exponent == self.exponent:
            return self
        factor = self.encoding.base ** (self.exponent - new_exponent)
        ciphertext = raw_mul(self.ciphertext, factor, self.public_key.nsquare)
        return self._new(ciphertext, new_exponent)

    def __add__(self, other):
        if isinstance(other, EncryptedNumber):
            return self._add_encrypted(other)
        if isinstance(other, Encoded):
            return self._add_encoded(other)
        if isinstance(other, (np.ndarray, list, tuple, EncodedArray)):
            return self._broadcast() + other
        if self.encoding.is_composite(other) or not isinstance(other, Number):
            return NotImplemented
        return self._add_encoded(self.encoding.encode(other))

    def __radd__(self, other):
        return self.__add__(other)

    def _add_encrypted(self, other: "EncryptedNumber") -> "EncryptedNumber":
        if self.public_key != other.public_key:
            raise KeyMismatchError(
                "Tentativa de somar números criptografados com chaves públicas diferentes"
            )
        self.encoding.check_compatible(other.encoding)

        a, b = self, other
        if a.exponent > b.exponent:
            a = a.decrease_exponent_to(b.exponent)
        elif a.exponent < b.exponent:
            b = b.decrease_exponent_to(a.exponent)

        ciphertext = raw_add(a.ciphertext, b.ciphertext, self.public_key.nsquare)
        return self._new(ciphertext, a.exponent)

    def _add_encoded(self, encoded: Encoded) -> "EncryptedNumber":
        self.encoding.check_compatible(encoded.encoding)

        a, b = self, encoded
        if a.exponent > b.exponent:
            a = a.decrease_exponent_to(b.exponent)
        elif a.exponent < b.exponent:
            b = b.decrease_exponent_to(a.exponent)

        # Sem ofuscar: isso só deve ocorrer antes de sair do processo
        encrypted_scalar = self.public_key.raw_encrypt(b.value, r_value=1)
        ciphertext = raw_add(a.ciphertext, encrypted_scalar, self.public_key.nsquare)
        return self._new(ciphertext, a.exponent)

    def __mul__(self, other):
        if isinstance(other, EncryptedNumber):
            raise TypeError("Multiplicação entre dois ciphertexts não é suportada pelo Paillier")
        if isinstance(other, (np.ndarray, list, tuple)):
            return self._broadcast() * other
        if isinstance(other, Encoded):
            encoded = other
        elif isinstance(other, Number) and not self.encoding.is_composite(other):
            encoded = self.encoding.encode(other)
        else:
            return NotImplemented

        self.encoding.check_compatible(encoded.encoding)
        ciphertext = raw_mul(self.ciphertext, encoded.mantissa, self.public_key.nsquare)
        return self._new(ciphertext, self.exponent + encoded.exponent)

    def __rmul__(self, other):
        return self.__mul__(other)

    def __truediv__(self, scalar):
        if not isinstance(scalar, Number):
            return NotImplemented
        return self.__mul__(1 / scalar)

    def __neg__(self):
        return self * -1

    def __sub__(self, other):
        if isinstance(other, (list, tuple)):
            other = np.asarray(other)
        return self + (-other)

    def __rsub__(self, other):
        return (-self) + other

    def _broadcast(self):
        from .encrypted_array import EncryptedArray

        return EncryptedArray.from_encrypted_number(self)

    def obfuscate(self, rng=None) -> "EncryptedNumber":
        """Re-aleatoriza o ciphertext (no próprio objeto) e o retorna."""
        self.encrypted.obfuscate(rng)
        return self

    def decrypt(self, private_key: PrivateKey) -> Encoded:
        """Decripta para o Encoded correspondente, sem decodificar."""
        if private_key.public_key != self.public_key:
            raise KeyMismatchError("Número criptografado com outra chave pública")
        return Encoded(self.encoding, private_key.raw_decrypt(self.ciphertext), self.exponent)

    def decrypt_and_decode(self, private_key: PrivateKey):
        """Decripta e decodifica usando a codificação e o expoente armazenados."""
        return self.decrypt(private_key).decode()

    def __repr__(self):
        return "<EncryptedNumber exponent={} obfuscated={} {!r}>".format(
            self.exponent, self.is_obfuscated, self.encoding
        )
