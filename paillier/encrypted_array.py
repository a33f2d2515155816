"""
EncryptedArray: versão vetorial de EncryptedNumber.

Guarda uma única cópia dos metadados compartilhados (chave pública,
codificação e expoente) e um array numpy (dtype object) com os
ciphertexts brutos. Operações com textos claros seguem as regras de
broadcasting do numpy; entre dois EncryptedArray os formatos devem ser
idênticos.
"""

from functools import reduce
from numbers import Number
from typing import Sequence

import numpy as np

from .encoding import Encoded, EncodedArray, Encoding, elementwise, object_array
from .encrypted import Encrypted, raw_add, raw_mul
from .encrypted_number import EncryptedNumber
from .errors import DomainError, KeyMismatchError, ShapeMismatchError
from .keys import PrivateKey, PublicKey


class EncryptedArray:
    """
    Array de ciphertexts com chave, codificação e expoente compartilhados.

    Args:
        ciphertexts: Array (ou lista aninhada) de inteiros em [0, n²)
        public_key: Chave sob a qual todos os ciphertexts foram produzidos
        encoding: Codificação compartilhada
        exponent: Expoente compartilhado
        is_obfuscated: True apenas se todos os elementos estão ofuscados

    Exemplo:
        encoding = Encoding(np.float32, public_key)
        enca = encode_and_encrypt([0.0, 1.2e3, 3.14], encoding)
        decrypt_and_decode(private_key, 2 * enca)
    """

    __array_ufunc__ = None

    def __init__(
        self,
        ciphertexts,
        public_key: PublicKey,
        encoding: Encoding,
        exponent: int,
        is_obfuscated: bool = False,
    ):
        if encoding.public_key != public_key:
            raise KeyMismatchError("Ciphertexts e codificação usam chaves públicas diferentes")
        if isinstance(ciphertexts, np.ndarray) and ciphertexts.dtype == object:
            self.ciphertexts = ciphertexts
        else:
            self.ciphertexts = elementwise(int, np.asarray(ciphertexts, dtype=object))
        self.public_key = public_key
        self.encoding = encoding
        self.exponent = exponent
        self.is_obfuscated = is_obfuscated

    @classmethod
    def from_encoded(cls, encoded: EncodedArray, rng=None) -> "EncryptedArray":
        """Criptografa cada elemento de um EncodedArray com aleatoriedade nova."""
        public_key = encoded.public_key
        ciphertexts = elementwise(lambda m: public_key.raw_encrypt(m, rng=rng), encoded.values)
        return cls(ciphertexts, public_key, encoded.encoding, encoded.exponent, is_obfuscated=True)

    @classmethod
    def from_encrypted_number(cls, number: EncryptedNumber) -> "EncryptedArray":
        """Array de formato () com o ciphertext de `number`, para broadcasting."""
        return cls(
            object_array([number.ciphertext], ()),
            number.public_key,
            number.encoding,
            number.exponent,
            number.is_obfuscated,
        )

    @classmethod
    def from_encrypted_numbers(cls, numbers: Sequence[EncryptedNumber]) -> "EncryptedArray":
        """
        Agrupa EncryptedNumbers em um array 1-D, alinhando os expoentes.

        Raises:
            KeyMismatchError: Se os números usarem chaves diferentes
        """
        numbers = list(numbers)
        if not numbers:
            raise ValueError("É necessário pelo menos um EncryptedNumber")
        first = numbers[0]
        for number in numbers[1:]:
            if number.public_key != first.public_key:
                raise KeyMismatchError("EncryptedNumbers com chaves públicas diferentes")
            first.encoding.check_compatible(number.encoding)

        exponent = min(number.exponent for number in numbers)
        aligned = [number.decrease_exponent_to(exponent) for number in numbers]
        return cls(
            object_array([number.ciphertext for number in aligned], (len(aligned),)),
            first.public_key,
            first.encoding,
            exponent,
            all(number.is_obfuscated for number in aligned),
        )

    # === ESTRUTURA DO ARRAY ===
    @property
    def shape(self):
        return self.ciphertexts.shape

    @property
    def ndim(self) -> int:
        return self.ciphertexts.ndim

    @property
    def size(self) -> int:
        return self.ciphertexts.size

    @property
    def T(self) -> "EncryptedArray":
        return self._new(self.ciphertexts.T, self.exponent, self.is_obfuscated)

    def reshape(self, *shape) -> "EncryptedArray":
        return self._new(self.ciphertexts.reshape(*shape), self.exponent, self.is_obfuscated)

    def __len__(self):
        self._check_not_single_composite()
        return len(self.ciphertexts)

    def __iter__(self):
        for index in range(len(self)):
            yield self[index]

    def __getitem__(self, key):
        if self.encoding.domain.size > 1:
            # Índices se aplicam apenas aos eixos que precedem os componentes
            self._check_not_single_composite()
            if not isinstance(key, tuple):
                key = (key,)
            return self._new(self.ciphertexts[key + (slice(None),)], self.exponent, self.is_obfuscated)

        item = self.ciphertexts[key]
        if isinstance(item, np.ndarray):
            return self._new(item, self.exponent, self.is_obfuscated)
        encrypted = Encrypted(item, self.public_key, self.is_obfuscated)
        return EncryptedNumber(encrypted, self.encoding, self.exponent)

    def _check_not_single_composite(self):
        if self.encoding.domain.size > 1 and self.ndim <= 1:
            raise TypeError("Um único valor de domínio composto não pode ser indexado nem iterado")

    def _new(self, ciphertexts, exponent: int, is_obfuscated: bool = False) -> "EncryptedArray":
        return EncryptedArray(ciphertexts, self.public_key, self.encoding, exponent, is_obfuscated)

    # === ALINHAMENTO DE EXPOENTES ===
    def decrease_exponent_to(self, new_exponent: int) -> "EncryptedArray":
        """
        Retorna um EncryptedArray de mesmos valores e expoente menor.

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
        nsquare = self.public_key.nsquare
        ciphertexts = elementwise(lambda c: raw_mul(c, factor, nsquare), self.ciphertexts)
        return self._new(ciphertexts, new_exponent)

    @staticmethod
    def _align(a, b):
        if a.exponent > b.exponent:
            a = a.decrease_exponent_to(b.exponent)
        elif a.exponent < b.exponent:
            b = b.decrease_exponent_to(a.exponent)
        return a, b

    @staticmethod
    def _broadcast_shape(shape_a, shape_b):
        try:
            return np.broadcast_shapes(shape_a, shape_b)
        except ValueError:
            raise ShapeMismatchError(
                f"Formatos incompatíveis para broadcasting: {shape_a} e {shape_b}"
            ) from None

    def _check_key(self, other):
        if self.public_key != other.public_key:
            raise KeyMismatchError(
                "Tentativa de combinar arrays criptografados com chaves públicas diferentes"
            )
        self.encoding.check_compatible(other.encoding)

    def _to_encoded(self, other):
        """Converte um operando em texto claro para EncodedArray, ou None."""
        if isinstance(other, EncodedArray):
            return other
        if isinstance(other, Encoded):
            return EncodedArray(other.encoding, object_array([other.value], ()), other.exponent)
        if self.encoding.is_composite(other):
            return self.encoding.encode(other)
        if isinstance(other, (list, tuple)) and self.encoding.domain.size > 1:
            return self.encoding.encode_array(other)
        if isinstance(other, (np.ndarray, list, tuple, Number)):
            return self._scalar_encoding().encode_array(other)
        return None

    def _scalar_encoding(self) -> Encoding:
        # Domínios compostos escalam cada componente por um número comum
        if self.encoding.domain.size == 1:
            return self.encoding
        return Encoding(float, self.public_key, self.encoding.base)

    # === OPERAÇÕES HOMOMÓRFICAS ===
    def __add__(self, other):
        if isinstance(other, EncryptedArray):
            if self.shape != other.shape:
                raise ShapeMismatchError(
                    f"Formatos diferentes em soma de arrays criptografados: "
                    f"{self.shape} != {other.shape}"
                )
            return self._add_encrypted(other)
        if isinstance(other, EncryptedNumber):
            return self._add_encrypted(EncryptedArray.from_encrypted_number(other))

        encoded = self._to_encoded(other)
        if encoded is None:
            return NotImplemented
        return self._add_encoded(encoded)

    def __radd__(self, other):
        return self.__add__(other)

    def _add_encrypted(self, other: "EncryptedArray") -> "EncryptedArray":
        self._check_key(other)
        self._broadcast_shape(self.shape, other.shape)
        a, b = self._align(self, other)
        nsquare = self.public_key.nsquare
        ciphertexts = elementwise(
            lambda x, y: raw_add(x, y, nsquare), a.ciphertexts, b.ciphertexts
        )
        return self._new(ciphertexts, a.exponent)

    def _add_encoded(self, encoded: EncodedArray) -> "EncryptedArray":
        self.encoding.check_compatible(encoded.encoding)
        self._broadcast_shape(self.shape, encoded.shape)
        a, b = self._align(self, encoded)
        public_key = self.public_key
        # Textos claros entram sem ofuscação (r = 1)
        nude = elementwise(lambda m: public_key.raw_encrypt(m, r_value=1), b.values)
        ciphertexts = elementwise(
            lambda x, y: raw_add(x, y, public_key.nsquare), a.ciphertexts, nude
        )
        return self._new(ciphertexts, a.exponent)

    def __mul__(self, other):
        if isinstance(other, (EncryptedArray, EncryptedNumber)):
            raise TypeError("Multiplicação entre dois ciphertexts não é suportada pelo Paillier")

        encoded = self._to_encoded(other)
        if encoded is None:
            return NotImplemented
        self.encoding.check_compatible(encoded.encoding)
        self._broadcast_shape(self.shape, encoded.shape)

        nsquare = self.public_key.nsquare
        ciphertexts = elementwise(
            lambda c, m: raw_mul(c, self.encoding.unwrap(m), nsquare),
            self.ciphertexts,
            encoded.values,
        )
        return self._new(ciphertexts, self.exponent + encoded.exponent)

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

    # === REDUÇÕES ===
    def sum(self, axis: int = None):
        """
        Soma homomórfica dos elementos.

        Args:
            axis: None soma todos os elementos e retorna um EncryptedNumber
                (para domínios compostos, soma todos os valores preservando o
                eixo de componentes); um inteiro reduz apenas aquele eixo.

        Returns:
            EncryptedNumber ou EncryptedArray com o mesmo expoente
        """
        nsquare = self.public_key.nsquare
        if axis is None:
            if self.encoding.domain.size > 1:
                return self.reshape(-1, self.encoding.domain.size).sum(axis=0)
            total = reduce(lambda x, y: raw_add(x, y, nsquare), self.ciphertexts.ravel(), 1)
            return EncryptedNumber(Encrypted(total, self.public_key), self.encoding, self.exponent)

        moved = np.moveaxis(self.ciphertexts, axis, 0)
        total = np.ones(moved.shape[1:], dtype=object)
        for row in moved:
            total = elementwise(lambda x, y: raw_add(x, y, nsquare), total, row)
        if total.ndim == 0:
            return EncryptedNumber(Encrypted(total.item(), self.public_key), self.encoding, self.exponent)
        return self._new(total, self.exponent)

    def dot(self, other):
        """Produto escalar com um array em texto claro: sum(self * other)."""
        return (self * other).sum()

    # === OFUSCAÇÃO E DECRIPTAÇÃO ===
    def obfuscate(self, rng=None) -> "EncryptedArray":
        """
        Re-aleatoriza cada ciphertext independentemente e retorna o próprio array.

        Os novos ciphertexts são calculados antes de substituir os atuais.
        """
        public_key = self.public_key
        self.ciphertexts = elementwise(
            lambda c: raw_add(
                c, public_key.obfuscator(public_key.random_obfuscator(rng)), public_key.nsquare
            ),
            self.ciphertexts,
        )
        self.is_obfuscated = True
        return self

    def decrypt(self, private_key: PrivateKey) -> EncodedArray:
        """Decripta para um EncodedArray, sem decodificar."""
        if private_key.public_key != self.public_key:
            raise KeyMismatchError("Array criptografado com outra chave pública")
        values = elementwise(private_key.raw_decrypt, self.ciphertexts)
        return EncodedArray(self.encoding, values, self.exponent)

    def decrypt_and_decode(self, private_key: PrivateKey):
        """Decripta e decodifica para um ndarray com o formato original."""
        return self.decrypt(private_key).decode()

    def print_summary(self):
        """Imprime um resumo do array criptografado."""
        print("=== RESUMO DO ENCRYPTED ARRAY ===")
        print(f"Formato: {self.shape} ({self.size} ciphertexts)")
        print(f"Chave pública: {self.public_key!r}")
        print(f"Codificação: {self.encoding!r}")
        print(f"Expoente compartilhado: {self.exponent}")
        print(f"Status: {'Ofuscado' if self.is_obfuscated else 'NÃO ofuscado'}")
        print("=" * 33)

    def __repr__(self):
        return "<EncryptedArray shape={} exponent={} obfuscated={}>".format(
            self.shape, self.exponent, self.is_obfuscated
        )
