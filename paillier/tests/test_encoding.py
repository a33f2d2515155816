"""
Testes para a codificação em ponto fixo e o registro de domínios.
"""

from collections import namedtuple

import numpy as np
import pytest

from paillier.ciphertext_factory import decrypt_and_decode, encode_and_encrypt
from paillier.encoding import (
    Encoded,
    EncodedArray,
    Encoding,
    FloatDomain,
    IntegerDomain,
    NumericDomain,
    float_exponent,
    get_domain,
    register_domain,
    scale_from_integer,
    scale_to_integer,
)
from paillier.encrypted_array import EncryptedArray
from paillier.errors import ConfigurationError, DomainError, KeyMismatchError
from paillier.key_factory import generate_keypair

Measurement = namedtuple("Measurement", ["value", "error"])


class MeasurementDomain(NumericDomain):
    """Valor com incerteza: duas mantissas com o mesmo expoente."""

    size = 2

    def accepts(self, value):
        return isinstance(value, Measurement)

    def natural_exponent(self, value, base):
        return min(float_exponent(float(v), 53, base) for v in value)

    def to_integers(self, value, exponent, base):
        return tuple(scale_to_integer(v, exponent, base) for v in value)

    def from_integers(self, mantissas, exponent, base):
        return Measurement(*(float(scale_from_integer(m, exponent, base)) for m in mantissas))


register_domain(Measurement, MeasurementDomain())


class TestEncoding:
    """Testes da codificação de escalares e arrays"""

    def setup_method(self):
        """Configuração executada antes de cada teste"""
        self.public_key, self.private_key = generate_keypair(128)
        self.float_encoding = Encoding(float, self.public_key)
        self.int_encoding = Encoding(int, self.public_key)

    def test_integer_natural_exponent(self):
        encoded = self.int_encoding.encode(42)
        assert isinstance(encoded, Encoded)
        assert encoded.exponent == 0
        assert encoded.value == 42
        assert encoded.decode() == 42

    def test_float_natural_exponent(self):
        """floor((expoente binário - 53) / log2(16))"""
        # frexp(3.25) = (0.8125, 2) → floor((2 - 53) / 4) = -13
        encoded = self.float_encoding.encode(3.25)
        assert encoded.exponent == -13
        assert encoded.mantissa == int(3.25 * 16 ** 13)
        assert encoded.decode() == 3.25

    def test_float32_uses_24_bit_mantissa(self):
        encoding = Encoding(np.float32, self.public_key)
        encoded = encoding.encode(np.float32(3.25))
        # floor((2 - 24) / 4) = -6
        assert encoded.exponent == -6
        assert encoded.decode() == np.float32(3.25)
        assert isinstance(encoded.decode(), np.float32)

    def test_integers_in_float_encoding_use_exponent_zero(self):
        assert self.float_encoding.encode(7).exponent == 0

    def test_negative_wraparound(self):
        """-5 é guardado como n - 5 e decodificado como -5"""
        encoded = self.int_encoding.encode(-5)
        assert encoded.value == self.public_key.n - 5
        assert encoded.mantissa == -5
        assert encoded.decode() == -5
        assert self.float_encoding.encode(-2.5).decode() == -2.5

    def test_decode_threshold(self):
        n = self.public_key.n
        assert self.int_encoding.decode(n // 2, exponent=0) == n // 2
        assert self.int_encoding.decode(n // 2 + 1, exponent=0) == n // 2 + 1 - n

    def test_explicit_exponent(self):
        encoded = self.float_encoding.encode(1, exponent=-2)
        assert encoded.exponent == -2
        assert encoded.mantissa == 256
        assert encoded.decode() == 1.0

    def test_explicit_exponent_rounds(self):
        encoded = self.float_encoding.encode(0.1, exponent=-1)
        assert encoded.mantissa == 2
        assert encoded.decode() == 0.125

    def test_overflow(self):
        max_int = self.public_key.max_int
        assert self.int_encoding.encode(max_int).decode() == max_int
        with pytest.raises(DomainError):
            self.int_encoding.encode(max_int + 1)
        with pytest.raises(DomainError):
            self.int_encoding.encode(-max_int - 1)

    def test_non_finite_values(self):
        with pytest.raises(DomainError):
            self.float_encoding.encode(float("nan"))
        with pytest.raises(DomainError):
            self.float_encoding.encode(float("inf"))

    def test_unsupported_values(self):
        with pytest.raises(TypeError):
            self.float_encoding.encode("3.25")
        with pytest.raises(TypeError):
            self.float_encoding.encode(1 + 2j)

    def test_invalid_base(self):
        with pytest.raises(ConfigurationError):
            Encoding(float, self.public_key, base=1)

    def test_encoding_requires_public_key(self):
        with pytest.raises(TypeError):
            Encoding(float, self.public_key.n)

    def test_custom_base(self):
        encoding = Encoding(float, self.public_key, base=64)
        encoded = encoding.encode(3.25)
        # floor((2 - 53) / 6) = -9
        assert encoded.exponent == -9
        assert encoded.decode() == 3.25

    def test_decrease_exponent(self):
        encoded = self.float_encoding.encode(1.5)
        lowered = encoded.decrease_exponent_to(encoded.exponent - 2)
        assert lowered.exponent == encoded.exponent - 2
        assert lowered.mantissa == encoded.mantissa * 256
        assert lowered.decode() == 1.5

        with pytest.raises(DomainError):
            encoded.decrease_exponent_to(encoded.exponent + 1)

    def test_negated_encoded(self):
        assert (-self.float_encoding.encode(1.5)).decode() == -1.5

    def test_check_compatible(self):
        other_public, _ = generate_keypair(128)
        with pytest.raises(KeyMismatchError):
            self.float_encoding.check_compatible(Encoding(float, other_public))
        with pytest.raises(DomainError):
            self.float_encoding.check_compatible(Encoding(float, self.public_key, base=2))
        self.float_encoding.check_compatible(self.int_encoding)

    def test_encoding_equality(self):
        assert self.float_encoding == Encoding(float, self.public_key)
        assert self.float_encoding != self.int_encoding
        assert self.float_encoding != Encoding(float, self.public_key, base=8)


class TestEncodedArray:
    """Testes da codificação de coleções com expoente compartilhado"""

    def setup_method(self):
        """Configuração executada antes de cada teste"""
        self.public_key, self.private_key = generate_keypair(128)
        self.float_encoding = Encoding(float, self.public_key)

    def test_shared_exponent_is_minimum(self):
        values = [0.5, 1024.0, 3.25]
        encoded = self.float_encoding.encode(values)
        expected = min(self.float_encoding.natural_exponent(v) for v in values)

        assert isinstance(encoded, EncodedArray)
        assert encoded.shape == (3,)
        assert encoded.exponent == expected
        np.testing.assert_array_equal(encoded.decode(), values)

    def test_preserves_shape_and_dtype(self):
        encoding = Encoding(np.float32, self.public_key)
        values = np.array([[0.0, 1.5], [-2.25, 8.0]], dtype=np.float32)
        decoded = encoding.encode(values).decode()

        assert decoded.shape == (2, 2)
        assert decoded.dtype == np.float32
        np.testing.assert_array_equal(decoded, values)

    def test_integer_array(self):
        encoding = Encoding(np.int32, self.public_key)
        decoded = encoding.encode(np.array([-3, 0, 7], dtype=np.int32)).decode()
        assert decoded.dtype == np.int32
        np.testing.assert_array_equal(decoded, [-3, 0, 7])

    def test_python_int_array_keeps_precision(self):
        encoding = Encoding(int, self.public_key)
        big = 2 ** 80 + 1
        decoded = encoding.encode([big, -big]).decode()
        assert list(decoded) == [big, -big]

    def test_mantissas_and_negation(self):
        encoded = self.float_encoding.encode([1.0, -2.0])
        negated = -encoded
        np.testing.assert_array_equal(negated.decode(), [-1.0, 2.0])
        # 1.0 e -2.0 compartilham o expoente -13
        assert list(encoded.mantissas()) == [16 ** 13, -2 * 16 ** 13]

    def test_decrease_exponent(self):
        encoded = self.float_encoding.encode([1.0, 2.5])
        lowered = encoded.decrease_exponent_to(encoded.exponent - 1)
        assert lowered.exponent == encoded.exponent - 1
        np.testing.assert_array_equal(lowered.decode(), [1.0, 2.5])

    def test_rejects_string_arrays(self):
        with pytest.raises(TypeError):
            self.float_encoding.encode(np.array(["a", "b"]))


class TestDomainRegistry:
    """Testes do registro de domínios numéricos"""

    def setup_method(self):
        """Configuração executada antes de cada teste"""
        self.public_key, self.private_key = generate_keypair(256)
        self.encoding = Encoding(Measurement, self.public_key)

    def test_builtin_domains(self):
        assert isinstance(get_domain(float), FloatDomain)
        assert isinstance(get_domain(int), IntegerDomain)
        assert get_domain(np.float16).mantissa_bits == 11
        assert get_domain(np.float32).mantissa_bits == 24
        assert get_domain(np.float64).mantissa_bits == 53
        assert get_domain(np.dtype("float32")) is get_domain(np.float32)

    def test_unregistered_type(self):
        with pytest.raises(TypeError):
            get_domain(str)
        with pytest.raises(TypeError):
            register_domain(str, object())

    def test_composite_encode_decode(self):
        value = Measurement(1.5, 0.25)
        encoded = self.encoding.encode(value)

        assert isinstance(encoded, EncodedArray)
        assert encoded.shape == (2,)
        assert encoded.decode() == value

    def test_composite_array(self):
        values = [Measurement(1.5, 0.25), Measurement(-2.0, 0.5)]
        encoded = self.encoding.encode(values)

        assert encoded.shape == (2, 2)
        decoded = encoded.decode()
        assert list(decoded) == values

    def test_composite_encrypted_addition(self):
        """Domínios novos funcionam sem alterar as camadas de criptografia"""
        encrypted = encode_and_encrypt(Measurement(1.5, 0.25), self.encoding)
        assert isinstance(encrypted, EncryptedArray)

        total = encrypted + Measurement(0.5, 0.25)
        assert decrypt_and_decode(self.private_key, total) == Measurement(2.0, 0.5)

        doubled = encrypted * 2
        assert decrypt_and_decode(self.private_key, doubled) == Measurement(3.0, 0.5)

    def test_composite_sum(self):
        values = [Measurement(1.0, 0.5), Measurement(2.0, 0.25), Measurement(0.5, 0.25)]
        encrypted = encode_and_encrypt(values, self.encoding)
        assert encrypted.shape == (3, 2)

        total = encrypted.sum()
        assert total.shape == (2,)
        assert decrypt_and_decode(self.private_key, total) == Measurement(3.5, 1.0)

    def test_composite_indexing_keeps_components(self):
        """Indexar um array composto retorna valores completos"""
        values = [Measurement(1.5, 0.25), Measurement(-2.0, 0.5)]
        encrypted = encode_and_encrypt(values, self.encoding)

        assert len(encrypted) == 2
        second = encrypted[1]
        assert isinstance(second, EncryptedArray)
        assert second.shape == (2,)
        assert decrypt_and_decode(self.private_key, second) == values[1]
        assert list(decrypt_and_decode(self.private_key, encrypted[-1:])) == [values[1]]

        items = [decrypt_and_decode(self.private_key, item) for item in encrypted]
        assert items == values

    def test_single_composite_value_cannot_be_split(self):
        encrypted = encode_and_encrypt(Measurement(1.5, 0.25), self.encoding)

        with pytest.raises(TypeError):
            encrypted[0]
        with pytest.raises(TypeError):
            len(encrypted)
        with pytest.raises(TypeError):
            list(encrypted)
