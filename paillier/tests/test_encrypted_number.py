"""
Testes para EncryptedNumber: aritmética homomórfica com alinhamento
automático de expoentes.
"""

import numpy as np
import pytest

from paillier.ciphertext_factory import decrypt_and_decode, encode_and_encrypt
from paillier.encoding import Encoded, Encoding
from paillier.encrypted_array import EncryptedArray
from paillier.encrypted_number import EncryptedNumber
from paillier.errors import DomainError, KeyMismatchError
from paillier.key_factory import generate_keypair


class TestEncryptedNumber:
    """Testes para a classe EncryptedNumber"""

    def setup_method(self):
        """Configuração executada antes de cada teste"""
        self.public_key, self.private_key = generate_keypair(256)
        self.encoding = Encoding(float, self.public_key)
        self.int_encoding = Encoding(int, self.public_key)

    def decrypt(self, value):
        return decrypt_and_decode(self.private_key, value)

    def test_concrete_scenario(self):
        """3.25 com Encoding(float) em chave de 128 bits"""
        public_key, private_key = generate_keypair(128)
        encrypted = encode_and_encrypt(3.25, Encoding(float, public_key))

        assert isinstance(encrypted, EncryptedNumber)
        assert decrypt_and_decode(private_key, encrypted) == 3.25

    def test_fresh_encryption_state(self):
        encrypted = encode_and_encrypt(1.5, self.encoding)
        assert encrypted.is_obfuscated
        assert encrypted.public_key == self.public_key
        assert encrypted.exponent == self.encoding.encode(1.5).exponent
        assert 0 <= encrypted.ciphertext < self.public_key.nsquare

    def test_negative_values(self):
        encrypted = encode_and_encrypt(-5, self.int_encoding)
        assert self.decrypt(encrypted) == -5

    def test_add_encrypted(self):
        a = encode_and_encrypt(10.5, self.encoding)
        b = encode_and_encrypt(3.25, self.encoding)
        assert self.decrypt(a + b) == 13.75
        assert not (a + b).is_obfuscated

    def test_exponent_alignment_either_order(self):
        """O resultado fica com o menor expoente, independente da ordem"""
        coarse = encode_and_encrypt(2, self.encoding)
        fine = encode_and_encrypt(0.125, self.encoding)
        assert coarse.exponent > fine.exponent

        for total in (coarse + fine, fine + coarse):
            assert total.exponent == fine.exponent
            assert self.decrypt(total) == 2.125

    def test_add_plaintext(self):
        encrypted = encode_and_encrypt(3.25, self.encoding)
        assert self.decrypt(encrypted + 1.5) == 4.75
        assert self.decrypt(1.5 + encrypted) == 4.75
        assert self.decrypt(encrypted + 2) == 5.25

    def test_add_encoded(self):
        encrypted = encode_and_encrypt(1.0, self.encoding)
        encoded = self.encoding.encode(0.5)
        assert isinstance(encoded, Encoded)
        assert self.decrypt(encrypted + encoded) == 1.5

    def test_subtraction(self):
        a = encode_and_encrypt(10.0, self.encoding)
        b = encode_and_encrypt(3.5, self.encoding)
        assert self.decrypt(a - b) == 6.5
        assert self.decrypt(b - a) == -6.5
        assert self.decrypt(a - 0.5) == 9.5
        assert self.decrypt(20 - a) == 10.0

    def test_scalar_multiplication(self):
        encrypted = encode_and_encrypt(3.25, self.encoding)
        assert self.decrypt(encrypted * 3) == 9.75
        assert self.decrypt(2 * encrypted) == 6.5
        assert self.decrypt(encrypted * 0.5) == 1.625
        assert self.decrypt(encrypted * -2) == -6.5

    def test_multiplication_adds_exponents(self):
        encrypted = encode_and_encrypt(3.25, self.encoding)
        scalar = self.encoding.encode(0.5)
        assert (encrypted * 0.5).exponent == encrypted.exponent + scalar.exponent
        assert (encrypted * 3).exponent == encrypted.exponent

    def test_negation_and_division(self):
        encrypted = encode_and_encrypt(3.0, self.encoding)
        assert self.decrypt(-encrypted) == -3.0
        assert self.decrypt(encrypted / 4) == 0.75

    def test_integer_encoding_rounds_on_decode(self):
        encrypted = encode_and_encrypt(7, self.int_encoding)
        assert self.decrypt(encrypted * 0.5) == 4
        assert self.decrypt(encrypted + 5) == 12

    def test_multiplying_ciphertexts_fails(self):
        a = encode_and_encrypt(1.0, self.encoding)
        b = encode_and_encrypt(2.0, self.encoding)
        with pytest.raises(TypeError):
            a * b

    def test_key_mismatch(self):
        other_public, other_private = generate_keypair(256)
        a = encode_and_encrypt(1.0, self.encoding)
        b = encode_and_encrypt(1.0, Encoding(float, other_public))

        with pytest.raises(KeyMismatchError):
            a + b
        with pytest.raises(KeyMismatchError):
            a.decrypt(other_private)

    def test_base_mismatch(self):
        a = encode_and_encrypt(1.0, self.encoding)
        b = encode_and_encrypt(1.0, Encoding(float, self.public_key, base=2))
        with pytest.raises(DomainError):
            a + b

        scalar = Encoding(float, self.public_key, base=64).encode(0.5)
        with pytest.raises(DomainError):
            a * scalar

    def test_decrease_exponent(self):
        encrypted = encode_and_encrypt(1.5, self.encoding)
        lowered = encrypted.decrease_exponent_to(encrypted.exponent - 3)

        assert lowered.exponent == encrypted.exponent - 3
        assert self.decrypt(lowered) == 1.5
        assert encrypted.decrease_exponent_to(encrypted.exponent) is encrypted
        with pytest.raises(DomainError):
            encrypted.decrease_exponent_to(encrypted.exponent + 1)

    def test_obfuscate(self):
        encrypted = encode_and_encrypt(2.0, self.encoding) + 1.0
        assert not encrypted.is_obfuscated
        before = encrypted.ciphertext

        assert encrypted.obfuscate() is encrypted
        assert encrypted.is_obfuscated
        assert encrypted.ciphertext != before
        assert self.decrypt(encrypted) == 3.0

    def test_decrypt_returns_encoded(self):
        encrypted = encode_and_encrypt(-2.5, self.encoding)
        encoded = encrypted.decrypt(self.private_key)
        assert isinstance(encoded, Encoded)
        assert encoded.exponent == encrypted.exponent
        assert encoded.decode() == -2.5
        assert encrypted.decrypt_and_decode(self.private_key) == -2.5

    def test_explicit_exponent(self):
        encrypted = encode_and_encrypt(1.0, self.encoding, exponent=-4)
        assert encrypted.exponent == -4
        assert self.decrypt(encrypted) == 1.0

    def test_broadcast_with_array(self):
        """Combinar com arrays produz um EncryptedArray"""
        encrypted = encode_and_encrypt(3.25, self.encoding)

        total = encrypted + np.array([1.0, 2.0])
        assert isinstance(total, EncryptedArray)
        np.testing.assert_array_equal(self.decrypt(total), [4.25, 5.25])

        product = encrypted * [2, 4]
        np.testing.assert_array_equal(self.decrypt(product), [6.5, 13.0])

        difference = encrypted - [1.0, 3.0]
        np.testing.assert_array_equal(self.decrypt(difference), [2.25, 0.25])

    def test_broadcast_with_tuple(self):
        encrypted = encode_and_encrypt(3.25, self.encoding)

        np.testing.assert_array_equal(self.decrypt(encrypted + (1.0, 2.0)), [4.25, 5.25])
        np.testing.assert_array_equal(self.decrypt(encrypted * (2, 4)), [6.5, 13.0])
        np.testing.assert_array_equal(self.decrypt(encrypted - (1.0, 3.0)), [2.25, 0.25])

    def test_numpy_scalar_operands(self):
        encrypted = encode_and_encrypt(1.5, self.encoding)
        assert self.decrypt(encrypted + np.float64(0.5)) == 2.0
        assert self.decrypt(np.int64(2) * encrypted) == 3.0

    def test_unsupported_operand(self):
        encrypted = encode_and_encrypt(1.5, self.encoding)
        with pytest.raises(TypeError):
            encrypted + "1"
