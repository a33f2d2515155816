"""
Fábrica para criação e manipulação de ciphertexts Paillier.

Esta classe fornece uma interface de alto nível para codificação,
criptografia, decriptação e decodificação, sobre os tipos Encrypted,
EncryptedNumber e EncryptedArray.
"""

import logging

from .constants import PaillierCryptographicParameters
from .encoding import Encoded, EncodedArray, Encoding, FloatDomain
from .encrypted import Encrypted, decrypt, encrypt_raw, obfuscate
from .encrypted_array import EncryptedArray
from .encrypted_number import EncryptedNumber
from .keys import PrivateKey, PublicKey

logger = logging.getLogger(__name__)


class PaillierCiphertextFactory:
    """
    Fábrica para criação e manipulação de ciphertexts Paillier.

    Concentra a fonte de aleatoriedade usada nas criptografias e
    ofuscações; cada método também aceita um `rng` específico.
    """

    def __init__(self, rng=None, crypto_params: PaillierCryptographicParameters = None):
        """
        Inicializa a fábrica.

        Args:
            rng: Fonte de aleatoriedade (usa SystemRandom por chamada se None)
            crypto_params: Parâmetros criptográficos (usa padrão se None)
        """
        if crypto_params is None:
            crypto_params = PaillierCryptographicParameters()

        self.rng = rng
        self.crypto_params = crypto_params
        logger.debug("Fábrica de ciphertexts criada (base %d)", crypto_params.ENCODING_BASE)

    def _rng(self, rng):
        return self.rng if rng is None else rng

    def create_encoding(self, datatype, public_key: PublicKey) -> Encoding:
        """
        Cria uma Encoding com a base configurada nos parâmetros.

        Para `float` a precisão vem de FLOAT_MANTISSA_BITS.
        """
        domain = None
        if datatype is float:
            domain = FloatDomain(float, self.crypto_params.FLOAT_MANTISSA_BITS)
        return Encoding(datatype, public_key, self.crypto_params.ENCODING_BASE, domain)

    def encrypt_raw(self, public_key: PublicKey, plaintext: int, rng=None) -> Encrypted:
        """Criptografa um inteiro em [0, n) sem codificação."""
        return encrypt_raw(public_key, plaintext, self._rng(rng))

    def encrypt_encoded(self, encoded, rng=None):
        """
        Criptografa um Encoded ou EncodedArray já codificado.

        Returns:
            EncryptedNumber ou EncryptedArray, ambos ofuscados
        """
        if isinstance(encoded, Encoded):
            return EncryptedNumber.from_encoded(encoded, self._rng(rng))
        if isinstance(encoded, EncodedArray):
            return EncryptedArray.from_encoded(encoded, self._rng(rng))
        raise TypeError(
            f"Esperado Encoded ou EncodedArray, recebido: {type(encoded).__name__}"
        )

    def encode_and_encrypt(self, value, encoding: Encoding, exponent: int = None, rng=None):
        """
        Codifica e criptografa um valor em uma única operação.

        Args:
            value: Número, valor de domínio composto, lista ou ndarray
            encoding: Codificação a usar
            exponent: Expoente explícito (usa o natural se None)
            rng: Fonte de aleatoriedade específica para esta chamada

        Returns:
            EncryptedNumber para escalares; EncryptedArray para coleções e
            valores de domínios compostos

        Raises:
            DomainError: Se o valor não couber na codificação
        """
        return self.encrypt_encoded(encoding.encode(value, exponent), rng)

    def decrypt(self, private_key: PrivateKey, ciphertext):
        """Decripta sem decodificar: retorna int, Encoded ou EncodedArray."""
        return decrypt(private_key, ciphertext)

    def decrypt_and_decode(self, private_key: PrivateKey, encrypted):
        """
        Decripta e decodifica um EncryptedNumber ou EncryptedArray.

        Returns:
            Valor do tipo da codificação, ou ndarray com o formato original
        """
        if not isinstance(encrypted, (EncryptedNumber, EncryptedArray)):
            raise TypeError(
                f"Esperado EncryptedNumber ou EncryptedArray, recebido: {type(encrypted).__name__}"
            )
        return encrypted.decrypt_and_decode(private_key)

    def obfuscate(self, encrypted, rng=None):
        """Re-aleatoriza o ciphertext (no próprio objeto) e o retorna."""
        return obfuscate(encrypted, self._rng(rng))


def encode_and_encrypt(value, encoding: Encoding, exponent: int = None, rng=None):
    """
    Codifica `value` com `encoding` e o criptografa.

    Exemplo:
        encoding = Encoding(float, public_key)
        enc = encode_and_encrypt(3.25, encoding)
        enca = encode_and_encrypt([1.0, 2.0, 3.0], encoding)
    """
    return PaillierCiphertextFactory(rng=rng).encode_and_encrypt(value, encoding, exponent)


def decrypt_and_decode(private_key: PrivateKey, encrypted):
    """Decripta e decodifica um EncryptedNumber ou EncryptedArray."""
    return PaillierCiphertextFactory().decrypt_and_decode(private_key, encrypted)


# Função de conveniência para criar instância da fábrica
def create_ciphertext_factory(
    rng=None, crypto_params: PaillierCryptographicParameters = None
) -> PaillierCiphertextFactory:
    """
    Cria uma nova instância da fábrica de ciphertexts Paillier.

    Args:
        rng: Fonte de aleatoriedade (usa SystemRandom se None)
        crypto_params: Parâmetros criptográficos (usa padrão se None)

    Returns:
        PaillierCiphertextFactory: Nova instância da fábrica
    """
    return PaillierCiphertextFactory(rng, crypto_params)
