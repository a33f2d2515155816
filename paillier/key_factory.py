"""
Fábrica para geração e gerenciamento de chaves Paillier.

KeyGen(n_length):
- Sorteia primos p, q de ~n_length/2 bits, distintos
- Exige n = p * q com exatamente n_length bits e gcd(n, (p-1)(q-1)) = 1
- Define pk ← (n, g = n + 1) e sk ← (p, q) com parâmetros de CRT
"""

import logging
import random
from typing import Tuple

import gmpy2

from .constants import DEFAULT_KEY_LENGTH, PaillierCryptographicParameters
from .keys import PrivateKey, PublicKey

logger = logging.getLogger(__name__)


class PaillierKeyFactory:
    """
    Fábrica para geração de pares de chaves Paillier.

    A fonte de aleatoriedade é qualquer objeto com a API de random.Random
    (getrandbits, randrange). Se None, cada chamada cria um
    random.SystemRandom próprio, sem estado global compartilhado.
    """

    def __init__(self, crypto_params: PaillierCryptographicParameters = None, rng=None):
        """
        Inicializa a fábrica de chaves.

        Args:
            crypto_params: Parâmetros criptográficos (usa padrão se None)
            rng: Fonte de aleatoriedade (usa SystemRandom se None)
        """
        if crypto_params is None:
            crypto_params = PaillierCryptographicParameters()

        self.crypto_params = crypto_params
        self.rng = rng

    def _random_source(self, rng=None):
        if rng is not None:
            return rng
        if self.rng is not None:
            return self.rng
        return random.SystemRandom()

    @staticmethod
    def generate_prime(bits: int, rng) -> int:
        """
        Gera um primo com exatamente `bits` bits.

        O candidato tem os dois bits mais altos ligados, garantindo que o
        produto de dois desses primos tenha o dobro de bits.

        Args:
            bits: Tamanho do primo em bits (>= 8)
            rng: Fonte de aleatoriedade

        Returns:
            int: Primo de `bits` bits
        """
        while True:
            candidate = rng.getrandbits(bits) | (0b11 << (bits - 2)) | 1
            prime = int(gmpy2.next_prime(candidate - 1))
            if prime.bit_length() == bits:
                return prime

    def generate_primes(self, n_length: int, rng=None) -> Tuple[int, int]:
        """
        Gera o par de primos (p, q) para um módulo de n_length bits.

        Raises:
            ConfigurationError: Se n_length for inviável
        """
        n_length = self.crypto_params.validate_key_length(n_length)
        rng = self._random_source(rng)

        p_bits = n_length // 2
        q_bits = n_length - p_bits
        attempts = 0
        while True:
            attempts += 1
            p = self.generate_prime(p_bits, rng)
            q = self.generate_prime(q_bits, rng)
            if p == q:
                continue
            n = p * q
            if n.bit_length() != n_length:
                continue
            if gmpy2.gcd(n, (p - 1) * (q - 1)) != 1:
                continue
            logger.debug("Primos de %d bits gerados após %d tentativas", n_length, attempts)
            return p, q

    def generate_keypair(self, n_length: int = None, rng=None) -> Tuple[PublicKey, PrivateKey]:
        """
        Gera um par completo de chaves Paillier.

        Args:
            n_length: Tamanho do módulo em bits (usa KEY_LENGTH se None)
            rng: Fonte de aleatoriedade específica para esta chamada

        Returns:
            Tuple: (public_key, private_key)

        Raises:
            ConfigurationError: Se o tamanho pedido for pequeno demais
        """
        if n_length is None:
            n_length = self.crypto_params.KEY_LENGTH

        p, q = self.generate_primes(n_length, rng)
        public_key = PublicKey(p * q)
        private_key = PrivateKey(public_key, p, q)
        logger.debug("Par de chaves gerado: %r", public_key)
        return public_key, private_key

    def validate_keypair(self, public_key: PublicKey, private_key: PrivateKey) -> bool:
        """
        Valida se um par de chaves é consistente.

        Criptografa um valor de prova e verifica que a decriptação o recupera.

        Returns:
            bool: True se as chaves são consistentes, False caso contrário
        """
        if private_key.public_key != public_key:
            return False
        if private_key.p * private_key.q != public_key.n:
            return False

        sample = self._random_source().randrange(0, public_key.n)
        ciphertext = public_key.raw_encrypt(sample, rng=self._random_source())
        return private_key.raw_decrypt(ciphertext) == sample


def generate_keypair(n_length: int = DEFAULT_KEY_LENGTH, rng=None) -> Tuple[PublicKey, PrivateKey]:
    """
    Gera um novo par de chaves Paillier de n_length bits.

    Args:
        n_length: Tamanho do módulo n em bits (padrão 2048)
        rng: Fonte de aleatoriedade (usa SystemRandom se None)

    Returns:
        Tuple[PublicKey, PrivateKey]

    Raises:
        ConfigurationError: Se n_length for inviável
    """
    return PaillierKeyFactory(rng=rng).generate_keypair(n_length)


# Função de conveniência para criar instância da fábrica de chaves
def create_key_factory(
    crypto_params: PaillierCryptographicParameters = None, rng=None
) -> PaillierKeyFactory:
    """
    Cria uma nova instância da fábrica de chaves Paillier.

    Args:
        crypto_params: Parâmetros criptográficos (usa padrão se None)
        rng: Fonte de aleatoriedade (usa SystemRandom se None)

    Returns:
        PaillierKeyFactory: Nova instância da fábrica de chaves
    """
    return PaillierKeyFactory(crypto_params, rng)

