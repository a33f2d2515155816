"""
Tipos de chave do criptossistema Paillier.

PublicKey e PrivateKey são objetos de valor imutáveis. A decriptação usa
o Teorema Chinês do Resto (hp, hq e p^-1 mod q pré-calculados), como em
python-paillier.
"""

import random

import gmpy2

from .errors import ConfigurationError, DomainError


def powmod(base: int, exponent: int, modulus: int) -> int:
    """base^exponent mod modulus, aceitando expoentes negativos."""
    if exponent < 0:
        return int(gmpy2.powmod(invert(base, modulus), -exponent, modulus))
    return int(gmpy2.powmod(base, exponent, modulus))


def invert(value: int, modulus: int) -> int:
    """Inverso modular; ZeroDivisionError se não existir."""
    return int(gmpy2.invert(value, modulus))


class PublicKey:
    """
    Chave pública Paillier.

    Attributes:
        n: Módulo público (p * q)
        g: Gerador, sempre n + 1
        nsquare: n², módulo do espaço de ciphertexts
        max_int: Maior magnitude que uma codificação pode representar
    """

    __slots__ = ("_n", "_nsquare", "_max_int")

    def __init__(self, n: int):
        if not isinstance(n, int) or n < 3:
            raise ConfigurationError("Módulo público deve ser um inteiro maior que 2")
        object.__setattr__(self, "_n", n)
        object.__setattr__(self, "_nsquare", n * n)
        object.__setattr__(self, "_max_int", n // 3 - 1)

    def __setattr__(self, name, value):
        raise AttributeError("PublicKey é imutável")

    @property
    def n(self) -> int:
        return self._n

    @property
    def g(self) -> int:
        return self._n + 1

    @property
    def nsquare(self) -> int:
        return self._nsquare

    @property
    def max_int(self) -> int:
        return self._max_int

    @property
    def bit_length(self) -> int:
        return self._n.bit_length()

    def raw_encrypt(self, plaintext: int, r_value: int = None, rng=None) -> int:
        """
        Criptografa um inteiro em [0, n) e retorna o ciphertext bruto.

        Com g = n + 1 vale g^m = 1 + n*m (mod n²), evitando uma exponenciação.

        Args:
            plaintext: Inteiro em [0, n)
            r_value: Ofuscador fixo; r_value=1 gera o ciphertext "nu" usado
                internamente para somar textos claros
            rng: Fonte de aleatoriedade (API de random.Random)

        Returns:
            int: Ciphertext em [0, n²)
        """
        if not 0 <= plaintext < self._n:
            raise DomainError(
                f"Texto claro deve estar em [0, n) sem codificação, recebido: {plaintext}"
            )
        nude_ciphertext = (self._n * plaintext + 1) % self._nsquare
        if r_value == 1:
            return nude_ciphertext
        if r_value is None:
            r_value = self.random_obfuscator(rng)
        return nude_ciphertext * self.obfuscator(r_value) % self._nsquare

    def obfuscator(self, r_value: int) -> int:
        """r^n mod n²."""
        return powmod(r_value, self._n, self._nsquare)

    def random_obfuscator(self, rng=None) -> int:
        """Sorteia r em [1, n) coprimo com n."""
        if rng is None:
            rng = _system_random()
        while True:
            r = rng.randrange(1, self._n)
            if gmpy2.gcd(r, self._n) == 1:
                return r

    def __eq__(self, other):
        return isinstance(other, PublicKey) and self._n == other._n

    def __hash__(self):
        return hash(self._n)

    def __repr__(self):
        return "<PublicKey {} bits {}>".format(
            self.bit_length, hex(hash(self) & 0xFFFFFFFFFF)[2:]
        )


class PrivateKey:
    """
    Chave privada Paillier com parâmetros para decriptação via CRT.

    Args:
        public_key: Chave pública correspondente
        p, q: Fatores primos de public_key.n

    Raises:
        ConfigurationError: Se p * q != n ou p == q
    """

    __slots__ = ("public_key", "p", "q", "psquare", "qsquare", "p_inverse", "hp", "hq")

    def __init__(self, public_key: PublicKey, p: int, q: int):
        if p * q != public_key.n:
            raise ConfigurationError("Os fatores p e q não correspondem à chave pública")
        if p == q:
            raise ConfigurationError("p e q devem ser diferentes")
        if q < p:
            p, q = q, p
        values = {
            "public_key": public_key,
            "p": p,
            "q": q,
            "psquare": p * p,
            "qsquare": q * q,
            "p_inverse": invert(p, q),
        }
        for name, value in values.items():
            object.__setattr__(self, name, value)
        object.__setattr__(self, "hp", self._h_function(p, self.psquare))
        object.__setattr__(self, "hq", self._h_function(q, self.qsquare))

    def __setattr__(self, name, value):
        raise AttributeError("PrivateKey é imutável")

    def _h_function(self, x: int, xsquare: int) -> int:
        """h(x) do artigo de Paillier, seção de decriptação por CRT."""
        return invert(
            self._l_function(powmod(self.public_key.g, x - 1, xsquare), x), x
        )

    @staticmethod
    def _l_function(x: int, p: int) -> int:
        """L(x, p) = (x - 1) / p"""
        return (x - 1) // p

    def _crt(self, mp: int, mq: int) -> int:
        u = (mq - mp) * self.p_inverse % self.q
        return mp + u * self.p

    def raw_decrypt(self, ciphertext: int) -> int:
        """
        Decripta um ciphertext bruto.

        Returns:
            int: Texto claro em [0, n)
        """
        if not 0 <= ciphertext < self.public_key.nsquare:
            raise DomainError("Ciphertext fora do intervalo [0, n²)")
        decrypt_to_p = (
            self._l_function(powmod(ciphertext, self.p - 1, self.psquare), self.p)
            * self.hp
            % self.p
        )
        decrypt_to_q = (
            self._l_function(powmod(ciphertext, self.q - 1, self.qsquare), self.q)
            * self.hq
            % self.q
        )
        return self._crt(decrypt_to_p, decrypt_to_q)

    def __eq__(self, other):
        return isinstance(other, PrivateKey) and (self.p, self.q) == (other.p, other.q)

    def __hash__(self):
        return hash((self.p, self.q))

    def __repr__(self):
        return "<PrivateKey for {!r}>".format(self.public_key)


def _system_random():
    return random.SystemRandom()
