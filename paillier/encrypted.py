"""
Núcleo do criptossistema Paillier: o tipo Encrypted e as operações brutas.

Propriedades homomórficas (com E = criptografia, D = decriptação):

1. D(E(a) * E(b) mod n²) = a + b mod n
2. D(E(a)^k mod n²)      = a * k mod n
3. D(E(a) * g^k mod n²)  = a + k mod n

Resultados de operações homomórficas NÃO são ofuscados automaticamente:
antes de compartilhar um ciphertext é responsabilidade de quem chama
executar obfuscate(). As operações também não são de tempo constante.
"""

from numbers import Integral

from .errors import DomainError, KeyMismatchError
from .keys import PrivateKey, PublicKey, invert, powmod


def raw_add(e_a: int, e_b: int, nsquare: int) -> int:
    """E(a + b) a partir dos inteiros E(a) e E(b)."""
    return e_a * e_b % nsquare


def raw_mul(ciphertext: int, scalar: int, nsquare: int) -> int:
    """
    E(a * k) a partir do inteiro E(a) e de um escalar k em texto claro.

    Escalares negativos usam o inverso modular do ciphertext.
    """
    if scalar < 0:
        return powmod(invert(ciphertext, nsquare), -scalar, nsquare)
    return powmod(ciphertext, scalar, nsquare)


def raw_add_plaintext(ciphertext: int, plaintext: int, public_key: PublicKey) -> int:
    """E(a + k) = E(a) * g^k mod n², sem nova aleatoriedade."""
    nude = public_key.raw_encrypt(plaintext % public_key.n, r_value=1)
    return ciphertext * nude % public_key.nsquare


class Encrypted:
    """
    Tipo criptografado de baixo nível: ciphertext + chave pública.

    Attributes:
        ciphertext: Inteiro em [0, n²)
        public_key: Chave sob a qual o ciphertext foi produzido
        is_obfuscated: False se o ciphertext resultou de uma operação
            homomórfica e ainda não foi re-aleatorizado
    """

    # Impede que numpy trate o objeto como escalar em operações com arrays
    __array_ufunc__ = None

    def __init__(self, ciphertext: int, public_key: PublicKey, is_obfuscated: bool = False):
        if not isinstance(public_key, PublicKey):
            raise TypeError("public_key deve ser uma PublicKey")
        if not isinstance(ciphertext, Integral):
            raise TypeError(
                f"ciphertext deve ser inteiro, recebido: {type(ciphertext).__name__}"
            )
        ciphertext = int(ciphertext)
        if not 0 <= ciphertext < public_key.nsquare:
            raise DomainError("Ciphertext fora do intervalo [0, n²)")

        self.ciphertext = ciphertext
        self.public_key = public_key
        self.is_obfuscated = is_obfuscated

    def _check_key(self, other: "Encrypted"):
        if self.public_key != other.public_key:
            raise KeyMismatchError(
                "Tentativa de combinar números criptografados com chaves públicas diferentes"
            )

    def __add__(self, other):
        if isinstance(other, Encrypted):
            self._check_key(other)
            ciphertext = raw_add(self.ciphertext, other.ciphertext, self.public_key.nsquare)
        elif isinstance(other, Integral):
            ciphertext = raw_add_plaintext(self.ciphertext, int(other), self.public_key)
        else:
            return NotImplemented
        return Encrypted(ciphertext, self.public_key)

    def __radd__(self, other):
        return self.__add__(other)

    def __mul__(self, other):
        if isinstance(other, Encrypted):
            raise TypeError("Multiplicação entre dois ciphertexts não é suportada pelo Paillier")
        if not isinstance(other, Integral):
            return NotImplemented
        ciphertext = raw_mul(self.ciphertext, int(other), self.public_key.nsquare)
        return Encrypted(ciphertext, self.public_key)

    def __rmul__(self, other):
        return self.__mul__(other)

    def __neg__(self):
        return self * -1

    def __sub__(self, other):
        if isinstance(other, (Encrypted, Integral)):
            return self + (-other)
        return NotImplemented

    def __rsub__(self, other):
        if isinstance(other, Integral):
            return (-self) + other
        return NotImplemented

    def obfuscate(self, rng=None) -> "Encrypted":
        """
        Re-aleatoriza o ciphertext multiplicando por r^n com r novo.

        Obrigatório antes de compartilhar o resultado de operações
        homomórficas. Altera esta instância e a retorna.
        """
        r_pow_n = self.public_key.obfuscator(self.public_key.random_obfuscator(rng))
        self.ciphertext = raw_add(self.ciphertext, r_pow_n, self.public_key.nsquare)
        self.is_obfuscated = True
        return self

    def __eq__(self, other):
        return (
            isinstance(other, Encrypted)
            and self.public_key == other.public_key
            and self.ciphertext == other.ciphertext
        )

    # O ciphertext muda em obfuscate(), então Encrypted não é hashable
    __hash__ = None

    def __repr__(self):
        return "<Encrypted {}... obfuscated={}>".format(
            hex(self.ciphertext)[2:12], self.is_obfuscated
        )


def encrypt_raw(public_key: PublicKey, plaintext: int, rng=None) -> Encrypted:
    """
    Criptografa um inteiro não negativo menor que public_key.n.

    O resultado já inclui aleatoriedade nova, portanto pode ser
    compartilhado diretamente (is_obfuscated = True).

    Raises:
        DomainError: Se plaintext for negativo ou >= n
        TypeError: Se plaintext não for inteiro
    """
    if isinstance(plaintext, bool) or not isinstance(plaintext, Integral):
        raise TypeError(
            f"Texto claro deve ser inteiro, recebido: {type(plaintext).__name__}"
        )
    plaintext = int(plaintext)
    if plaintext < 0:
        raise DomainError("Não é possível criptografar inteiros negativos sem codificação")
    ciphertext = public_key.raw_encrypt(plaintext, rng=rng)
    return Encrypted(ciphertext, public_key, is_obfuscated=True)


def decrypt(private_key: PrivateKey, ciphertext):
    """
    Inverso de encrypt_raw: recupera o texto claro em [0, n).

    Aceita Encrypted ou o ciphertext bruto (int). EncryptedNumber e
    EncryptedArray delegam ao próprio método decrypt, retornando Encoded
    e EncodedArray respectivamente.

    Raises:
        KeyMismatchError: Se o Encrypted pertencer a outra chave pública
    """
    if isinstance(ciphertext, Encrypted):
        if ciphertext.public_key != private_key.public_key:
            raise KeyMismatchError("Ciphertext criptografado com outra chave pública")
        return private_key.raw_decrypt(ciphertext.ciphertext)
    if isinstance(ciphertext, Integral):
        return private_key.raw_decrypt(int(ciphertext))
    if hasattr(ciphertext, "decrypt"):
        return ciphertext.decrypt(private_key)
    raise TypeError(f"Tipo não suportado para decriptação: {type(ciphertext).__name__}")


def obfuscate(encrypted, rng=None):
    """
    Ofusca um Encrypted, EncryptedNumber ou EncryptedArray e o retorna.

    Deve ser chamado antes de compartilhar ciphertexts com outra parte.
    """
    return encrypted.obfuscate(rng)
