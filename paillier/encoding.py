"""
Codificação em ponto fixo entre tipos numéricos e o domínio de texto claro
do Paillier (inteiros em [0, n)).

Um valor v é representado por um par (mantissa, expoente) tal que
v ≈ mantissa * base^expoente. A mantissa com sinal é mapeada para [0, n):

- mantissa >= 0 → mantissa
- mantissa < 0  → n + mantissa (wraparound)

Na codificação |mantissa| deve ser <= max_int = n // 3 - 1, deixando folga
para somas homomórficas. Na decodificação valores acima de n // 2 são
interpretados como negativos.

O expoente "natural" segue python-paillier / Paillier.jl:
- inteiros: 0
- floats: floor((expoente_binário - bits_de_mantissa) / log2(base))
"""

import math
from fractions import Fraction
from numbers import Integral, Number
from typing import Dict, Sequence, Tuple

import numpy as np

from .constants import DEFAULT_BASE, FLOAT_MANTISSA_BITS
from .errors import ConfigurationError, DomainError, KeyMismatchError
from .keys import PublicKey


def object_array(values: Sequence, shape: Tuple[int, ...]) -> np.ndarray:
    """Array numpy de dtype object com o formato dado, sem aninhar tuplas."""
    out = np.empty(len(values), dtype=object)
    for index, value in enumerate(values):
        out[index] = value
    return out.reshape(shape)


def elementwise(func, *arrays) -> np.ndarray:
    """Aplica `func` elemento a elemento, sempre retornando um array object."""
    result = np.frompyfunc(func, len(arrays), 1)(*arrays)
    return np.asarray(result, dtype=object)


def float_exponent(value: float, mantissa_bits: int, base: int) -> int:
    """Menor expoente que representa `value` com `mantissa_bits` de precisão."""
    if not math.isfinite(value):
        raise DomainError(f"Não é possível codificar {value}")
    bin_flt_exponent = math.frexp(value)[1]
    bin_lsb_exponent = bin_flt_exponent - mantissa_bits
    return math.floor(bin_lsb_exponent / math.log2(base))


def scale_to_integer(value, exponent: int, base: int) -> int:
    """round(value / base^exponent), calculado de forma exata."""
    if isinstance(value, Integral):
        value = Fraction(int(value))
    else:
        if not math.isfinite(value):
            raise DomainError(f"Não é possível codificar {value}")
        value = Fraction(float(value))
    return round(value * Fraction(base) ** -exponent)


def scale_from_integer(mantissa: int, exponent: int, base: int) -> Fraction:
    """mantissa * base^exponent como fração exata."""
    return Fraction(mantissa) * Fraction(base) ** exponent


class NumericDomain:
    """
    Interface de codificação para um tipo numérico.

    Cada domínio sabe escolher o expoente natural de um valor e convertê-lo
    de/para uma tupla de `size` mantissas inteiras com sinal que
    compartilham o mesmo expoente. Domínios com size > 1 (compostos)
    codificam um valor como um EncodedArray de `size` elementos.

    Novos domínios são adicionados com register_domain, sem alterar as
    camadas de criptografia.
    """

    size = 1
    dtype = object

    def accepts(self, value) -> bool:
        """True se `value` é um valor escalar deste domínio."""
        return isinstance(value, Number) and not isinstance(value, complex)

    def natural_exponent(self, value, base: int) -> int:
        raise NotImplementedError

    def to_integers(self, value, exponent: int, base: int) -> Tuple[int, ...]:
        raise NotImplementedError

    def from_integers(self, mantissas: Tuple[int, ...], exponent: int, base: int):
        raise NotImplementedError


class IntegerDomain(NumericDomain):
    """
    Domínio de inteiros com sinal.

    Valores não inteiros (ex.: resultado de escalar por 0.5) ainda podem ser
    codificados; a decodificação arredonda para o inteiro mais próximo.
    """

    def __init__(self, scalar_type=int):
        self.scalar_type = scalar_type
        self.dtype = object if scalar_type is int else np.dtype(scalar_type)

    def natural_exponent(self, value, base):
        if isinstance(value, Integral):
            return 0
        return float_exponent(float(value), FLOAT_MANTISSA_BITS, base)

    def to_integers(self, value, exponent, base):
        return (scale_to_integer(value, exponent, base),)

    def from_integers(self, mantissas, exponent, base):
        return self.scalar_type(round(scale_from_integer(mantissas[0], exponent, base)))

    def __eq__(self, other):
        return isinstance(other, IntegerDomain) and self.scalar_type is other.scalar_type

    def __hash__(self):
        return hash(self.scalar_type)

    def __repr__(self):
        return f"IntegerDomain({self.scalar_type.__name__})"


class FloatDomain(NumericDomain):
    """
    Domínio de ponto flutuante com `mantissa_bits` de precisão.

    float/float64 usam 53 bits, float32 usa 24 e float16 usa 11.
    """

    def __init__(self, scalar_type=float, mantissa_bits: int = None):
        self.scalar_type = scalar_type
        self.dtype = np.dtype(np.float64 if scalar_type is float else scalar_type)
        if mantissa_bits is None:
            mantissa_bits = np.finfo(self.dtype).nmant + 1
        self.mantissa_bits = mantissa_bits

    def natural_exponent(self, value, base):
        if isinstance(value, Integral):
            return 0
        return float_exponent(float(value), self.mantissa_bits, base)

    def to_integers(self, value, exponent, base):
        return (scale_to_integer(value, exponent, base),)

    def from_integers(self, mantissas, exponent, base):
        return self.scalar_type(float(scale_from_integer(mantissas[0], exponent, base)))

    def __eq__(self, other):
        return (
            isinstance(other, FloatDomain)
            and self.scalar_type is other.scalar_type
            and self.mantissa_bits == other.mantissa_bits
        )

    def __hash__(self):
        return hash((self.scalar_type, self.mantissa_bits))

    def __repr__(self):
        return f"FloatDomain({self.scalar_type.__name__}, {self.mantissa_bits} bits)"


_DOMAINS: Dict[type, NumericDomain] = {
    int: IntegerDomain(int),
    float: FloatDomain(float),
}
for _int_type in (np.int8, np.int16, np.int32, np.int64, np.uint8, np.uint16, np.uint32, np.uint64):
    _DOMAINS[_int_type] = IntegerDomain(_int_type)
for _float_type in (np.float16, np.float32, np.float64):
    _DOMAINS[_float_type] = FloatDomain(_float_type)


def register_domain(datatype, domain: NumericDomain):
    """
    Registra um domínio de codificação para `datatype`.

    Exemplo: um tipo "medida com incerteza" pode ser registrado com um
    domínio de size=2 que codifica valor e erro com o mesmo expoente.
    """
    if not isinstance(domain, NumericDomain):
        raise TypeError("domain deve ser uma instância de NumericDomain")
    _DOMAINS[datatype] = domain


def get_domain(datatype) -> NumericDomain:
    """Retorna o domínio registrado para `datatype`."""
    if isinstance(datatype, NumericDomain):
        return datatype
    if datatype in _DOMAINS:
        return _DOMAINS[datatype]
    if isinstance(datatype, np.dtype) and datatype.type in _DOMAINS:
        return _DOMAINS[datatype.type]
    raise TypeError(f"Nenhum domínio de codificação registrado para {datatype!r}")


class Encoding:
    """
    Esquema de codificação em ponto fixo para um tipo numérico.

    A chave pública faz parte da codificação porque o maior inteiro
    representável depende do módulo n.

    Args:
        datatype: Tipo a codificar (int, float, numpy.float32, ... ou um
            NumericDomain / tipo registrado com register_domain)
        public_key: Chave pública cujo n define o domínio de texto claro
        base: Base da codificação (padrão 16)
        domain: Domínio explícito; se None usa o registrado para datatype

    Exemplo:
        encoding = Encoding(np.float32, public_key)
        encoding = Encoding(float, public_key, base=64)
    """

    def __init__(
        self, datatype, public_key: PublicKey, base: int = DEFAULT_BASE, domain: NumericDomain = None
    ):
        if not isinstance(public_key, PublicKey):
            raise TypeError("public_key deve ser uma PublicKey")
        if isinstance(base, bool) or not isinstance(base, Integral) or base < 2:
            raise ConfigurationError(f"Base da codificação deve ser >= 2, recebido: {base}")

        self.datatype = datatype
        self.domain = get_domain(datatype) if domain is None else domain
        self.public_key = public_key
        self.base = int(base)

    @property
    def max_int(self) -> int:
        return self.public_key.max_int

    def check_compatible(self, other: "Encoding"):
        """Garante mesma chave pública e mesma base."""
        if self.public_key != other.public_key:
            raise KeyMismatchError("Codificações com chaves públicas diferentes")
        if self.base != other.base:
            raise DomainError(
                f"Codificações com bases diferentes: {self.base} != {other.base}"
            )

    def wrap(self, mantissa: int) -> int:
        """Mapeia uma mantissa com sinal para [0, n)."""
        if abs(mantissa) > self.max_int:
            raise DomainError(
                "Valor grande demais para a codificação: |mantissa| excede n/3"
            )
        return mantissa % self.public_key.n

    def unwrap(self, value: int) -> int:
        """Mapeia um texto claro em [0, n) de volta para uma mantissa com sinal."""
        n = self.public_key.n
        if not 0 <= value < n:
            raise DomainError("Texto claro codificado fora do intervalo [0, n)")
        if value > n // 2:
            return value - n
        return value

    def is_composite(self, value) -> bool:
        return self.domain.size > 1 and self.domain.accepts(value)

    def natural_exponent(self, value) -> int:
        return self.domain.natural_exponent(value, self.base)

    def encode(self, value, exponent: int = None):
        """
        Codifica um escalar (Encoded) ou uma coleção (EncodedArray).

        Args:
            value: Número, valor de domínio composto, lista ou ndarray
            exponent: Expoente explícito; se None usa o natural do valor

        Raises:
            DomainError: Se a mantissa exceder max_int
        """
        if self.is_composite(value):
            exponent, plaintexts = self._mantissas([value], exponent)
            return EncodedArray(self, object_array(plaintexts, (self.domain.size,)), exponent)
        if isinstance(value, (np.ndarray, list, tuple)):
            return self.encode_array(value, exponent)
        if self.domain.accepts(value):
            exponent, values = self._mantissas([value], exponent)
            return Encoded(self, values[0], exponent)
        raise TypeError(f"Não é possível codificar {type(value).__name__} com {self.domain!r}")

    def encode_array(self, values, exponent: int = None) -> "EncodedArray":
        """
        Codifica uma coleção com um único expoente compartilhado.

        O expoente escolhido é o menor entre os expoentes naturais dos
        elementos, suficiente para todos eles.
        """
        if self.domain.size > 1:
            flat = list(values)
            shape = (len(flat), self.domain.size)
        else:
            array = np.asarray(values)
            if array.dtype.kind not in "biuf" and array.dtype != object:
                raise TypeError(f"Não é possível codificar arrays de dtype {array.dtype}")
            shape = array.shape
            flat = array.ravel().tolist()
        exponent, plaintexts = self._mantissas(flat, exponent)
        return EncodedArray(self, object_array(plaintexts, shape), exponent)

    def _mantissas(self, flat, exponent):
        if exponent is None:
            exponents = [self.natural_exponent(v) for v in flat]
            exponent = min(exponents) if exponents else 0
        plaintexts = [
            self.wrap(m)
            for v in flat
            for m in self.domain.to_integers(v, exponent, self.base)
        ]
        return exponent, plaintexts

    def decode(self, encoded, exponent: int = None):
        """
        Decodifica um Encoded, EncodedArray ou um inteiro bruto em [0, n).

        Args:
            encoded: Valor codificado
            exponent: Obrigatório apenas quando `encoded` é um int bruto
        """
        if isinstance(encoded, (Encoded, EncodedArray)):
            return encoded.decode()
        if exponent is None:
            raise TypeError("exponent é obrigatório para decodificar um inteiro bruto")
        if self.domain.size > 1:
            raise TypeError("Domínios compostos só decodificam EncodedArray")
        return self.domain.from_integers((self.unwrap(int(encoded)),), exponent, self.base)

    def __eq__(self, other):
        return (
            isinstance(other, Encoding)
            and self.datatype == other.datatype
            and self.domain == other.domain
            and self.public_key == other.public_key
            and self.base == other.base
        )

    def __hash__(self):
        return hash((self.public_key, self.base))

    def __repr__(self):
        name = getattr(self.datatype, "__name__", repr(self.datatype))
        return f"Encoding({name}, {self.public_key!r}, base={self.base})"


class Encoded:
    """
    Número codificado em texto claro.

    Attributes:
        encoding: Codificação usada
        value: Inteiro em [0, n)
        exponent: Expoente da escala (base^exponent)
    """

    __array_ufunc__ = None

    def __init__(self, encoding: Encoding, value: int, exponent: int):
        self.encoding = encoding
        self.value = value
        self.exponent = exponent

    @property
    def public_key(self) -> PublicKey:
        return self.encoding.public_key

    @property
    def mantissa(self) -> int:
        """Mantissa com sinal (aplica a convenção de wraparound)."""
        return self.encoding.unwrap(self.value)

    def decode(self):
        return self.encoding.domain.from_integers(
            (self.mantissa,), self.exponent, self.encoding.base
        )

    def decrease_exponent_to(self, new_exponent: int) -> "Encoded":
        """
        Retorna um Encoded com o mesmo valor e expoente menor.

        Raises:
            DomainError: Se new_exponent > exponent ou se houver overflow
        """
        if new_exponent > self.exponent:
            raise DomainError(
                f"Novo expoente {new_exponent} deve ser menor que o atual {self.exponent}"
            )
        factor = self.encoding.base ** (self.exponent - new_exponent)
        return Encoded(self.encoding, self.encoding.wrap(self.mantissa * factor), new_exponent)

    def __neg__(self):
        return Encoded(self.encoding, self.encoding.wrap(-self.mantissa), self.exponent)

    def __eq__(self, other):
        return (
            isinstance(other, Encoded)
            and self.encoding == other.encoding
            and self.value == other.value
            and self.exponent == other.exponent
        )

    def __hash__(self):
        return hash((self.encoding, self.value, self.exponent))

    def __repr__(self):
        return f"Encoded(mantissa={self.mantissa}, exponent={self.exponent})"


class EncodedArray:
    """
    Array de números codificados com um único expoente.

    Para domínios compostos (size > 1) o último eixo guarda os componentes
    de cada valor.
    """

    __array_ufunc__ = None

    def __init__(self, encoding: Encoding, values: np.ndarray, exponent: int):
        self.encoding = encoding
        self.values = values
        self.exponent = exponent

    @property
    def public_key(self) -> PublicKey:
        return self.encoding.public_key

    @property
    def shape(self) -> Tuple[int, ...]:
        return self.values.shape

    def __len__(self):
        return len(self.values)

    def mantissas(self) -> np.ndarray:
        return elementwise(self.encoding.unwrap, self.values)

    def decode(self):
        """
        Decodifica para um ndarray do dtype do domínio.

        Domínios compostos retornam o próprio valor quando o array tem
        formato (size,), ou um array object de valores caso contrário.
        """
        domain = self.encoding.domain
        base = self.encoding.base
        mantissas = [self.encoding.unwrap(int(v)) for v in self.values.ravel()]
        if domain.size == 1:
            decoded = [domain.from_integers((m,), self.exponent, base) for m in mantissas]
            if domain.dtype == object:
                return object_array(decoded, self.shape)
            return np.array(decoded, dtype=domain.dtype).reshape(self.shape)

        groups = [
            domain.from_integers(tuple(mantissas[i : i + domain.size]), self.exponent, base)
            for i in range(0, len(mantissas), domain.size)
        ]
        if self.shape == (domain.size,):
            return groups[0]
        return object_array(groups, self.shape[:-1])

    def decrease_exponent_to(self, new_exponent: int) -> "EncodedArray":
        if new_exponent > self.exponent:
            raise DomainError(
                f"Novo expoente {new_exponent} deve ser menor que o atual {self.exponent}"
            )
        factor = self.encoding.base ** (self.exponent - new_exponent)
        values = elementwise(
            lambda v: self.encoding.wrap(self.encoding.unwrap(v) * factor), self.values
        )
        return EncodedArray(self.encoding, values, new_exponent)

    def __neg__(self):
        values = elementwise(lambda v: self.encoding.wrap(-self.encoding.unwrap(v)), self.values)
        return EncodedArray(self.encoding, values, self.exponent)

    def __repr__(self):
        return f"EncodedArray(shape={self.shape}, exponent={self.exponent})"
